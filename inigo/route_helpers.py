"""Requests through the router, addressed by virtual host."""

import http.client
import re
import urllib.parse

_INSTANCE_ATTEMPTS = 20
_ROUTE_MISSING = re.compile(r"Requested route \('.*'\) does not exist")
_ENDPOINT_FAILED = "Registered endpoint failed to handle the request"
_REQUEST_ERRORS = (OSError, http.client.HTTPException)


def _request(router_addr, host, path_elements):
    path = urllib.parse.quote("/" + "/".join(path_elements))
    connection = http.client.HTTPConnection(router_addr)
    try:
        connection.request("GET", path, headers={"Host": host})
        response = connection.getresponse()
        return response.status, response.read()
    finally:
        connection.close()


def response_code_from_host_poller(router_addr, host, *path_elements):
    """Return a function that GETs the path from the router and returns the status.

    The function raises OSError or HTTPException when the request fails.
    """

    def poll():
        status, _ = _request(router_addr, host, path_elements)
        return status

    return poll


def response_body_and_status_code_from_host(router_addr, host, *path_elements):
    """GET the path from the router as virtual host ``host``; return (body, status)."""
    status, body = _request(router_addr, host, path_elements)
    return body, status


def hello_world_instance_poller(router_addr, host):
    """Return a function listing, sorted, the distinct bodies seen in 20 requests.

    Failed requests are ignored, as are 404s and 502s produced by the router
    itself; a 404 or 502 from anywhere else raises AssertionError.
    """

    def poll():
        responding = set()
        for _ in range(_INSTANCE_ATTEMPTS):
            try:
                body, status = response_body_and_status_code_from_host(router_addr, host)
            except _REQUEST_ERRORS:
                continue
            text = body.decode("utf-8", errors="replace")
            if status == 404:
                if not _ROUTE_MISSING.search(text):
                    raise AssertionError("Got a 404, but it wasn't from the router!")
                continue
            if status == 502:
                if _ENDPOINT_FAILED not in text:
                    raise AssertionError("Got a 502, but it wasn't from the router!")
                continue
            responding.add(text)
        return sorted(responding)

    return poll