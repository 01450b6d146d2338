import itertools
import socket
import threading

import pytest

from inigo.callback import CallbackServer
from inigo.route_helpers import (
    hello_world_instance_poller,
    response_body_and_status_code_from_host,
    response_code_from_host_poller,
)


@pytest.fixture
def router():
    started = []

    def start(handler):
        server = CallbackServer("127.0.0.1", handler)
        started.append(server)
        return server.address

    yield start
    for server in started:
        server.close()


def unused_address():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return f"127.0.0.1:{sock.getsockname()[1]}"


def echo_host_and_path(request):
    return f"{request.headers['Host']} {request.path}"


def test_body_and_status_carry_host_and_path(router):
    address = router(echo_host_and_path)
    body, status = response_body_and_status_code_from_host(address, "lrp-route", "a", "b")
    assert status == 200
    assert body == b"lrp-route /a/b"


def test_no_path_elements_requests_root(router):
    address = router(echo_host_and_path)
    body, _ = response_body_and_status_code_from_host(address, "lrp-route")
    assert body == b"lrp-route /"


def test_response_code_poller_reports_status(router):
    address = router(lambda request: (404, "nope") if request.path == "/missing" else "ok")
    assert response_code_from_host_poller(address, "lrp-route")() == 200
    assert response_code_from_host_poller(address, "lrp-route", "missing")() == 404


def test_response_code_poller_raises_when_unreachable():
    poll = response_code_from_host_poller(unused_address(), "lrp-route")
    with pytest.raises(OSError):
        poll()


def test_instance_poller_collects_sorted_distinct_bodies(router):
    lock = threading.Lock()
    indices = itertools.cycle(["2", "0", "1"])

    def handler(request):
        with lock:
            return next(indices)

    address = router(handler)
    assert hello_world_instance_poller(address, "lrp-route")() == ["0", "1", "2"]


def test_instance_poller_ignores_router_404(router):
    address = router(lambda request: (404, "Requested route ('lrp-route') does not exist."))
    assert hello_world_instance_poller(address, "lrp-route")() == []


def test_instance_poller_rejects_foreign_404(router):
    address = router(lambda request: (404, "nothing here"))
    assert response_body_and_status_code_from_host(address, "lrp-route") == (b"nothing here", 404)
    with pytest.raises(AssertionError, match="wasn't from the router"):
        hello_world_instance_poller(address, "lrp-route")()


def test_instance_poller_ignores_router_502(router):
    address = router(
        lambda request: (502, "Registered endpoint failed to handle the request")
    )
    assert hello_world_instance_poller(address, "lrp-route")() == []


def test_instance_poller_rejects_foreign_502(router):
    address = router(lambda request: (502, "bad gateway"))
    assert response_body_and_status_code_from_host(address, "lrp-route") == (b"bad gateway", 502)
    with pytest.raises(AssertionError, match="502"):
        hello_world_instance_poller(address, "lrp-route")()


def test_instance_poller_skips_connection_errors():
    assert hello_world_instance_poller(unused_address(), "lrp-route")() == []