"""Local HTTP servers that call back into test code."""

import http.server
import logging
import threading

logger = logging.getLogger(__name__)

_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")


def _normalise(result):
    """Turn a handler's return value into a status code and body bytes."""
    if result is None:
        return 200, b""
    if isinstance(result, tuple):
        status, body = result
    else:
        status, body = 200, result
    if body is None:
        body = b""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return int(status), bytes(body)


def _make_handler_class(server):
    class _Handler(http.server.BaseHTTPRequestHandler):
        def _dispatch(self):
            try:
                result = server._handler(self)
            except Exception as error:
                server.errors.append(error)
                logger.exception("callback handler failed for %s %s", self.command, self.path)
                status, body = 500, b""
            else:
                status, body = _normalise(result)
            self.send_response(status)
            if body:
                self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            if self.command != "HEAD":
                self.wfile.write(body)

        def log_message(self, format, *args):
            logger.debug("%s - %s", self.address_string(), format % args)

    for method in _METHODS:
        setattr(_Handler, f"do_{method}", _Handler._dispatch)
    return _Handler


class CallbackServer:
    """An HTTP server on an ephemeral port of ``listen_host`` that runs ``handler``.

    ``handler`` is called with the request handler object (``path``,
    ``command``, ``headers``, ``rfile``) and returns None (200, empty body),
    a body as str or bytes (status 200), or a ``(status, body)`` tuple.
    Exceptions it raises become 500 responses and are kept in ``errors``.
    """

    def __init__(self, listen_host, handler):
        self._handler = handler
        self.errors = []
        self._closed = False
        self._httpd = http.server.ThreadingHTTPServer(
            (listen_host, 0), _make_handler_class(self)
        )
        host, port = self._httpd.server_address[:2]
        self.address = f"{host}:{port}"
        self._thread = threading.Thread(
            target=self._httpd.serve_forever, name=f"callback-{self.address}", daemon=True
        )
        self._thread.start()

    def close(self):
        """Stop serving and release the listening socket."""
        if self._closed:
            return
        self._closed = True
        self._httpd.shutdown()
        self._httpd.server_close()
        self._thread.join()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, traceback):
        self.close()


def callback(listen_host, handler):
    """Start a CallbackServer and return it with its ``host:port`` address."""
    server = CallbackServer(listen_host, handler)
    return server, server.address