"""A small HTTP application used as the workload inside test containers."""

import argparse
import functools
import http.server
import os
import queue
import ssl
import subprocess
import sys
import threading
import urllib.parse

_RETAINED = []


def _hello(environ, query):
    return 200, environ.get("INSTANCE_INDEX", "").encode()


def _env(environ, query):
    return 200, "".join(f"{key}={value}\n" for key, value in environ.items()).encode()


def _write(environ, query):
    path = environ.get("MOUNT_POINT_DIR", "") + "/test.txt"
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
        with os.fdopen(fd, "wb") as handle:
            handle.write(b"Hello Persistant World!\n")
    except OSError as error:
        return 500, str(error).encode()
    try:
        with open(path, "rb") as handle:
            return 200, handle.read()
    except OSError as error:
        # The success status has already been sent by this point.
        return 200, str(error).encode()


def _run(*command):
    return subprocess.run(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL).returncode


def _curl(environ, query):
    try:
        code = _run("curl", "--connect-timeout", "5", "http://www.example.com")
    except OSError:
        return 200, b"Unknown Exit Code\n"
    return 200, str(max(code, -1)).encode()


def _privileged(environ, query):
    try:
        code = _run("touch", "/proc/sysrq-trigger")
    except OSError as error:
        return 500, f"Failed to touch file: {error}\n".encode()
    if code != 0:
        reason = f"signal: {-code}" if code < 0 else f"exit status {code}"
        return 500, f"Failed to touch file: {reason}\n".encode()
    return 200, b"Success\n"


def _read_file_from(variable):
    def route(environ, query):
        try:
            with open(environ.get(variable, ""), "rb") as handle:
                return 200, handle.read()
        except OSError:
            return 500, b""

    return route


def _cat(environ, query):
    files = query.get("file")
    if not files:
        return 500, b""
    try:
        with open(files[0], "rb") as handle:
            return 200, handle.read()
    except FileNotFoundError:
        return 404, b""
    except OSError:
        return 500, b""


_ROUTES = {
    "/env": _env,
    "/write": _write,
    "/curl": _curl,
    "/privileged": _privileged,
    "/cf-instance-cert": _read_file_from("CF_INSTANCE_CERT"),
    "/cf-instance-key": _read_file_from("CF_INSTANCE_KEY"),
    "/cat": _cat,
}
_STATIC = {"/yo": b"sup dawg"}


class _Handler(http.server.BaseHTTPRequestHandler):
    def do_GET(self):
        url = urllib.parse.urlsplit(self.path)
        path = urllib.parse.unquote(url.path)
        if path in _STATIC:
            status, body = 200, _STATIC[path]
        else:
            query = urllib.parse.parse_qs(url.query, keep_blank_values=True)
            try:
                status, body = _ROUTES.get(path, _hello)(self.server.environ, query)
            except Exception:
                status, body = 500, b""
        self.send_response(status)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    do_POST = do_PUT = do_DELETE = do_PATCH = do_HEAD = do_GET

    def log_message(self, format, *args):
        pass


class _Server(http.server.ThreadingHTTPServer):
    daemon_threads = True


def create_server(address, environ=None):
    """Bind the application to ``"host:port"`` without serving yet; an empty host means all."""
    host, _, port = address.rpartition(":")
    server = _Server((host.strip("[]"), int(port or 0)), _Handler)
    server.environ = os.environ if environ is None else environ
    return server


def _create_tls_server(address, environ, cert_path, key_path):
    server = create_server(address, environ)
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(cert_path, key_path)
    server.socket = context.wrap_socket(server.socket, server_side=True)
    return server


def _serve(errors, factory):
    try:
        factory().serve_forever()
    except Exception as error:
        errors.put(error)
    else:
        errors.put(None)


def main(argv=None):
    """Serve on every port in PORT (and HTTPS_PORT over TLS) until one fails."""
    parser = argparse.ArgumentParser(prog="go-server")
    parser.add_argument(
        "-allocate-memory-b", "--allocate-memory-b", dest="allocate_memory_mb",
        type=int, choices=None, default=0,
        help="allocate this much memory (in mb) on the heap and do not release it",
    )
    args = parser.parse_args(argv)
    if args.allocate_memory_mb < 0:
        parser.error("allocate-memory-b must not be negative")
    _RETAINED.append(bytearray(args.allocate_memory_mb * 1024 * 1024))

    print("listening...", flush=True)

    environ = os.environ
    errors = queue.Queue()
    factories = []
    for port in environ.get("PORT", "").split(" "):
        host = environ.get("CF_INSTANCE_INTERNAL_IP", "") if environ.get("SKIP_LOCALHOST_LISTEN") else ""
        address = f"{host}:{port}"
        print(address, file=sys.stderr, flush=True)
        factories.append(functools.partial(create_server, address, environ))

    https_port = environ.get("HTTPS_PORT", "")
    if https_port:
        factories.append(functools.partial(
            _create_tls_server, f":{https_port}", environ,
            environ.get("CF_INSTANCE_CERT", ""), environ.get("CF_INSTANCE_KEY", ""),
        ))

    for factory in factories:
        threading.Thread(target=_serve, args=(errors, factory), daemon=True).start()

    error = errors.get()
    if error is not None:
        raise error
    return 0


if __name__ == "__main__":
    sys.exit(main())