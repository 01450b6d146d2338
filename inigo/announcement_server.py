"""An HTTP server that records announcements made by running workloads."""

import json
import threading
import urllib.parse
import urllib.request

from inigo.callback import callback

_OPENER = urllib.request.build_opener(urllib.request.ProxyHandler({}))


class AnnouncementServer:
    """Records ``/announce?announcement=...`` calls and lists them at ``/announcements``."""

    def __init__(self, external_address):
        self._lock = threading.Lock()
        self._registered = []
        self._server, self.address = callback(external_address, self._handle)

    def _handle(self, request):
        url = urllib.parse.urlsplit(request.path)
        path = urllib.parse.unquote(url.path)
        if path == "/announce":
            query = urllib.parse.parse_qs(url.query, keep_blank_values=True)
            with self._lock:
                self._registered.append(query.get("announcement", [""])[0])
            return None
        if path == "/announcements":
            with self._lock:
                return json.dumps(self._registered) + "\n"
        return 404, b""

    def stop(self):
        """Shut the server down."""
        self._server.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, traceback):
        self.stop()

    def announce_url(self, announcement):
        """Return the URL that records ``announcement`` when fetched."""
        return f"http://{self.address}/announce?announcement={announcement}"

    def announcements(self):
        """Fetch the announcements recorded so far, in arrival order."""
        with _OPENER.open(f"http://{self.address}/announcements") as response:
            return json.load(response)