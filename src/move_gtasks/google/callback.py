"""One-shot local HTTP listener for the OAuth redirect.

The browser is sent back to ``http://localhost:<port>/?code=...`` once the
user grants access. The listener runs on a daemon thread and hands the code
to the waiting caller through a single-slot queue.

A redirect carrying ``error`` (e.g. ``access_denied``) only renders an error
page. Nothing is handed over, so the caller keeps waiting until a later
redirect delivers a code or the process is interrupted.
"""

from __future__ import annotations

import html
import logging
import queue
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, urlparse

from move_gtasks.google.exceptions import GoogleAuthError

logger = logging.getLogger(__name__)

ERROR_HTML = """<h1>Google Task Mover</h1>
<p>There was an error completing the OAuth workflow: {error}</p>"""

SUCCESS_HTML = """<h1>Google Task Mover</h1>
<p>Received the code from Google. You can close this window.</p>"""


class _CallbackHTTPServer(HTTPServer):
    """HTTPServer carrying the hand-off queue for its handlers."""

    def __init__(self, server_address, handler_class, codes: queue.Queue):
        super().__init__(server_address, handler_class)
        self.codes = codes


class _CallbackHandler(BaseHTTPRequestHandler):
    """Handle the OAuth redirect on ``/``."""

    server: _CallbackHTTPServer

    def do_GET(self):
        parsed = urlparse(self.path)
        if parsed.path != "/":
            self._respond(404, "<h1>Not found</h1>")
            return

        params = parse_qs(parsed.query)

        if params.get("error"):
            error = params["error"][0]
            logger.warning(f"Authorization callback reported an error: {error}")
            self._respond(200, ERROR_HTML.format(error=html.escape(error)))
            return

        if params.get("code"):
            try:
                self.server.codes.put_nowait(params["code"][0])
            except queue.Full:
                logger.debug("Authorization code already received; ignoring repeat callback")
            self._respond(200, SUCCESS_HTML)
            return

        self._respond(400, "<h1>Missing code or error parameter</h1>")

    def _respond(self, status: int, body: str):
        payload = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format, *args):
        logger.debug("callback: " + format, *args)


class CallbackServer:
    """Single-use listener that captures one authorization code.

    Example:
        >>> server = CallbackServer(port=42871)
        >>> server.start()
        >>> print(server.redirect_uri)
        >>> code = server.wait_for_code()
        >>> server.shutdown()
    """

    def __init__(self, host: str = "localhost", port: int = 42871):
        self.host = host
        self.port = port
        self._codes: queue.Queue[str] = queue.Queue(maxsize=1)
        self._httpd: _CallbackHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def redirect_uri(self) -> str:
        """Redirect target to register with the authorization request."""
        port = self._httpd.server_address[1] if self._httpd else self.port
        return f"http://{self.host}:{port}"

    def start(self) -> None:
        """Bind the listener and serve requests on a background thread.

        Raises:
            GoogleAuthError: If the port can't be bound.
        """
        try:
            self._httpd = _CallbackHTTPServer((self.host, self.port), _CallbackHandler, self._codes)
        except OSError as e:
            raise GoogleAuthError(
                f"Unable to start OAuth callback server on {self.host}:{self.port}: {e}"
            ) from e

        self._thread = threading.Thread(
            target=self._httpd.serve_forever,
            name="oauth-callback",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Waiting for OAuth callback on {self.redirect_uri}")

    def wait_for_code(self) -> str:
        """Block until the browser delivers an authorization code."""
        return self._codes.get()

    def shutdown(self) -> None:
        """Stop the listener. Errors are logged and ignored."""
        if self._httpd is None:
            return
        try:
            self._httpd.shutdown()
            self._httpd.server_close()
        except OSError as e:
            logger.debug(f"Ignoring error while stopping callback server: {e}")
        finally:
            self._httpd = None
            self._thread = None

    def __enter__(self) -> CallbackServer:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
