"""Local HTTP server that catches the OIDC redirect callback.

Listens on the loopback address registered as the redirect URI with the
identity provider (``http://localhost:8250/oidc/callback`` by default),
accepts exactly one callback, answers the browser and shuts down.
"""

import logging
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional
from urllib.parse import parse_qs, urlparse

from oidc.cancel import CancelToken
from oidc.errors import CallbackError, FlowCancelledError
from oidc.models import CallbackToken
from oidc.templates import render_callback_page

logger = logging.getLogger(__name__)

# How often the accept loop checks for cancellation (seconds)
POLL_INTERVAL = 0.1

# Socket timeout for a single browser connection (seconds)
CONNECTION_TIMEOUT = 2.0


def first_param(params: dict, name: str) -> Optional[str]:
    """Return the first non-empty value of a parsed query parameter."""
    values = params.get(name)
    if not values:
        return None
    return values[0] or None


class CallbackHandler(BaseHTTPRequestHandler):
    """Handle the OIDC redirect from the browser."""

    timeout = CONNECTION_TIMEOUT

    def log_message(self, format, *args):
        """Suppress default logging."""
        pass

    def do_GET(self):
        parsed = urlparse(self.path)

        if parsed.path != self.server.callback_path:
            self.send_error(404)
            return

        # Only the first callback is processed; the listener is shutting down
        if self.server.should_stop:
            self.send_error(404)
            return

        self._handle_callback(parse_qs(parsed.query))

    def _handle_callback(self, params: dict):
        state = first_param(params, "state")
        code = first_param(params, "code")
        nonce = first_param(params, "nonce")
        error = first_param(params, "error")

        if error:
            description = first_param(params, "error_description")
            message = f"identity provider returned error: {error}"
            if description:
                message = f"{message} ({description})"
            self.server.callback_error = CallbackError(message)
        elif not state:
            self.server.callback_error = CallbackError("missing authorization state")
        elif not code:
            self.server.callback_error = CallbackError("missing authorization code")
        else:
            self.server.callback_token = CallbackToken(state=state, code=code, nonce=nonce)

        self._send_page(self.server.callback_error is None)

        # Signal to stop server once this response is written
        self.server.should_stop = True

    def _send_page(self, success: bool):
        body = render_callback_page(success)
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(body)
        self.wfile.flush()


class _CallbackHTTPServer(HTTPServer):
    allow_reuse_address = True

    def __init__(self, address: tuple[str, int], callback_path: str, poll_interval: float):
        super().__init__(address, CallbackHandler)
        self.callback_path = callback_path
        self.callback_token: Optional[CallbackToken] = None
        self.callback_error: Optional[CallbackError] = None
        self.should_stop = False
        self.timeout = poll_interval

    def handle_error(self, request, client_address):
        logger.warning(f"[CALLBACK] Error handling request from {client_address[0]}", exc_info=True)


class CallbackReceiver:
    """Single-use listener for one redirect callback.

    ``listen()`` blocks the calling thread until a callback arrives or the
    given token is cancelled. The socket is closed on every exit path.
    ``ready`` is set once the listener is bound.
    """

    def __init__(
        self,
        host: str,
        port: int,
        path: str = "/oidc/callback",
        poll_interval: float = POLL_INTERVAL,
    ):
        self.host = host
        self.port = port
        self.path = path
        self.poll_interval = poll_interval
        self.ready = threading.Event()
        self.server_address: Optional[tuple[str, int]] = None
        self._used = False

    def listen(self, cancel: CancelToken) -> CallbackToken:
        """Wait for the callback and return its correlation fields.

        Raises:
            CallbackError: bind failure, provider error, missing state or code.
            FlowCancelledError: ``cancel`` fired before a callback arrived.
        """
        if self._used:
            raise CallbackError("callback receiver already used")
        self._used = True

        try:
            server = _CallbackHTTPServer((self.host, self.port), self.path, self.poll_interval)
        except OSError as e:
            raise CallbackError(f"unable to listen on {self.host}:{self.port}: {e}") from e

        try:
            self.server_address = server.server_address[:2]
            self.ready.set()
            logger.info(f"[CALLBACK] Listening on http://{self.host}:{self.server_address[1]}{self.path}")

            while not server.should_stop:
                if cancel.cancelled:
                    logger.info("[CALLBACK] Listener cancelled before a callback arrived")
                    raise FlowCancelledError(f"callback listener stopped: {cancel.reason}")
                server.handle_request()

            if server.callback_error is not None:
                logger.warning(f"[CALLBACK] Callback rejected: {server.callback_error}")
                raise server.callback_error

            logger.info(f"[CALLBACK] Callback received (state {server.callback_token.state[:6]}...)")
            return server.callback_token
        finally:
            server.server_close()
            logger.debug("[CALLBACK] Listener closed")
