"""Browser-based OIDC login flow.

Drives one interactive login end to end:

    Idle -> AuthorizationRequested -> ReceiverStarted -> AwaitingCallback
         -> CallbackReceived -> Exchanging -> Authenticated

with Failed reachable from every non-terminal state. The callback receiver
runs on its own thread; its result comes back through a single Future and
the wait on it is bounded by ``Settings.callback_timeout``. Any failure
aborts the flow, and the receiver is always stopped and joined before
``login()`` returns or raises.
"""

import hmac
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from enum import Enum
from typing import Callable, Optional

from config import Settings
from oidc.browser import open_browser
from oidc.callback_server import CallbackReceiver
from oidc.cancel import CancelToken
from oidc.client import AuthRequestClient
from oidc.errors import (
    BrowserLaunchError,
    CallbackError,
    CallbackStateMismatchError,
    CallbackTimeoutError,
    ProdCertError,
)
from oidc.models import AuthorizationRequest, CallbackToken, SessionCredential

logger = logging.getLogger(__name__)

# Poll interval while waiting for the receiver to bind (seconds)
READY_POLL_INTERVAL = 0.05


class FlowState(Enum):
    IDLE = "idle"
    AUTHORIZATION_REQUESTED = "authorization-requested"
    RECEIVER_STARTED = "receiver-started"
    AWAITING_CALLBACK = "awaiting-callback"
    CALLBACK_RECEIVED = "callback-received"
    EXCHANGING = "exchanging"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class AuthOrchestrator:
    """One-shot coordinator for the authorization-code login.

    Args:
        settings: Resolved configuration for this invocation.
        client: Identity provider client.
        launch_browser: Callable opening a URL; raises BrowserLaunchError.
        receiver_factory: Builds the CallbackReceiver from (host, port, path).
    """

    def __init__(
        self,
        settings: Settings,
        client: AuthRequestClient,
        launch_browser: Callable[[str], None] = open_browser,
        receiver_factory: Callable[..., CallbackReceiver] = CallbackReceiver,
    ):
        self._settings = settings
        self._client = client
        self._launch_browser = launch_browser
        self._receiver_factory = receiver_factory
        self.state = FlowState.IDLE
        self.failure: Optional[str] = None

    def _transition(self, state: FlowState) -> None:
        logger.debug(f"[OIDC] {self.state.value} -> {state.value}")
        self.state = state

    def _fail(self, reason: str) -> None:
        logger.debug(f"[OIDC] {self.state.value} -> failed ({reason})")
        self.state = FlowState.FAILED
        self.failure = reason

    def login(self, cancel: Optional[CancelToken] = None) -> SessionCredential:
        """Run the flow and return the session credential.

        Args:
            cancel: Caller's cancellation token. Cancelling it stops the
                receiver and makes the flow raise FlowCancelledError.

        Raises:
            ProdCertError: the stage-specific subclass for whatever failed.
        """
        if self.state is not FlowState.IDLE:
            raise RuntimeError("login flow can only run once")

        cancel = cancel or CancelToken()
        try:
            return self._run(cancel)
        except ProdCertError as e:
            self._fail(e.stage)
            raise
        except KeyboardInterrupt:
            self._fail("cancelled")
            raise

    def _run(self, cancel: CancelToken) -> SessionCredential:
        cancel.raise_if_cancelled()
        request = self._client.request_authorization(
            self._settings.oidc_role, self._settings.redirect_uri
        )
        cancel.raise_if_cancelled()
        self._transition(FlowState.AUTHORIZATION_REQUESTED)

        token = self._collect_callback(request, cancel)
        self._transition(FlowState.CALLBACK_RECEIVED)

        self._check_state(request, token)
        cancel.raise_if_cancelled()
        self._transition(FlowState.EXCHANGING)
        credential = self._client.exchange_code(token)
        cancel.raise_if_cancelled()

        self._transition(FlowState.AUTHENTICATED)
        return credential

    def _collect_callback(self, request: AuthorizationRequest, cancel: CancelToken) -> CallbackToken:
        """Start the receiver, open the browser and wait for the redirect."""
        receiver = self._receiver_factory(
            self._settings.callback_host,
            self._settings.callback_port,
            self._settings.callback_path,
        )
        receiver_cancel = cancel.child()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="oidc-callback")
        try:
            future = executor.submit(receiver.listen, receiver_cancel)
            self._transition(FlowState.RECEIVER_STARTED)
            self._wait_until_bound(receiver, future)
            receiver_cancel.raise_if_cancelled()

            print("Opening browser for login...")
            print(f"If browser doesn't open, visit:\n  {request.authorization_url}\n")
            try:
                self._launch_browser(request.authorization_url)
            except OSError as e:
                raise BrowserLaunchError(f"failed in browser callout: {e}") from e
            self._transition(FlowState.AWAITING_CALLBACK)

            return self._await_token(future)
        finally:
            # Stop the listener and release its port before moving on
            receiver_cancel.cancel("flow finished")
            executor.shutdown(wait=True)

    def _wait_until_bound(self, receiver: CallbackReceiver, future: Future) -> None:
        while not receiver.ready.wait(READY_POLL_INTERVAL):
            if future.done():
                # Bind failed or the listener was cancelled; surface its error
                future.result()
                raise CallbackError("callback listener exited before accepting requests")

    def _await_token(self, future: Future) -> CallbackToken:
        timeout = self._settings.callback_timeout
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            logger.warning(f"[OIDC] No callback within {timeout:g}s")
            raise CallbackTimeoutError(f"timeout exceeded: no callback within {timeout:g}s") from None

    def _check_state(self, request: AuthorizationRequest, token: CallbackToken) -> None:
        if not hmac.compare_digest(token.state.encode(), request.expected_state.encode()):
            logger.warning("[OIDC] Callback state does not match the authorization request")
            raise CallbackStateMismatchError("callback state does not match authorization request")
