"""Error types for the certificate flow.

Every error carries the name of the stage that failed so the CLI can
report it. Lower-level exceptions are chained with ``raise ... from``.
"""


class ProdCertError(Exception):
    """Base error for all prodcert failures."""

    stage = "error"


class ConfigError(ProdCertError):
    """Missing key file, unreadable home directory or bad setting."""

    stage = "config-error"


class AuthorizationRequestError(ProdCertError):
    stage = "authorization-request-error"


class BrowserLaunchError(ProdCertError):
    stage = "browser-launch-error"


class CallbackError(ProdCertError):
    """The local callback receiver failed or got an unusable callback."""

    stage = "callback-error"


class CallbackTimeoutError(CallbackError):
    stage = "callback-timeout"


class FlowCancelledError(ProdCertError):
    """The surrounding context was cancelled before authentication."""

    stage = "cancelled"


class TokenExchangeError(ProdCertError):
    stage = "token-exchange-error"


class CallbackStateMismatchError(TokenExchangeError):
    """Callback state does not match the state issued with the request."""


class SigningError(ProdCertError):
    stage = "signing-error"


class PersistenceError(ProdCertError):
    stage = "persistence-error"
