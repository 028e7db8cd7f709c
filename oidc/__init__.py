"""Interactive OIDC login for prodcert.

Runs the browser-redirect authorization-code flow against the identity
provider and returns a session credential for the signing step.
"""

from oidc.errors import (
    AuthorizationRequestError,
    BrowserLaunchError,
    CallbackError,
    CallbackStateMismatchError,
    CallbackTimeoutError,
    ConfigError,
    FlowCancelledError,
    PersistenceError,
    ProdCertError,
    SigningError,
    TokenExchangeError,
)
from oidc.models import (
    AuthorizationRequest,
    CallbackToken,
    SessionCredential,
    SignedCertificate,
)

__all__ = [
    "AuthorizationRequest",
    "AuthorizationRequestError",
    "BrowserLaunchError",
    "CallbackError",
    "CallbackStateMismatchError",
    "CallbackTimeoutError",
    "CallbackToken",
    "ConfigError",
    "FlowCancelledError",
    "PersistenceError",
    "ProdCertError",
    "SessionCredential",
    "SignedCertificate",
    "SigningError",
    "TokenExchangeError",
]
