"""Records passed between the stages of one login."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization URL plus the correlation values issued with it."""

    authorization_url: str
    expected_state: str
    nonce: Optional[str] = None


@dataclass(frozen=True)
class CallbackToken:
    """Fields taken from the single redirect the receiver accepted."""

    state: str
    code: str
    nonce: Optional[str] = None


@dataclass(frozen=True)
class SessionCredential:
    token: str = field(repr=False)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SignedCertificate:
    serial_number: str
    certificate_bytes: bytes = field(repr=False)
