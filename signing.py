"""Client for the SSH certificate signing service.

Submits the operator's public key under the authenticated session to
``/v1/<auth_path>/sign/<role>`` and returns the signed certificate.
"""
import logging
from typing import Optional

import requests

from config import Settings
from oidc.errors import SigningError
from oidc.models import SessionCredential, SignedCertificate
from vault_http import api_url, error_detail, json_body, new_session

logger = logging.getLogger(__name__)


class SigningClient:
    """Signs public keys with the configured SSH CA mount and role."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self._settings = settings
        self._session = session if session is not None else new_session(settings)

    def sign(self, credential: SessionCredential, public_key: str) -> SignedCertificate:
        """Request a certificate for ``public_key``.

        Raises:
            SigningError: the service rejected the key, the session is not
                authorized for the role, or the response has no signed key.
        """
        role = self._settings.signing_role
        url = api_url(self._settings, f"{self._settings.auth_path}/sign/{role}")
        logger.info(f"[SIGN] Requesting certificate from {self._settings.auth_path} (role: {role})")

        try:
            response = self._session.post(
                url,
                json={"public_key": public_key},
                headers={"X-Vault-Token": credential.token},
                timeout=self._settings.http_timeout,
            )
        except requests.RequestException as e:
            raise SigningError(f"error signing public key: {e}") from e

        if response.status_code == 403:
            raise SigningError(f"session not authorized for role {role}: {error_detail(response)}")
        if response.status_code == 400:
            raise SigningError(f"signing service rejected the key: {error_detail(response)}")
        if not response.ok:
            raise SigningError(f"error signing public key: {error_detail(response)}")

        try:
            body = json_body(response)
        except ValueError as e:
            raise SigningError(f"failed to decode signing response: {e}") from e

        data = body.get("data")
        if not isinstance(data, dict) or not data.get("signed_key"):
            raise SigningError("response has no signed key")

        serial = str(data.get("serial_number") or "")
        logger.info(f"[SIGN] Certificate issued (serial: {serial or 'unknown'})")
        return SignedCertificate(
            serial_number=serial,
            certificate_bytes=str(data["signed_key"]).encode("utf-8"),
        )
