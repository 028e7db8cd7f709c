"""Client for the identity provider's OIDC login endpoints.

Two calls make up the login:
- auth_url: POST role and redirect URI, get back the provider URL to open
  in the browser. The correlation state and nonce ride in its query string.
- callback: GET with the state/code/nonce the browser delivered, get back
  the session credential.
"""

import logging
from typing import Optional
from urllib.parse import parse_qs, urlparse

import requests

from config import Settings
from oidc.callback_server import first_param
from oidc.errors import AuthorizationRequestError, TokenExchangeError
from oidc.models import AuthorizationRequest, CallbackToken, SessionCredential
from vault_http import api_url, error_detail, json_body, new_session

logger = logging.getLogger(__name__)


def _query_value(url: str, name: str) -> Optional[str]:
    return first_param(parse_qs(urlparse(url).query), name)


class AuthRequestClient:
    """Talks to ``/v1/auth/<mount>/oidc/*`` on the identity provider."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self._settings = settings
        self._session = session if session is not None else new_session(settings)

    def _path(self, endpoint: str) -> str:
        return api_url(self._settings, f"auth/{self._settings.oidc_mount}/oidc/{endpoint}")

    def request_authorization(self, role: str, redirect_uri: str) -> AuthorizationRequest:
        """Ask the provider for an authorization URL.

        Raises:
            AuthorizationRequestError: transport failure, error status,
                undecodable body, or no usable URL/state in the response.
        """
        payload = {"role": role, "redirect_uri": redirect_uri}
        logger.info(f"[OIDC] Requesting authorization URL (role: {role or 'default'})")

        try:
            response = self._session.post(
                self._path("auth_url"),
                json=payload,
                timeout=self._settings.http_timeout,
            )
        except requests.RequestException as e:
            raise AuthorizationRequestError(f"failed to get auth url: {e}") from e

        if not response.ok:
            raise AuthorizationRequestError(f"failed to get auth url: {error_detail(response)}")

        try:
            body = json_body(response)
        except ValueError as e:
            raise AuthorizationRequestError(f"failed to decode auth url response: {e}") from e

        data = body.get("data")
        auth_url = data.get("auth_url") if isinstance(data, dict) else None
        if not isinstance(auth_url, str) or not auth_url:
            raise AuthorizationRequestError("missing auth URL")

        state = _query_value(auth_url, "state")
        if not state:
            raise AuthorizationRequestError("auth URL carries no state parameter")

        return AuthorizationRequest(
            authorization_url=auth_url,
            expected_state=state,
            nonce=_query_value(auth_url, "nonce"),
        )

    def exchange_code(self, token: CallbackToken) -> SessionCredential:
        """Trade the callback's code for a session credential.

        Raises:
            TokenExchangeError: transport failure, error status, undecodable
                body, or an empty client token.
        """
        params = {"state": token.state, "code": token.code}
        if token.nonce:
            params["nonce"] = token.nonce

        logger.info("[OIDC] Exchanging authorization code")
        try:
            response = self._session.get(
                self._path("callback"),
                params=params,
                timeout=self._settings.http_timeout,
            )
        except requests.RequestException as e:
            raise TokenExchangeError(f"failed to get final token: {e}") from e

        if not response.ok:
            raise TokenExchangeError(f"failed to get final token: {error_detail(response)}")

        try:
            body = json_body(response)
        except ValueError as e:
            raise TokenExchangeError(f"failed to decode token response: {e}") from e

        auth = body.get("auth")
        if not isinstance(auth, dict) or not auth.get("client_token"):
            raise TokenExchangeError("empty client token")

        metadata = {
            "accessor": auth.get("accessor"),
            "policies": auth.get("policies") or [],
            "lease_duration": auth.get("lease_duration", 0),
            "renewable": bool(auth.get("renewable", False)),
            "metadata": auth.get("metadata") or {},
        }
        logger.info(f"[OIDC] Authenticated (policies: {', '.join(metadata['policies']) or 'none'})")
        return SessionCredential(token=auth["client_token"], metadata=metadata)
