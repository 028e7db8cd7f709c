"""HTTP plumbing shared by the login and signing clients.

Builds the requests session used against Vault (TLS settings, namespace
header) and extracts Vault's ``errors`` list from failed responses.
"""
import requests

from config import Settings


def new_session(settings: Settings) -> requests.Session:
    """Create a session configured for the Vault server in ``settings``."""
    session = requests.Session()
    session.headers["X-Vault-Request"] = "true"
    if settings.vault_namespace:
        session.headers["X-Vault-Namespace"] = settings.vault_namespace
    session.verify = settings.tls_verify
    return session


def api_url(settings: Settings, path: str) -> str:
    """Join a Vault API path onto the configured address."""
    return f"{settings.vault_addr.rstrip('/')}/v1/{path.lstrip('/')}"


def error_detail(response: requests.Response) -> str:
    """Describe a failed response, preferring Vault's own error messages."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and body.get("errors"):
        return "; ".join(str(e) for e in body["errors"])
    return f"HTTP {response.status_code} {response.reason or ''}".strip()


def json_body(response: requests.Response) -> dict:
    """Decode a JSON object body.

    Raises:
        ValueError: body is not valid JSON or not an object.
    """
    body = response.json()
    if not isinstance(body, dict):
        raise ValueError("response body is not a JSON object")
    return body
