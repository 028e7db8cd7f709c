"""Config management for prodcert.

Settings are resolved once per invocation from built-in defaults, the
process environment (``.env`` is loaded by the CLI) and command-line flags,
then passed explicitly to every component.
"""
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import urlparse

from oidc.errors import ConfigError


DEFAULT_VAULT_ADDR = "https://127.0.0.1:8200"
DEFAULT_REDIRECT_URI = "http://localhost:8250/oidc/callback"
DEFAULT_SSH_KEY = "id_ed25519_sk"
DEFAULT_AUTH_PATH = "ssh-user-ca"
DEFAULT_AUTH_ROLE = "ssh-user"
DEFAULT_OIDC_MOUNT = "oidc"
DEFAULT_CALLBACK_TIMEOUT = 5.0
DEFAULT_HTTP_TIMEOUT = 30.0

EMERGENCY_ROLE = "ssh-emerg"
EMERGENCY_SUFFIX = "-emerg"

_TRUE_VALUES = ("1", "true", "yes", "on")


def default_ssh_dir() -> Path:
    """Return ~/.ssh for the current user."""
    try:
        return Path.home() / ".ssh"
    except RuntimeError as e:
        raise ConfigError(f"unable to determine home directory: {e}") from e


@dataclass(frozen=True)
class Settings:
    """Immutable configuration for one certificate request."""

    ssh_dir: Path
    vault_addr: str = DEFAULT_VAULT_ADDR
    vault_namespace: str = ""
    ca_cert: str = ""
    skip_verify: bool = False
    ssh_key: str = DEFAULT_SSH_KEY
    auth_path: str = DEFAULT_AUTH_PATH
    auth_role: str = DEFAULT_AUTH_ROLE
    oidc_mount: str = DEFAULT_OIDC_MOUNT
    oidc_role: str = ""
    redirect_uri: str = DEFAULT_REDIRECT_URI
    callback_timeout: float = DEFAULT_CALLBACK_TIMEOUT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    emergency: bool = False
    reload_agent: bool = True

    def __post_init__(self):
        vault = urlparse(self.vault_addr)
        if vault.scheme not in ("http", "https") or not vault.netloc:
            raise ConfigError(f"VAULT_ADDR must be an http(s) URL, got {self.vault_addr!r}")

        redirect = urlparse(self.redirect_uri)
        if redirect.scheme != "http" or not redirect.hostname:
            raise ConfigError(f"redirect URI must be an http:// URL with a host, got {self.redirect_uri!r}")
        try:
            redirect.port
        except ValueError as e:
            raise ConfigError(f"redirect URI has an invalid port: {self.redirect_uri!r}") from e

        if self.callback_timeout <= 0:
            raise ConfigError("callback timeout must be positive")
        if self.http_timeout <= 0:
            raise ConfigError("HTTP timeout must be positive")
        if not self.ssh_key:
            raise ConfigError("ssh key name must not be empty")
        if not self.auth_path or not self.oidc_mount:
            raise ConfigError("mount paths must not be empty")

    # ---- derived values ----

    @property
    def key_name(self) -> str:
        if self.emergency:
            return f"{self.ssh_key}{EMERGENCY_SUFFIX}"
        return self.ssh_key

    @property
    def signing_role(self) -> str:
        if self.emergency:
            return EMERGENCY_ROLE
        return self.auth_role

    @property
    def public_key_path(self) -> Path:
        return self.ssh_dir / f"{self.key_name}.pub"

    @property
    def certificate_path(self) -> Path:
        return self.ssh_dir / f"{self.key_name}-cert.pub"

    @property
    def callback_host(self) -> str:
        return urlparse(self.redirect_uri).hostname

    @property
    def callback_port(self) -> int:
        return urlparse(self.redirect_uri).port or 80

    @property
    def callback_path(self) -> str:
        return urlparse(self.redirect_uri).path or "/"

    @property
    def tls_verify(self):
        """Value for the ``verify`` argument of requests."""
        if self.skip_verify:
            return False
        return self.ca_cert or True

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}") from e


def _env_bool(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in _TRUE_VALUES


def load_settings(env: Optional[Mapping[str, str]] = None, **overrides) -> Settings:
    """Build settings from the environment, then apply CLI overrides.

    Args:
        env: Environment mapping (defaults to ``os.environ``).
        **overrides: Field values from command-line flags; None means unset.

    Raises:
        ConfigError: a value is missing or invalid.
    """
    env = os.environ if env is None else env

    ssh_dir = env.get("PRODCERT_SSH_DIR")
    settings = Settings(
        ssh_dir=Path(ssh_dir).expanduser() if ssh_dir else default_ssh_dir(),
        vault_addr=env.get("VAULT_ADDR") or DEFAULT_VAULT_ADDR,
        vault_namespace=env.get("VAULT_NAMESPACE", ""),
        ca_cert=env.get("VAULT_CACERT", ""),
        skip_verify=_env_bool(env, "VAULT_SKIP_VERIFY"),
        ssh_key=env.get("PRODCERT_SSH_KEY") or DEFAULT_SSH_KEY,
        auth_path=env.get("PRODCERT_AUTH_PATH") or DEFAULT_AUTH_PATH,
        auth_role=env.get("PRODCERT_AUTH_ROLE") or DEFAULT_AUTH_ROLE,
        oidc_mount=env.get("PRODCERT_OIDC_MOUNT") or DEFAULT_OIDC_MOUNT,
        oidc_role=env.get("PRODCERT_OIDC_ROLE", ""),
        redirect_uri=env.get("PRODCERT_REDIRECT_URI") or DEFAULT_REDIRECT_URI,
        callback_timeout=_env_float(env, "PRODCERT_CALLBACK_TIMEOUT", DEFAULT_CALLBACK_TIMEOUT),
        http_timeout=_env_float(env, "PRODCERT_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
    )
    return settings.with_overrides(**overrides)
