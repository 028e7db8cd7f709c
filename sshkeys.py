"""Local SSH collaborators: key source, certificate sink and agent reload."""
import logging
import os
import subprocess
from pathlib import Path

from oidc.errors import ConfigError, PersistenceError

logger = logging.getLogger(__name__)

CERTIFICATE_MODE = 0o644


def read_public_key(path: Path) -> str:
    """Read an OpenSSH public key file.

    Returns the key type and base64 blob (``"ssh-ed25519 AAAA..."``); the
    trailing comment is dropped.

    Raises:
        ConfigError: file missing, unreadable or without key material.
    """
    try:
        content = Path(path).read_text()
    except OSError as e:
        raise ConfigError(f"unable to read public key file {path}: {e}") from e

    fields = content.split()
    if len(fields) < 2:
        raise ConfigError(f"no public key found in {path}")
    return f"{fields[0]} {fields[1]}"


def write_certificate(path: Path, certificate: bytes) -> None:
    """Write the signed certificate next to the key.

    Raises:
        PersistenceError: the file could not be written.
    """
    path = Path(path)
    try:
        path.write_bytes(certificate)
        os.chmod(path, CERTIFICATE_MODE)
    except OSError as e:
        raise PersistenceError(f"failed to save cert to {path}: {e}") from e


def reload_agent() -> bool:
    """Drop all identities from ssh-agent and re-add the defaults.

    Best effort: failures are logged and reported as False, never raised.
    """
    for cmd in (["ssh-add", "-D"], ["ssh-add"]):
        try:
            result = subprocess.run(cmd, check=False)
        except OSError as e:
            logger.warning(f"[AGENT] Failed to update ssh agent ({' '.join(cmd)}): {e}")
            return False
        if result.returncode != 0:
            logger.warning(f"[AGENT] {' '.join(cmd)} exited with status {result.returncode}")
            return False
    logger.info("[AGENT] ssh-agent identities reloaded")
    return True
