"""Open the operator's browser at the authorization URL.

Fire-and-forget: the launcher process is started detached and never
waited on, and nothing checks that the page actually loaded.
"""

import logging
import os
import shutil
import subprocess
import sys

from oidc.errors import BrowserLaunchError

logger = logging.getLogger(__name__)


def is_wsl() -> bool:
    """Check if running inside WSL."""
    if os.environ.get("WSL_DISTRO_NAME"):
        return True
    try:
        with open("/proc/version", "r") as f:
            version = f.read().lower()
    except OSError:
        return False
    return "microsoft" in version or "wsl" in version


def browser_command(url: str, platform: str = None) -> list[str]:
    """Return the launcher command for this platform.

    Raises:
        BrowserLaunchError: no launch mechanism exists for the platform.
    """
    platform = platform or sys.platform

    if platform.startswith("linux"):
        if is_wsl() and shutil.which("wslview"):
            return ["wslview", url]
        return ["xdg-open", url]
    if platform == "darwin":
        return ["open", url]
    if platform in ("win32", "cygwin"):
        return ["rundll32", "url.dll,FileProtocolHandler", url]

    raise BrowserLaunchError(f"unsupported platform: {platform}")


def open_browser(url: str) -> None:
    """Start the platform browser launcher for ``url``.

    Raises:
        BrowserLaunchError: unsupported platform or the launcher failed to start.
    """
    cmd = browser_command(url)
    logger.info(f"[BROWSER] Launching {cmd[0]}")
    try:
        subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=sys.platform != "win32",
        )
    except OSError as e:
        raise BrowserLaunchError(f"failed to start {cmd[0]}: {e}") from e
