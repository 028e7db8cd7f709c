"""Shared fixtures for prodcert tests."""
import socket
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config import Settings


def find_free_port() -> int:
    """Find an available loopback port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def port_is_bindable(port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            s.bind(("127.0.0.1", port))
        except OSError:
            return False
        return True


@pytest.fixture
def free_port():
    return find_free_port()


@pytest.fixture
def settings(tmp_path, free_port):
    return Settings(
        ssh_dir=tmp_path,
        vault_addr="https://vault.test:8200",
        redirect_uri=f"http://127.0.0.1:{free_port}/oidc/callback",
        callback_timeout=2.0,
        http_timeout=5.0,
        reload_agent=False,
    )


@pytest.fixture
def fake_response():
    """Factory for requests.Response stand-ins."""
    def _make(status=200, body=None, json_error=None):
        response = MagicMock()
        response.status_code = status
        response.ok = 200 <= status < 400
        response.reason = "OK" if response.ok else "Error"
        if json_error is not None:
            response.json.side_effect = json_error
        else:
            response.json.return_value = body
        return response
    return _make
