"""Tests for vault_http.py."""
import sys
from dataclasses import replace
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from vault_http import api_url, error_detail, new_session


class TestSession:
    def test_default_headers(self, settings):
        session = new_session(settings)

        assert session.headers["X-Vault-Request"] == "true"
        assert "X-Vault-Namespace" not in session.headers
        assert session.verify is True

    def test_namespace_and_tls(self, settings):
        settings = replace(settings, vault_namespace="prod", skip_verify=True)

        session = new_session(settings)

        assert session.headers["X-Vault-Namespace"] == "prod"
        assert session.verify is False


class TestHelpers:
    def test_api_url_joins_cleanly(self, settings):
        settings = replace(settings, vault_addr="https://vault.test:8200/")

        assert api_url(settings, "/auth/oidc/oidc/auth_url") == "https://vault.test:8200/v1/auth/oidc/oidc/auth_url"

    def test_error_detail_prefers_vault_errors(self, fake_response):
        assert error_detail(fake_response(403, {"errors": ["permission denied"]})) == "permission denied"

    def test_error_detail_without_json(self, fake_response):
        detail = error_detail(fake_response(502, json_error=ValueError("no json")))

        assert detail == "HTTP 502 Error"
