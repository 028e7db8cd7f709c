"""Tests for cli.py."""
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import cli
from oidc.errors import CallbackStateMismatchError, SigningError
from oidc.models import SessionCredential, SignedCertificate

PUBLIC_KEY_LINE = "sk-ssh-ed25519@openssh.com AAAAGnNrLXNzaC1l alice@laptop\n"


@pytest.fixture
def key_file(settings):
    settings.public_key_path.write_text(PUBLIC_KEY_LINE)
    return settings.public_key_path


@pytest.fixture
def orchestrator():
    with patch("cli.AuthOrchestrator") as cls, patch("cli.AuthRequestClient"):
        cls.return_value.login.return_value = SessionCredential(token="sess-1")
        yield cls


@pytest.fixture
def signer():
    with patch("cli.SigningClient") as cls:
        cls.return_value.sign.return_value = SignedCertificate(
            serial_number="5f:3a:01",
            certificate_bytes=b"ssh-ed25519-cert-v01@openssh.com AAAA\n",
        )
        yield cls


# ---------------------------------------------------------------------------
# run_sign
# ---------------------------------------------------------------------------

class TestRunSign:
    def test_writes_certificate_and_prints_serial(self, settings, key_file, orchestrator, signer, capsys):
        cli.run_sign(settings)

        assert settings.certificate_path.read_bytes() == b"ssh-ed25519-cert-v01@openssh.com AAAA\n"
        assert "key serial: 5f:3a:01" in capsys.readouterr().out
        signer.return_value.sign.assert_called_once_with(
            SessionCredential(token="sess-1"),
            "sk-ssh-ed25519@openssh.com AAAAGnNrLXNzaC1l",
        )

    def test_missing_key_stops_before_login(self, settings, orchestrator, signer):
        with pytest.raises(cli.ProdCertError):
            cli.run_sign(settings)

        orchestrator.return_value.login.assert_not_called()

    def test_failed_login_writes_nothing(self, settings, key_file, orchestrator, signer):
        orchestrator.return_value.login.side_effect = CallbackStateMismatchError("mismatch")

        with pytest.raises(CallbackStateMismatchError):
            cli.run_sign(settings)

        signer.return_value.sign.assert_not_called()
        assert not settings.certificate_path.exists()

    def test_agent_reload_when_enabled(self, settings, key_file, orchestrator, signer):
        settings = settings.with_overrides(reload_agent=True)

        with patch("cli.reload_agent") as reload:
            cli.run_sign(settings)

        reload.assert_called_once_with()

    def test_agent_reload_when_disabled(self, settings, key_file, orchestrator, signer):
        with patch("cli.reload_agent") as reload:
            cli.run_sign(settings)

        reload.assert_not_called()


# ---------------------------------------------------------------------------
# cmd_sign / main
# ---------------------------------------------------------------------------

class TestCommands:
    def test_sign_failure_exits_nonzero(self, settings, key_file, orchestrator, signer):
        signer.return_value.sign.side_effect = SigningError("session not authorized for role ssh-user")

        with pytest.raises(SystemExit) as exc_info:
            cli.cmd_sign(settings)

        assert exc_info.value.code == 1
        assert not settings.certificate_path.exists()

    def test_interrupt_exits_130(self, settings, key_file, orchestrator, signer):
        orchestrator.return_value.login.side_effect = KeyboardInterrupt

        with pytest.raises(SystemExit) as exc_info:
            cli.cmd_sign(settings)

        assert exc_info.value.code == 130

    def test_version(self, capsys):
        cli.main(["version"])

        out = capsys.readouterr().out
        assert f"prodcert v{cli.VERSION}" in out
        assert cli.COPYRIGHT in out
        assert cli.COPYRIGHT in cli.__doc__

    def test_status(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("PRODCERT_SSH_DIR", str(tmp_path))
        monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com")

        cli.main(["status", "--emergency"])

        out = capsys.readouterr().out
        assert "https://vault.example.com" in out
        assert "ssh-emerg" in out
        assert "id_ed25519_sk-emerg.pub" in out

    def test_flags_reach_settings(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PRODCERT_SSH_DIR", str(tmp_path))

        with patch("cli.cmd_sign") as cmd_sign:
            cli.main(["--ssh-key", "id_ecdsa", "--auth-role", "ops", "--callback-timeout", "60",
                      "--no-agent-reload"])

        settings = cmd_sign.call_args.args[0]
        assert settings.key_name == "id_ecdsa"
        assert settings.signing_role == "ops"
        assert settings.callback_timeout == 60.0
        assert settings.reload_agent is False

    def test_bad_config_exits_nonzero(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("PRODCERT_SSH_DIR", str(tmp_path))
        monkeypatch.setenv("VAULT_ADDR", "not-a-url")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["sign"])

        assert exc_info.value.code == 1
        assert "VAULT_ADDR" in capsys.readouterr().err
