"""CLI entry point for prodcert.

Gets a short-lived SSH certificate for production access: logs in through
the browser (OIDC), has the signing service sign the local public key,
writes the certificate next to the key and refreshes ssh-agent.

Copyright (c) 2026 prodcert authors. All rights reserved.
"""
import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from config import Settings, load_settings
from logging_config import setup_logging
from oidc import ProdCertError, SignedCertificate
from oidc.client import AuthRequestClient
from oidc.flow import AuthOrchestrator
from signing import SigningClient
from sshkeys import read_public_key, reload_agent, write_certificate

# Load environment: .env in the working directory (local override)
_env_file = Path(".env")
if _env_file.exists():
    load_dotenv(_env_file)

VERSION = "1.0.0"
COPYRIGHT = "Copyright (c) 2026 prodcert authors. All rights reserved."

logger = logging.getLogger("prodcert")


# ============== Certificate Flow ==============

def run_sign(settings: Settings) -> SignedCertificate:
    """Read key, log in, sign, save the certificate and reload the agent.

    Nothing is written unless authentication and signing both succeed.
    """
    public_key = read_public_key(settings.public_key_path)

    client = AuthRequestClient(settings)
    credential = AuthOrchestrator(settings, client).login()

    certificate = SigningClient(settings).sign(credential, public_key)

    write_certificate(settings.certificate_path, certificate.certificate_bytes)
    print(f"key serial: {certificate.serial_number}")
    print(f"Certificate saved to: {settings.certificate_path}")

    if settings.reload_agent:
        reload_agent()

    return certificate


# ============== CLI Commands ==============

def cmd_sign(settings: Settings):
    """Request a new certificate."""
    if settings.emergency:
        print(f"[WARNING] Requesting emergency credentials (role: {settings.signing_role})")

    try:
        run_sign(settings)
    except ProdCertError as e:
        logger.error(f"failed to get prod cert: [{e.stage}] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nLogin cancelled.", file=sys.stderr)
        sys.exit(130)


def cmd_status(settings: Settings):
    """Show resolved configuration and local file state."""
    print("\n" + "=" * 50)
    print("  prodcert Status")
    print("=" * 50)

    print("\n[Vault]")
    print(f"  Address:    {settings.vault_addr}")
    if settings.vault_namespace:
        print(f"  Namespace:  {settings.vault_namespace}")
    if settings.skip_verify:
        print("  TLS:        verification disabled")
    elif settings.ca_cert:
        print(f"  CA cert:    {settings.ca_cert}")

    print("\n[Login]")
    print(f"  OIDC mount: {settings.oidc_mount}")
    print(f"  OIDC role:  {settings.oidc_role or '(default)'}")
    print(f"  Redirect:   {settings.redirect_uri}")
    print(f"  Timeout:    {settings.callback_timeout:g}s")

    print("\n[Signing]")
    print(f"  Mount:      {settings.auth_path}")
    print(f"  Role:       {settings.signing_role}")
    if settings.emergency:
        print("  Mode:       emergency")

    print("\n[Files]")
    print(f"  Public key:  {settings.public_key_path}")
    print(f"  Exists:      {settings.public_key_path.exists()}")
    print(f"  Certificate: {settings.certificate_path}")
    print(f"  Exists:      {settings.certificate_path.exists()}")

    print("\n" + "=" * 50 + "\n")


def cmd_version():
    """Show version information."""
    print(f"prodcert v{VERSION}")
    print(COPYRIGHT)


def cmd_help():
    """Show detailed help."""
    print("""
prodcert - short-lived SSH certificates via browser login

USAGE:
    prodcert [command] [options]

COMMANDS:
    sign        Log in and fetch a new certificate (default)
    status      Show configuration and key/certificate files
    version     Show version information
    help        Show this help message

OPTIONS:
    --ssh-key NAME          Key file name in ~/.ssh (default: id_ed25519_sk)
    --auth-path PATH        SSH signer mount (default: ssh-user-ca)
    --auth-role ROLE        Signing role (default: ssh-user)
    --oidc-mount PATH       OIDC auth mount (default: oidc)
    --oidc-role ROLE        OIDC login role (default: provider default)
    --callback-timeout SEC  Seconds to wait for the browser callback
    --emergency             Use the <key>-emerg key and the ssh-emerg role
    --no-agent-reload       Do not refresh ssh-agent afterwards
    -v, --verbose           Debug logging
    --log-json              JSON log lines on stderr

ENVIRONMENT:
    VAULT_ADDR, VAULT_NAMESPACE, VAULT_CACERT, VAULT_SKIP_VERIFY
    PRODCERT_SSH_KEY, PRODCERT_SSH_DIR, PRODCERT_AUTH_PATH, PRODCERT_AUTH_ROLE
    PRODCERT_OIDC_MOUNT, PRODCERT_OIDC_ROLE, PRODCERT_REDIRECT_URI
    PRODCERT_CALLBACK_TIMEOUT, PRODCERT_HTTP_TIMEOUT

EXAMPLES:
    # Fetch a certificate for ~/.ssh/id_ed25519_sk.pub
    prodcert

    # Break-glass access
    prodcert --emergency
""")


# ============== Main Entry Point ==============

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prodcert",
        description="Short-lived SSH certificates via browser login",
    )

    parser.add_argument(
        "command",
        nargs="?",
        default="sign",
        choices=["sign", "status", "version", "help"],
        help="Command to run (default: sign)"
    )

    parser.add_argument("--ssh-key", help="ssh identity file name")
    parser.add_argument("--auth-path", help="SSH signer mount path")
    parser.add_argument("--auth-role", help="signing role")
    parser.add_argument("--oidc-mount", help="OIDC auth mount path")
    parser.add_argument("--oidc-role", help="OIDC login role")
    parser.add_argument("--callback-timeout", type=float, help="seconds to wait for the browser callback")
    parser.add_argument("--emergency", action="store_true", help="request emergency creds")
    parser.add_argument("--no-agent-reload", action="store_true", help="do not refresh ssh-agent")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    parser.add_argument("--log-json", action="store_true", help="JSON log output")

    return parser


def main(argv=None):
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        cmd_version()
        return
    if args.command == "help":
        cmd_help()
        return

    try:
        settings = load_settings(
            ssh_key=args.ssh_key,
            auth_path=args.auth_path,
            auth_role=args.auth_role,
            oidc_mount=args.oidc_mount,
            oidc_role=args.oidc_role,
            callback_timeout=args.callback_timeout,
            emergency=True if args.emergency else None,
            reload_agent=False if args.no_agent_reload else None,
        )
    except ProdCertError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(verbose=args.verbose, json_logs=args.log_json, role=settings.signing_role)

    if args.command == "status":
        cmd_status(settings)
    else:
        cmd_sign(settings)


if __name__ == "__main__":
    main()
