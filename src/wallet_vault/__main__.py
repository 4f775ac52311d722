# Main Entry Point
#
#   wallet-vault serve          run the local link API
#   wallet-vault info           print the encryption scheme
#   wallet-vault inspect LINK   show what a #vault: link contains
#   wallet-vault keygen         new X25519 encryption key pair

import argparse
import json
import sys

from nacl.public import PrivateKey

from . import __version__
from .core import EventSeverity, EventType, get_audit_logger, get_settings


def _cmd_serve(args) -> int:
    from .api.main import start_api_server
    from .api.security import initialize_session_token

    token = initialize_session_token()
    print(f"  Starting Wallet Vault API on {args.host}:{args.port}...")
    print(f"  Session token: {token}")
    print("  Press Ctrl+C to stop")

    try:
        start_api_server(host=args.host, port=args.port)
    except KeyboardInterrupt:
        print("\n\nShutting down...")
        get_audit_logger().log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.INFO,
            message="Wallet Vault API stopped (user interrupt)"
        )
    except Exception as e:
        print(f"\n\nError: {str(e)}")
        get_audit_logger().log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.CRITICAL,
            message=f"Wallet Vault API crashed: {str(e)}"
        )
        return 1
    return 0


def _cmd_info(args) -> int:
    from .vault import EnvelopeVaultService

    print(json.dumps(EnvelopeVaultService.get_security_info(), indent=2))
    return 0


def _cmd_inspect(args) -> int:
    from .vault import ShareableLinkCodec

    container = ShareableLinkCodec().decode(args.link)
    if container is None:
        print("Not a vault link", file=sys.stderr)
        return 1

    summary = {
        "account": container.recipient,
        "version": container.version,
        "timestamp": container.timestamp,
        "ciphertextBytes": len(container.ciphertext),
        "supported": container.is_supported_version,
        "filename": ShareableLinkCodec.export_filename(container),
    }
    print(json.dumps(summary, indent=2))
    return 0


def _cmd_keygen(args) -> int:
    from .vault.sealed_box import encode_public_key

    key = PrivateKey.generate()
    print(json.dumps({
        "publicKey": encode_public_key(key.public_key),
        "privateKey": bytes(key).hex(),
    }, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="wallet-vault",
        description="Wallet Vault - wallet-bound envelope encryption for API keys",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Wallet Vault v{__version__}"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the local link API")
    serve.add_argument(
        "--host",
        default=settings.host,
        help=f"API host (default: {settings.host})"
    )
    serve.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"API port (default: {settings.port})"
    )
    serve.set_defaults(func=_cmd_serve)

    info = sub.add_parser("info", help="Describe the encryption scheme")
    info.set_defaults(func=_cmd_info)

    inspect_cmd = sub.add_parser("inspect", help="Decode a #vault: link without decrypting it")
    inspect_cmd.add_argument("link", help="Shareable vault link")
    inspect_cmd.set_defaults(func=_cmd_inspect)

    keygen = sub.add_parser("keygen", help="Generate an X25519 encryption key pair")
    keygen.set_defaults(func=_cmd_keygen)

    return parser


def main(argv=None) -> int:
    """Main entry point for Wallet Vault."""
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        get_audit_logger().log_event(
            event_type=EventType.SYSTEM_START,
            severity=EventSeverity.INFO,
            message="Wallet Vault starting",
            details={"version": __version__, "mode": args.command}
        )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
