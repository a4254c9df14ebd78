# Main Entry Point - Command Line
#
#   enpass-reader list [FILTER ...]   list matching cards (no secrets)
#   enpass-reader show FILTER ...     print the secret of the unique match
#
# The password comes from ENPASS_PASSWORD (or .env), otherwise it is prompted.

import argparse
import sys
from getpass import getpass

from . import __version__
from .config import load_settings
from .core import AuditLogger
from .vault import Vault, VaultError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="enpass-reader",
        description="Read entries from an Enpass vault",
    )

    parser.add_argument(
        "--vault",
        help="Vault directory (default: $ENPASS_VAULT_PATH)"
    )

    parser.add_argument(
        "--keyfile",
        help="Keyfile path, for vaults created with one (default: $ENPASS_KEYFILE)"
    )

    parser.add_argument(
        "--type",
        default="",
        help="Only cards of this exact type (e.g. password, username)"
    )

    parser.add_argument(
        "--env-file",
        help=".env file to read settings from"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"enpass-reader {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List matching cards")
    list_parser.add_argument("filters", nargs="*", help="Title substrings (any may match)")

    show_parser = subparsers.add_parser("show", help="Print the secret of the unique matching card")
    show_parser.add_argument("filters", nargs="+", help="Title substrings (any may match)")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_settings(env_file=args.env_file)
    if args.vault:
        settings.vault_path = args.vault
    if args.keyfile:
        settings.keyfile_path = args.keyfile
    if not settings.password:
        settings.password = getpass("Enpass master password: ")

    audit = AuditLogger(log_dir=settings.log_dir, level=settings.log_level)

    try:
        with Vault(settings.vault_path, logger=audit) as vault:
            vault.open(settings.to_credentials())

            if args.command == "list":
                for card in vault.get_entries(args.type, args.filters):
                    print(f"{card.uuid}  {card.type:<12}  {card.title}")
            else:
                card = vault.get_entry(args.type, args.filters, unique=True)
                print(card.decrypt())
    except VaultError as e:
        print(f"Error ({e.kind.value}): {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
