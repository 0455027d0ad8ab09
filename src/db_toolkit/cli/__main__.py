"""
Connection string encryption CLI for DbToolkit.

Usage:
    python -m db_toolkit.cli <command> <value> [key]

Available commands:
    encrypt (enc)                - Encrypt a whole connection string
    decrypt (dec)                - Decrypt an ENCRYPTED: connection string
    encrypt-password (enc-pwd)   - Encrypt only the Password=/Pwd= value

When the key is omitted it is read from DB_ENCRYPTION_KEY.
"""

import argparse
import sys
from typing import List, Optional

from rich.console import Console

from db_toolkit.config import get_settings
from db_toolkit.errors import DataAccessError
from db_toolkit.security.connection_protector import (
    decrypt,
    encrypt,
    encrypt_password,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="db_toolkit.cli",
        description="DbToolkit connection string encryption tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Encrypt a whole connection string
  python -m db_toolkit.cli encrypt "Server=localhost;Database=MyDb;User=sa;Password=123" "my-secret-key"

  # Encrypt only the password
  python -m db_toolkit.cli encrypt-password "Server=localhost;Database=MyDb;User=sa;Password=123" "my-secret-key"

  # Decrypt
  python -m db_toolkit.cli decrypt "ENCRYPTED:..." "my-secret-key"

Notes:
  Keep the key out of version control; prefer the DB_ENCRYPTION_KEY
  environment variable. Encrypted strings are safe to commit.
        """,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
        help="Command to execute",
    )

    commands = [
        ("encrypt", ["enc"], "Encrypt a whole connection string", "Connection string"),
        ("decrypt", ["dec"], "Decrypt an encrypted connection string", "ENCRYPTED: string"),
        (
            "encrypt-password",
            ["enc-pwd"],
            "Encrypt only the password inside a connection string",
            "Connection string",
        ),
    ]
    for name, aliases, help_text, value_help in commands:
        sub = subparsers.add_parser(name, aliases=aliases, help=help_text)
        sub.add_argument("value", help=value_help)
        sub.add_argument(
            "key",
            nargs="?",
            default=None,
            help="Encryption key (default: DB_ENCRYPTION_KEY)",
        )
        sub.set_defaults(operation=name)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    console = Console(soft_wrap=True, highlight=False)
    error_console = Console(stderr=True, soft_wrap=True, highlight=False)

    try:
        key = args.key or get_settings().DB_ENCRYPTION_KEY or ""

        if args.operation == "encrypt":
            result = encrypt(args.value, key)
            title, label, style = (
                "Encryption succeeded",
                "Encrypted connection string:",
                "cyan",
            )
        elif args.operation == "decrypt":
            result = decrypt(args.value, key)
            title, label, style = (
                "Decryption succeeded",
                "Plaintext connection string:",
                "yellow",
            )
        elif args.operation == "encrypt-password":
            result = encrypt_password(args.value, key)
            title, label, style = (
                "Password encryption succeeded",
                "Connection string with encrypted password:",
                "cyan",
            )
        else:
            parser.print_help()
            return 1
    except DataAccessError as e:
        error_console.print(f"Error: {e}", style="bold red", markup=False)
        return 1

    console.print(title, style="bold green")
    console.print()
    console.print(label)
    console.print(result, style=style, markup=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
