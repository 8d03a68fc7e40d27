"""
CLI Module - Command-line interface for the access keychain.

Creates, lists, removes and checks access keys stored in a keychain file.
"""

import argparse
import getpass
import sys
from typing import Optional

from access_keychain.errors import KeychainError
from access_keychain.manager import KEYCHAIN_PATH_ENV, KeychainManager


def mask_hash(value: bytes, visible_chars: int = 7) -> str:
    """Show only the algorithm/cost prefix of a hash."""
    text = value.decode("ascii", errors="replace")
    if len(text) <= visible_chars:
        return "*" * len(text)
    return text[:visible_chars] + "*" * 8


def format_table(headers: list, rows: list) -> str:
    """Format data as a simple table."""
    if not rows:
        return "No data to display."

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    lines = [header_line, "-" * len(header_line)]
    for row in rows:
        lines.append(" | ".join(str(cell).ljust(widths[i]) for i, cell in enumerate(row)))
    return "\n".join(lines)


class CLI:
    """Command-line interface for the access keychain."""

    def __init__(self):
        self.manager: Optional[KeychainManager] = None
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="access-keychain",
            description="Manage API access keys",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=f"""
Examples:
  access-keychain create                  # Create a new access key
  access-keychain list                    # List key ids
  access-keychain remove ABC123...        # Remove a key
  access-keychain verify ABC123...        # Check a secret for a key

The keychain file defaults to ${KEYCHAIN_PATH_ENV} or ~/.access_keychain/access.keychain
            """
        )

        parser.add_argument(
            "--keychain", "-k",
            help="Keychain file",
            default=None
        )
        parser.add_argument(
            "--log-dir",
            help="Audit log directory (default: ~/.access_keychain/logs)",
            default=None
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Echo audit log entries to the console"
        )

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        subparsers.add_parser("create", help="Create a new access key")
        subparsers.add_parser("list", help="List access key ids")

        remove_parser = subparsers.add_parser("remove", help="Remove an access key")
        remove_parser.add_argument("id", help="Key ID")
        remove_parser.add_argument(
            "--force", "-f",
            action="store_true",
            help="Skip confirmation"
        )

        verify_parser = subparsers.add_parser("verify", help="Check a secret against a key")
        verify_parser.add_argument("id", help="Key ID")
        verify_parser.add_argument(
            "--secret", "-s",
            help="Secret (will prompt if not provided)"
        )

        subparsers.add_parser("stats", help="Show keychain statistics")

        logs_parser = subparsers.add_parser("logs", help="View audit logs")
        logs_parser.add_argument(
            "--lines", "-n",
            type=int,
            default=50,
            help="Number of lines to show (default: 50)"
        )

        return parser

    def cmd_create(self, args: argparse.Namespace) -> int:
        """Handle create command."""
        access_key = self.manager.create_key()

        print(f"Access Key ID: {access_key.id}")
        print(f"Secret:        {access_key.secret}")
        print("\nStore the secret now; it cannot be shown again.")
        return 0

    def cmd_list(self, args: argparse.Namespace) -> int:
        """Handle list command."""
        ids = self.manager.list_keys()
        if not ids:
            print("No keys stored.")
            return 0

        keychain = self.manager.keychain
        rows = [[key_id, mask_hash(keychain.get_hash(key_id) or b"")] for key_id in ids]
        print(format_table(["ID", "Hash"], rows))
        return 0

    def cmd_remove(self, args: argparse.Namespace) -> int:
        """Handle remove command."""
        if not args.force:
            confirm = input(f"Are you sure you want to remove key {args.id}? [y/N]: ")
            if confirm.lower() != 'y':
                print("Removal cancelled.")
                return 0

        if self.manager.remove_key(args.id):
            print(f"Key {args.id} removed.")
            return 0
        print(f"Key {args.id} not found.")
        return 1

    def cmd_verify(self, args: argparse.Namespace) -> int:
        """Handle verify command."""
        secret = args.secret
        if secret is None:
            secret = getpass.getpass("Secret: ")

        if self.manager.verify(args.id, secret):
            print("Allowed.")
            return 0
        print("Denied.")
        return 1

    def cmd_stats(self, args: argparse.Namespace) -> int:
        """Handle stats command."""
        stats = self.manager.get_stats()

        print("\nKeychain Statistics:")
        print(f"  File: {stats['path']}{'' if stats['exists'] else ' (not created yet)'}")
        print(f"  Keys: {stats['keys']}")
        print(f"  Cache capacity: {stats['cache_size']}")
        return 0

    def cmd_logs(self, args: argparse.Namespace) -> int:
        """Handle logs command."""
        logs = self.manager.get_logs(args.lines)
        if not logs:
            print("No logs available.")
            return 0

        print("Recent audit logs:\n")
        for log in logs:
            print(log.rstrip())
        return 0

    def run(self, args: Optional[list] = None) -> int:
        """
        Run the CLI.

        Args:
            args: Command-line arguments (uses sys.argv if None)

        Returns:
            Exit code
        """
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 0

        self.manager = KeychainManager(
            keychain_path=parsed.keychain,
            log_dir=parsed.log_dir,
            console_output=parsed.verbose
        )

        command_handlers = {
            "create": self.cmd_create,
            "list": self.cmd_list,
            "remove": self.cmd_remove,
            "verify": self.cmd_verify,
            "stats": self.cmd_stats,
            "logs": self.cmd_logs,
        }

        try:
            return command_handlers[parsed.command](parsed)
        except KeyboardInterrupt:
            print("\nOperation cancelled.")
            return 130
        except KeychainError as e:
            print(f"Error: {e}")
            return 1
        finally:
            self.manager.close()


def main() -> int:
    """Main entry point."""
    cli = CLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
