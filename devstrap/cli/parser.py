"""
devstrap CLI argument parser.

This module implements the command-line interface for devstrap using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from devstrap import __version__

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = "sync"


class CLI:
    """devstrap command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="devstrap",
            description="devstrap - declarative development machine bootstrapper",
            epilog='Use "devstrap COMMAND --help" for command-specific help. '
            "Without a command, devstrap runs 'sync'.",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"devstrap {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            "-c",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./devstrap.yaml)",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_sync_command(subparsers)
        self._add_list_command(subparsers)
        self._add_status_command(subparsers)
        self._add_forget_command(subparsers)

        return parser

    def _add_sync_command(self, subparsers):
        """Add 'sync' subcommand."""
        parser = subparsers.add_parser(
            "sync",
            help="Install configured packages and runtimes",
            description="Converge this machine toward devstrap.yaml",
        )
        parser.add_argument(
            "--dry-run",
            "-n",
            action="store_true",
            help="Show what would be done without changing anything",
        )
        parser.add_argument(
            "--yes", "-y", action="store_true", help="Do not ask for confirmation"
        )
        parser.add_argument(
            "--prune",
            action="store_true",
            help="Remove packages installed by devstrap that are no longer configured",
        )
        parser.add_argument(
            "--refresh",
            nargs="*",
            metavar="RUNTIME",
            help="Re-resolve symbolic runtime versions (all, or only the named runtimes)",
        )
        parser.add_argument(
            "--retry-stuck",
            action="store_true",
            help="Retry removals that already failed too many times",
        )

    def _add_list_command(self, subparsers):
        """Add 'list' subcommand."""
        subparsers.add_parser(
            "list",
            help="List known packages",
            description="List every package devstrap knows how to install",
        )

    def _add_status_command(self, subparsers):
        """Add 'status' subcommand."""
        subparsers.add_parser(
            "status",
            help="Show what devstrap has installed",
            description="Show tracked packages, runtimes and pinned runtime versions",
        )

    def _add_forget_command(self, subparsers):
        """Add 'forget' subcommand."""
        parser = subparsers.add_parser(
            "forget",
            help="Stop tracking packages without uninstalling them",
            description="Delete state records for packages removed by hand",
        )
        parser.add_argument("packages", nargs="+", metavar="ID", help="Package ids")
        parser.add_argument(
            "--yes", "-y", action="store_true", help="Do not ask for confirmation"
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        # Configure logging
        self._configure_logging(parsed_args)

        if not parsed_args.command:
            parsed_args.command = DEFAULT_COMMAND

        # Dispatch to command handler
        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "sync": "devstrap.cli.commands.sync",
            "list": "devstrap.cli.commands.list",
            "status": "devstrap.cli.commands.status",
            "forget": "devstrap.cli.commands.forget",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            logger.error(f"Failed to load command module: {e}")
            if args.verbose:
                import traceback

                traceback.print_exc()
            return 1

        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
