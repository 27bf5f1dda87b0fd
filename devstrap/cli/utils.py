"""
Shared utilities for CLI commands.

Provides common functionality used across multiple CLI commands to
eliminate duplication and ensure consistent behavior.
"""

import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Optional

from devstrap.config.parser import DEFAULT_CONFIG_NAME
from devstrap.core.context import RunContext
from devstrap.sync.report import ErrorReport

logger = logging.getLogger(__name__)


# ============================================================================
# Run Context
# ============================================================================


def confirm(prompt: str) -> bool:
    """
    Ask a yes/no question on the terminal; an empty answer means yes.

    EOF (no terminal) counts as no.
    """
    try:
        response = input(f"{prompt} [Y/n] ").strip().lower()
    except EOFError:
        print()
        return False
    return not response or response in ["y", "yes"]


def config_path_from_args(args: Namespace) -> Path:
    config = getattr(args, "config", None)
    return Path(config) if config else Path.cwd() / DEFAULT_CONFIG_NAME


def build_context(args: Namespace) -> RunContext:
    """
    Build the run context from parsed arguments.

    Commands that do not define a flag get its default.
    """
    refresh = getattr(args, "refresh", None)
    return RunContext(
        config_path=config_path_from_args(args),
        dry_run=getattr(args, "dry_run", False),
        prune=getattr(args, "prune", False),
        refresh=refresh is not None,
        refresh_runtimes=tuple(refresh or ()),
        yes=getattr(args, "yes", False),
        retry_stuck=getattr(args, "retry_stuck", False),
        confirm=confirm,
    )


# ============================================================================
# User Interface / Output Formatting
# ============================================================================


def print_box(text: str, width: int = 60, char: str = "="):
    """Print text in a box for emphasis."""
    print(char * width)
    print(text)
    print(char * width)


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)


def print_warning(message: str):
    """Print warning message to stderr."""
    print(f"WARNING: {message}", file=sys.stderr)


def safe_print(message: str, file=None):
    """
    Print message with safe encoding handling for limited consoles.

    Falls back to ASCII-safe characters if Unicode symbols can't be encoded.
    """
    try:
        print(message, file=file)
    except UnicodeEncodeError:
        safe_message = (
            message.replace("✓", "[OK]")
            .replace("✗", "[X]")
            .replace("↓", "+")
            .replace("↻", "~")
            .replace("⚠", "WARNING:")
        )
        print(safe_message, file=file)


def print_report(report: ErrorReport):
    """Print the end-of-run summary of skips and failures."""
    print()
    if report.skipped:
        safe_print(f"⚠ Skipped ({len(report.skipped)}):")
        for entry in report.skipped:
            print(f"  - {entry}")

    if report.failures:
        safe_print(f"✗ Failed ({len(report.failures)}):")
        for entry in report.failures:
            print(f"  - {entry} ({entry.kind.value})")
    else:
        safe_print("✓ Sync complete")
