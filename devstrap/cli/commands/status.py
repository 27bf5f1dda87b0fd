"""
Status command implementation.

Shows what devstrap is tracking: packages and runtimes from the state file,
and the resolved runtime versions pinned in the lock file. Reads only; never
touches the system.
"""

import logging

from devstrap.cli.utils import build_context, print_box, safe_print
from devstrap.config.lockfile import LockFileManager
from devstrap.core.state import StateManager
from devstrap.sync.reconciler import MAX_REMOVAL_ATTEMPTS

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the status command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    ctx = build_context(args)
    state = StateManager(ctx.state_path).load()
    lock = LockFileManager(ctx.lock_path).load()

    print_box(f"devstrap status ({ctx.config_path})")

    print(f"\nPackages ({len(state.packages)}):")
    if not state.packages:
        print("  (none)")
    for package_id in state.package_ids():
        record = state.packages[package_id]
        line = f"  {package_id}: {record.method}"
        if record.version:
            line += f" {record.version}"
        if record.adopted:
            line += " (already installed, not managed)"
        if record.removal_failures >= MAX_REMOVAL_ATTEMPTS:
            line += " ⚠ removal failed, manual intervention needed"
        elif record.removal_failures:
            line += f" (removal failed {record.removal_failures}x)"
        safe_print(line)

    print(f"\nRuntimes ({len(state.runtimes)}):")
    if not state.runtimes:
        print("  (none)")
    for name, runtime in sorted(state.runtimes.items()):
        line = f"  {name}: {runtime.version} via {runtime.manager}"
        others = [v for v in runtime.versions if v != runtime.version]
        if others:
            line += f" (also {', '.join(others)})"
        print(line)

    if lock.runtimes:
        print("\nPinned versions:")
        for name, entries in sorted(lock.runtimes.items()):
            for entry in entries:
                print(f"  {name} {entry.requested} -> {entry.resolved} ({entry.manager})")

    return 0
