"""
Forget command implementation.

Deletes state records without uninstalling anything. This is how a package
whose removal keeps failing is released after removing it by hand.
"""

import logging

from devstrap.cli.utils import build_context, print_error, print_warning
from devstrap.core.exceptions import PersistenceError, RunLockError
from devstrap.core.locking import run_lock
from devstrap.core.state import StateManager

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the forget command.

    Args:
        args: Parsed command-line arguments (``packages``: ids to forget)

    Returns:
        Exit code (1 if the state file could not be written)
    """
    ctx = build_context(args)
    manager = StateManager(ctx.state_path)

    try:
        with run_lock(ctx.config_path):
            state = manager.load()
            known = [pid for pid in args.packages if state.has_package(pid)]
            for pid in args.packages:
                if pid not in known:
                    print_warning(f"{pid} is not tracked")

            if not known:
                return 0
            if not ctx.ask(f"Stop tracking {', '.join(known)}?"):
                print("Cancelled")
                return 0

            for pid in known:
                state.remove_package(pid)
            manager.save(state)
    except (RunLockError, PersistenceError) as e:
        print_error(str(e))
        return 1

    for pid in known:
        print(f"Forgot {pid}")
    return 0
