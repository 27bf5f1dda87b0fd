"""
Single-instance guard for devstrap runs.

Package managers serialize access to their own databases and break under
concurrent invocation, and the state and lock files assume one writer. A
``sync`` therefore holds a file lock next to the configuration for its whole
duration.

Usage:
    from devstrap.core.locking import run_lock

    with run_lock(Path("devstrap.yaml")):
        reconcile()
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

from devstrap.core.exceptions import RunLockError

logger = logging.getLogger(__name__)

RUN_LOCK_FILE_NAME = "devstrap.run.lock"


def run_lock_path(config_path: Path) -> Path:
    return Path(config_path).parent / RUN_LOCK_FILE_NAME


@contextmanager
def run_lock(config_path: Path, timeout: float = 0):
    """
    Hold the run lock for a configuration.

    Args:
        config_path: Configuration file the run operates on
        timeout: Seconds to wait; 0 fails immediately if the lock is held

    Raises:
        RunLockError: If another devstrap process holds the lock
    """
    lock_path = run_lock_path(config_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(lock_path, timeout=timeout)

    try:
        lock.acquire()
    except LockTimeout as e:
        raise RunLockError(
            f"Another devstrap process is running for {config_path} "
            f"(lock held: {lock_path})"
        ) from e

    logger.debug(f"Acquired run lock: {lock_path}")
    try:
        yield
    finally:
        lock.release()
        logger.debug(f"Released run lock: {lock_path}")


__all__ = ["run_lock", "run_lock_path", "RUN_LOCK_FILE_NAME", "LockTimeout"]
