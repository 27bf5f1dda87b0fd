"""
External process invocation.

Every backend call goes through this module so it can be mocked at a single
seam. Calls block until the child exits; no timeout is enforced.
"""

import logging
import subprocess
from typing import Optional, Sequence

from devstrap.core.exceptions import CommandError

logger = logging.getLogger(__name__)


def run_command(
    cmd: Sequence[str], capture_output: bool = False, env: Optional[dict] = None
) -> subprocess.CompletedProcess:
    """
    Run a command and raise if it exits non-zero.

    When ``capture_output`` is False the child inherits the terminal, so
    package manager progress (and sudo prompts) reach the user directly.

    Raises:
        CommandError: If the executable is missing or exits non-zero
    """
    cmd = list(cmd)
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, capture_output=capture_output, text=True, env=env)
    except OSError as e:
        raise CommandError(cmd, stderr=str(e)) from e

    if result.returncode != 0:
        raise CommandError(cmd, result.returncode, result.stderr or "")
    return result


def run_command_output(cmd: Sequence[str]) -> str:
    """Run a command and return its standard output."""
    return run_command(cmd, capture_output=True).stdout or ""


def run_shell(script: str) -> subprocess.CompletedProcess:
    """Run a shell pipeline through ``sh -c``."""
    return run_command(["sh", "-c", script])


def command_succeeds(cmd: Sequence[str]) -> bool:
    """Return True if the command exits zero, swallowing its output."""
    try:
        run_command(cmd, capture_output=True)
        return True
    except CommandError:
        return False
