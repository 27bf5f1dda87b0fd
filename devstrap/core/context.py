"""Run context passed explicitly from the CLI down to the engine."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from devstrap.core.state import STATE_FILE_NAME

LOCK_FILE_NAME = "devstrap.lock"


def _always_yes(prompt: str) -> bool:
    return True


@dataclass(frozen=True)
class RunContext:
    """
    Process-wide options for one devstrap run.

    Attributes:
        config_path: Configuration file; state and lock files live beside it
        dry_run: Report every mutating action instead of performing it
        prune: Remove tracked packages that are no longer configured
        refresh: Invalidate the version lock before resolving runtimes
        refresh_runtimes: Limit the refresh to these runtimes (empty: all)
        yes: Skip confirmation prompts
        retry_stuck: Retry removals that exceeded the failure threshold
        confirm: Prompt callback returning the user's answer
    """

    config_path: Path = Path("devstrap.yaml")
    dry_run: bool = False
    prune: bool = False
    refresh: bool = False
    refresh_runtimes: tuple = ()
    yes: bool = False
    retry_stuck: bool = False
    confirm: Callable[[str], bool] = field(default=_always_yes, compare=False)

    @property
    def base_dir(self) -> Path:
        return Path(self.config_path).parent

    @property
    def state_path(self) -> Path:
        return self.base_dir / STATE_FILE_NAME

    @property
    def lock_path(self) -> Path:
        return self.base_dir / LOCK_FILE_NAME

    def ask(self, prompt: str) -> bool:
        """Ask for confirmation unless running non-interactively."""
        if self.yes or self.dry_run:
            return True
        return self.confirm(prompt)
