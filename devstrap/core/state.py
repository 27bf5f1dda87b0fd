"""
State store for devstrap.

The state file is devstrap's own ledger of what *it* installed, kept next to
the configuration as ``devstrap.state`` (JSON). A package appears here only
after an install succeeded and disappears only after an uninstall succeeded,
so it is the sole input to pruning.

Example:
    >>> from pathlib import Path
    >>> from devstrap.core.state import StateManager
    >>>
    >>> manager = StateManager(Path('devstrap.state'))
    >>> state = manager.load()
    >>> state.add_package('ripgrep', 'cargo')
    >>> manager.save(state)
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from devstrap.core.exceptions import PersistenceError
from devstrap.core.filesystem import atomic_write

logger = logging.getLogger(__name__)

STATE_FILE_NAME = "devstrap.state"
STATE_VERSION = 1


def utc_timestamp() -> str:
    """Current time as an ISO 8601 UTC timestamp."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


@dataclass
class PackageRecord:
    """
    A package devstrap is tracking.

    Attributes:
        method: Install method name ('apt', 'brew', 'cargo', 'github', ...)
        version: Pinned version it was installed with, if any
        installed_at: ISO 8601 timestamp of the successful install
        removal_failures: Consecutive failed prune attempts
        adopted: Found already installed by other means; never uninstalled
    """

    method: str
    version: Optional[str] = None
    installed_at: str = field(default_factory=utc_timestamp)
    removal_failures: int = 0
    adopted: bool = False

    def to_dict(self) -> dict:
        data = {
            "method": self.method,
            "version": self.version,
            "installed_at": self.installed_at,
        }
        if self.removal_failures:
            data["removal_failures"] = self.removal_failures
        if self.adopted:
            data["adopted"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PackageRecord":
        return cls(
            method=data["method"],
            version=data.get("version"),
            installed_at=data.get("installed_at", ""),
            removal_failures=int(data.get("removal_failures", 0)),
            adopted=bool(data.get("adopted", False)),
        )


@dataclass
class RuntimeRecord:
    """
    A runtime installed through a version manager.

    Attributes:
        version: The default version
        manager: Version manager name
        installed_at: ISO 8601 timestamp of the last successful pass
        versions: Every version devstrap installed, the default included
    """

    version: str
    manager: str
    installed_at: str = field(default_factory=utc_timestamp)
    versions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "manager": self.manager,
            "installed_at": self.installed_at,
            "versions": list(self.versions),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RuntimeRecord":
        return cls(
            version=data["version"],
            manager=data["manager"],
            installed_at=data.get("installed_at", ""),
            versions=list(data.get("versions") or [data["version"]]),
        )


@dataclass
class DevstrapState:
    """Everything devstrap has installed on this machine."""

    version: int = STATE_VERSION
    packages: dict[str, PackageRecord] = field(default_factory=dict)
    runtimes: dict[str, RuntimeRecord] = field(default_factory=dict)

    def has_package(self, package_id: str) -> bool:
        return package_id in self.packages

    def package_ids(self) -> list[str]:
        """Tracked package IDs in a stable (sorted) order."""
        return sorted(self.packages)

    def add_package(
        self,
        package_id: str,
        method: str,
        version: Optional[str] = None,
        adopted: bool = False,
    ) -> PackageRecord:
        record = PackageRecord(method=method, version=version, adopted=adopted)
        self.packages[package_id] = record
        return record

    def remove_package(self, package_id: str) -> Optional[PackageRecord]:
        return self.packages.pop(package_id, None)

    def add_runtime(
        self,
        name: str,
        version: str,
        manager: str,
        versions: Optional[list[str]] = None,
    ) -> RuntimeRecord:
        versions = list(dict.fromkeys([*(versions or []), version]))
        record = RuntimeRecord(version=version, manager=manager, versions=versions)
        self.runtimes[name] = record
        return record

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "packages": {k: v.to_dict() for k, v in sorted(self.packages.items())},
            "runtimes": {k: v.to_dict() for k, v in sorted(self.runtimes.items())},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DevstrapState":
        return cls(
            version=data.get("version", STATE_VERSION),
            packages={
                k: PackageRecord.from_dict(v)
                for k, v in (data.get("packages") or {}).items()
            },
            runtimes={
                k: RuntimeRecord.from_dict(v)
                for k, v in (data.get("runtimes") or {}).items()
            },
        )


class StateManager:
    """
    Loads and saves the state file.

    A missing file means a first run. An unreadable or corrupted file is
    logged and replaced by an empty in-memory state so the run can continue;
    the next successful save rewrites it.

    Attributes:
        state_file: Path to the JSON state file
    """

    def __init__(self, state_file: Path):
        self.state_file = Path(state_file)

    @classmethod
    def beside(cls, config_path: Path) -> "StateManager":
        """State manager for the state file next to a configuration file."""
        return cls(Path(config_path).parent / STATE_FILE_NAME)

    def load(self) -> DevstrapState:
        """
        Load state from disk.

        Returns:
            Loaded state, or an empty state if the file is missing or invalid
        """
        if not self.state_file.exists():
            logger.debug(f"State file not found, starting empty: {self.state_file}")
            return DevstrapState()

        try:
            with open(self.state_file, "r", encoding="utf-8") as f:
                data = json.load(f)

            if data.get("version", STATE_VERSION) != STATE_VERSION:
                logger.warning(
                    f"State version {data.get('version')} not supported, "
                    f"reading as v{STATE_VERSION}"
                )

            state = DevstrapState.from_dict(data)
            logger.debug(
                f"Loaded state from {self.state_file} "
                f"({len(state.packages)} packages, {len(state.runtimes)} runtimes)"
            )
            return state

        except (OSError, json.JSONDecodeError, TypeError, KeyError, ValueError, AttributeError) as e:
            logger.warning(
                f"Invalid state file {self.state_file}, starting empty: {e}"
            )
            return DevstrapState()

    def save(self, state: DevstrapState) -> None:
        """
        Save state to disk atomically.

        Raises:
            PersistenceError: If the file cannot be written
        """
        content = json.dumps(state.to_dict(), indent=2) + "\n"
        try:
            atomic_write(self.state_file, content)
        except OSError as e:
            raise PersistenceError(
                f"Failed to write state file {self.state_file}: {e}"
            ) from e
        logger.debug(f"Saved state to {self.state_file}")

    def save_or_log(self, state: DevstrapState) -> bool:
        """
        Save state, logging instead of raising on failure.

        Returns:
            True if the state was written
        """
        try:
            self.save(state)
            return True
        except PersistenceError as e:
            logger.error(str(e))
            return False


__all__ = [
    "STATE_FILE_NAME",
    "PackageRecord",
    "RuntimeRecord",
    "DevstrapState",
    "StateManager",
    "utc_timestamp",
]
