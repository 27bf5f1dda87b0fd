"""
Version lock cache for runtimes.

The lock file (``devstrap.lock``, YAML, next to the configuration) pins the
concrete version a symbolic request such as ``latest`` or ``lts`` resolved
to. An entry is keyed by ``(runtime, requested)``; once written it is reused
on every run until the requested string changes or the entry is refreshed.

Example:
    >>> from devstrap.config.lockfile import LockFileManager
    >>>
    >>> manager = LockFileManager(Path('devstrap.lock'))
    >>> lock = manager.load()
    >>> if lock.needs_resolution('node', 'lts'):
    ...     lock.set_runtime('node', 'lts', '20.11.0', 'fnm')
    >>> manager.save(lock)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from devstrap.core.exceptions import PersistenceError
from devstrap.core.filesystem import atomic_write
from devstrap.core.state import utc_timestamp

logger = logging.getLogger(__name__)


@dataclass
class VersionLockEntry:
    """
    A pinned resolution of a symbolic runtime version.

    Attributes:
        requested: Version string as written in the configuration
        resolved: Concrete version it resolved to
        manager: Version manager that performed the resolution
        resolved_at: ISO 8601 timestamp of the resolution
    """

    requested: str
    resolved: str
    manager: str
    resolved_at: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for YAML serialization."""
        data = {
            "requested": self.requested,
            "resolved": self.resolved,
            "manager": self.manager,
        }
        if self.resolved_at is not None:
            data["resolved_at"] = self.resolved_at
        return data

    @staticmethod
    def from_dict(data: dict) -> "VersionLockEntry":
        """Create from dictionary loaded from YAML."""
        return VersionLockEntry(
            requested=str(data["requested"]),
            resolved=str(data["resolved"]),
            manager=str(data["manager"]),
            resolved_at=data.get("resolved_at"),
        )


@dataclass
class LockFile:
    """
    Complete lock file structure.

    ``runtimes`` maps a runtime name to its entries, one per distinct
    requested string.
    """

    version: int = 1
    runtimes: dict[str, list[VersionLockEntry]] = field(default_factory=dict)

    def get(self, name: str, requested: str) -> Optional[VersionLockEntry]:
        for entry in self.runtimes.get(name, []):
            if entry.requested == requested:
                return entry
        return None

    def needs_resolution(self, name: str, requested: str) -> bool:
        """True if no entry exists for this exact ``(name, requested)`` pair."""
        return self.get(name, requested) is None

    def set_runtime(
        self, name: str, requested: str, resolved: str, manager: str
    ) -> VersionLockEntry:
        """Add or replace the entry for ``(name, requested)``."""
        entry = VersionLockEntry(
            requested=requested,
            resolved=resolved,
            manager=manager,
            resolved_at=utc_timestamp(),
        )
        entries = [e for e in self.runtimes.get(name, []) if e.requested != requested]
        entries.append(entry)
        self.runtimes[name] = entries
        return entry

    def invalidate(self, name: str) -> bool:
        """Drop every entry for a runtime. Returns True if anything was removed."""
        return self.runtimes.pop(name, None) is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for YAML serialization."""
        return {
            "version": self.version,
            "runtimes": {
                name: [entry.to_dict() for entry in entries]
                for name, entries in sorted(self.runtimes.items())
            },
        }

    @staticmethod
    def from_dict(data: Optional[dict]) -> "LockFile":
        """
        Create from dictionary loaded from YAML.

        A runtime may map to a single entry instead of a list.
        """
        data = data or {}
        runtimes: dict[str, list[VersionLockEntry]] = {}
        for name, raw in (data.get("runtimes") or {}).items():
            items = raw if isinstance(raw, list) else [raw]
            runtimes[str(name)] = [VersionLockEntry.from_dict(item) for item in items]
        return LockFile(version=data.get("version", 1), runtimes=runtimes)


class LockFileManager:
    """
    Reads, writes and deletes the lock file.

    Read failures degrade to an empty lock (with a warning) so a damaged lock
    file only costs a re-resolution.

    Attributes:
        lock_file_path: Path to the YAML lock file
    """

    def __init__(self, lock_file_path: Path):
        self.lock_file_path = Path(lock_file_path)

    def load(self) -> LockFile:
        if not self.lock_file_path.exists():
            logger.debug(f"Lock file not found: {self.lock_file_path}")
            return LockFile()

        try:
            with open(self.lock_file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)

            lock = LockFile.from_dict(data)
            logger.debug(f"Loaded lock file: {self.lock_file_path}")
            return lock

        except (OSError, yaml.YAMLError, TypeError, KeyError, AttributeError) as e:
            logger.warning(
                f"Failed to load lock file {self.lock_file_path}: {e}. "
                f"Versions will be resolved again."
            )
            return LockFile()

    def save(self, lock: LockFile) -> None:
        """
        Save lock file to disk in YAML format.

        Raises:
            PersistenceError: If the file cannot be written
        """
        content = yaml.safe_dump(
            lock.to_dict(), default_flow_style=False, sort_keys=False
        )
        try:
            atomic_write(self.lock_file_path, content)
        except OSError as e:
            raise PersistenceError(
                f"Failed to write lock file {self.lock_file_path}: {e}"
            ) from e

        logger.debug(f"Lock file saved: {self.lock_file_path}")

    def save_or_log(self, lock: LockFile) -> bool:
        """Save the lock file, logging instead of raising on failure."""
        try:
            self.save(lock)
            return True
        except PersistenceError as e:
            logger.error(str(e))
            return False

    def delete(self) -> bool:
        """
        Remove the lock file so every symbolic version resolves again.

        Returns:
            True if a file was removed
        """
        try:
            self.lock_file_path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(
                f"Failed to delete lock file {self.lock_file_path}: {e}"
            ) from e
        logger.info(f"Removed lock file: {self.lock_file_path}")
        return True


__all__ = ["VersionLockEntry", "LockFile", "LockFileManager"]
