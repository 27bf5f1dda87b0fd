"""
Accumulated per-item outcomes of a run.

Failures local to one package or runtime never stop the run; they are
collected here and printed at the end. Skips (no usable backend) are kept
apart from failures and do not affect the exit code.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from devstrap.core.exceptions import CommandError, NotAvailableError

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    NOT_AVAILABLE = "not available"
    PROCESS_FAILURE = "process failure"
    STUCK_REMOVAL = "manual intervention needed"
    ERROR = "error"


@dataclass
class ReportEntry:
    item: str
    kind: ErrorKind
    message: str
    group: Optional[str] = None

    def __str__(self) -> str:
        where = f" [{self.group}]" if self.group else ""
        return f"{self.item}{where}: {self.message}"


@dataclass
class ErrorReport:
    failures: list[ReportEntry] = field(default_factory=list)
    skipped: list[ReportEntry] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    @property
    def exit_code(self) -> int:
        return 1 if self.failures else 0

    def add_skip(self, item: str, reason: str, group: Optional[str] = None) -> ReportEntry:
        entry = ReportEntry(item, ErrorKind.NOT_AVAILABLE, reason, group)
        self.skipped.append(entry)
        logger.warning(f"Skipping {entry}")
        return entry

    def add_failure(
        self,
        item: str,
        message: str,
        group: Optional[str] = None,
        kind: ErrorKind = ErrorKind.PROCESS_FAILURE,
    ) -> ReportEntry:
        entry = ReportEntry(item, kind, message, group)
        self.failures.append(entry)
        logger.error(f"Failed: {entry}")
        return entry

    def record(self, item: str, error: Exception, group: Optional[str] = None) -> ReportEntry:
        """File an exception as a skip or a failure according to its type."""
        if isinstance(error, NotAvailableError):
            return self.add_skip(item, error.reason or str(error), group)
        kind = ErrorKind.PROCESS_FAILURE if isinstance(error, CommandError) else ErrorKind.ERROR
        return self.add_failure(item, str(error), group, kind)

    def failures_in(self, group: str) -> list[ReportEntry]:
        return [e for e in self.failures if e.group == group]


__all__ = ["ErrorKind", "ReportEntry", "ErrorReport"]
