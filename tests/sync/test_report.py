"""
Tests for the run error report.
"""

from devstrap.core.exceptions import (
    CommandError,
    NotAvailableError,
    VersionResolutionError,
)
from devstrap.sync.report import ErrorKind, ErrorReport


class TestErrorReport:
    """Tests for ErrorReport."""

    def test_empty(self):
        """Test a clean run exits 0."""
        assert ErrorReport().exit_code == 0

    def test_not_available_is_skip(self):
        """Test unavailable items do not fail the run."""
        report = ErrorReport()
        entry = report.record("exa", NotAvailableError("exa", "no backend"), "tools")

        assert report.skipped == [entry]
        assert entry.kind is ErrorKind.NOT_AVAILABLE
        assert entry.message == "no backend"
        assert report.exit_code == 0

    def test_command_error_is_failure(self):
        """Test process failures set exit code 1."""
        report = ErrorReport()
        entry = report.record("bat", CommandError(["apt-get", "install", "bat"], 100))

        assert entry.kind is ErrorKind.PROCESS_FAILURE
        assert report.has_failures
        assert report.exit_code == 1

    def test_other_errors(self):
        """Test other devstrap errors are generic failures."""
        report = ErrorReport()
        entry = report.record("runtime node", VersionResolutionError("no lts"))
        assert entry.kind is ErrorKind.ERROR

    def test_failures_in_group(self):
        """Test failures can be listed per group."""
        report = ErrorReport()
        report.add_failure("a", "boom", "base")
        report.add_failure("b", "boom", "tools")
        assert [e.item for e in report.failures_in("base")] == ["a"]

    def test_entry_str(self):
        """Test entries render with their group."""
        report = ErrorReport()
        assert str(report.add_failure("a", "boom", "base")) == "a [base]: boom"
        assert str(report.add_skip("b", "none")) == "b: none"
