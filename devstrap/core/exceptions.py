"""
Centralized exception hierarchy for devstrap.

Per-item failures (a single package or runtime) are caught by the reconciler
and runtime coordinator and turned into error report entries. Only
configuration and capability-probe errors abort a run before any mutation.
"""

from typing import Optional, Sequence


# ============================================================================
# Base Exceptions
# ============================================================================


class DevstrapError(Exception):
    """Base exception for all devstrap errors."""

    pass


# ============================================================================
# Host / Backend Availability
# ============================================================================


class CapabilityProbeError(DevstrapError):
    """Raised when the host platform cannot be probed or is unsupported."""

    pass


class NotAvailableError(DevstrapError):
    """No viable backend or version manager exists on this host."""

    def __init__(self, item: str, reason: str = ""):
        self.item = item
        self.reason = reason
        msg = f"No available installation method for '{item}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


# ============================================================================
# External Process Exceptions
# ============================================================================


class CommandError(DevstrapError):
    """An external command exited with a non-zero status."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command failed: {' '.join(self.command)}"
        if returncode is not None:
            msg += f" (exit code {returncode})"
        if stderr:
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)


class VersionResolutionError(DevstrapError):
    """A version manager could not resolve a symbolic version."""

    pass


class DownloadError(DevstrapError):
    """Downloading a release artifact failed."""

    pass


# ============================================================================
# Persistence Exceptions
# ============================================================================


class PersistenceError(DevstrapError):
    """The state file or the lock file could not be read or written."""

    pass


class RunLockError(DevstrapError):
    """Another devstrap process is already running against this configuration."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigError(DevstrapError):
    """The configuration file is malformed."""

    pass


class ConfigurationInvalidError(ConfigError):
    """The configuration references unknown packages or managers."""

    def __init__(self, message: str, issues: Optional[list] = None):
        self.issues = issues or []
        super().__init__(message)


__all__ = [
    "DevstrapError",
    "CapabilityProbeError",
    "NotAvailableError",
    "CommandError",
    "VersionResolutionError",
    "DownloadError",
    "PersistenceError",
    "RunLockError",
    "ConfigError",
    "ConfigurationInvalidError",
]
