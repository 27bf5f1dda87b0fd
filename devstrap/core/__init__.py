"""
Core functionality for devstrap.

This package contains the foundational modules that other components depend on.
"""

from .exceptions import (
    DevstrapError,
    CapabilityProbeError,
    NotAvailableError,
    CommandError,
    VersionResolutionError,
    DownloadError,
    PersistenceError,
    RunLockError,
    ConfigError,
    ConfigurationInvalidError,
)

from .platform import (
    Manager,
    Capabilities,
    detect_capabilities,
    clear_capabilities_cache,
)

from .state import (
    DevstrapState,
    PackageRecord,
    RuntimeRecord,
    StateManager,
)

from .context import RunContext

from .locking import run_lock

__all__ = [
    # Exceptions
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
    # Platform
    "Manager",
    "Capabilities",
    "detect_capabilities",
    "clear_capabilities_cache",
    # State
    "DevstrapState",
    "PackageRecord",
    "RuntimeRecord",
    "StateManager",
    "RunContext",
    "run_lock",
]
