"""
Configuration for devstrap.

Desired configuration parsing, the package catalog and the runtime version
lock file.
"""

from .parser import (
    DevstrapConfig,
    PackageGroup,
    RuntimeSpec,
    parse_config,
)
from .lockfile import (
    LockFile,
    LockFileManager,
    VersionLockEntry,
)
from .catalog import (
    BackendMapping,
    Catalog,
    GithubSource,
)

__all__ = [
    "DevstrapConfig",
    "PackageGroup",
    "RuntimeSpec",
    "parse_config",
    "LockFile",
    "LockFileManager",
    "VersionLockEntry",
    "BackendMapping",
    "Catalog",
    "GithubSource",
]
