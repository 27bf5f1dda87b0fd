"""
Language runtime management for devstrap.

Version resolution strategies, the resolve-once lock logic, and version
manager operations.
"""

from .strategy import VersionManager, VersionResolverStrategy
from .resolution import (
    SYMBOLIC_VERSIONS,
    DEFAULT_MANAGERS,
    is_symbolic,
    manager_for,
    get_strategy,
    resolve_runtime_version,
)

__all__ = [
    "VersionManager",
    "VersionResolverStrategy",
    "SYMBOLIC_VERSIONS",
    "DEFAULT_MANAGERS",
    "is_symbolic",
    "manager_for",
    "get_strategy",
    "resolve_runtime_version",
]
