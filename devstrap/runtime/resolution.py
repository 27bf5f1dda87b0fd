"""
Resolve-once runtime version resolution.

Concrete versions pass through untouched. Symbolic versions are looked up in
the lock file first; only a miss reaches the manager's strategy, and the
result is written back so later runs reuse it.

Example:
    >>> version, mutated = resolve_runtime_version("node", "lts", "fnm", lock)
    >>> version
    '20.11.0'
"""

import logging
from typing import Optional

from devstrap.config.lockfile import LockFile
from devstrap.core.exceptions import NotAvailableError
from devstrap.runtime.strategies.standard import (
    FnmStrategy,
    MiseStrategy,
    PyenvStrategy,
    RbenvStrategy,
    RustupStrategy,
    SdkmanStrategy,
)
from devstrap.runtime.strategy import VersionManager, VersionResolverStrategy

logger = logging.getLogger(__name__)

SYMBOLIC_VERSIONS = frozenset({"latest", "lts", "stable", "beta", "nightly"})

STRATEGIES: dict[VersionManager, type] = {
    VersionManager.MISE: MiseStrategy,
    VersionManager.RUSTUP: RustupStrategy,
    VersionManager.FNM: FnmStrategy,
    VersionManager.SDKMAN: SdkmanStrategy,
    VersionManager.PYENV: PyenvStrategy,
    VersionManager.RBENV: RbenvStrategy,
}

# Runtime family -> version manager; anything else uses mise
DEFAULT_MANAGERS = {
    "node": VersionManager.FNM,
    "nodejs": VersionManager.FNM,
    "java": VersionManager.SDKMAN,
    "kotlin": VersionManager.SDKMAN,
    "scala": VersionManager.SDKMAN,
    "groovy": VersionManager.SDKMAN,
    "rust": VersionManager.RUSTUP,
}
FALLBACK_MANAGER = VersionManager.MISE


def is_symbolic(version: str) -> bool:
    return version in SYMBOLIC_VERSIONS


def parse_manager(name: str) -> VersionManager:
    """
    Raises:
        NotAvailableError: If devstrap does not know the manager
    """
    try:
        return VersionManager(name)
    except ValueError:
        raise NotAvailableError(name, "unknown version manager") from None


def manager_for(runtime: str, override: Optional[str] = None) -> VersionManager:
    """
    Version manager for a runtime. An explicit override always wins.

    Example:
        >>> manager_for("node")
        <VersionManager.FNM: 'fnm'>
        >>> manager_for("node", "mise")
        <VersionManager.MISE: 'mise'>
    """
    if override:
        return parse_manager(override)
    return DEFAULT_MANAGERS.get(runtime, FALLBACK_MANAGER)


def get_strategy(manager: VersionManager) -> VersionResolverStrategy:
    return STRATEGIES[manager]()


def resolve_runtime_version(
    name: str,
    requested: str,
    manager: VersionManager,
    lock: LockFile,
    strategy: Optional[VersionResolverStrategy] = None,
) -> tuple[str, bool]:
    """
    Resolve ``requested`` for runtime ``name``.

    Args:
        name: Runtime name
        requested: Version string from the configuration
        manager: Version manager for this runtime
        lock: Lock cache, updated in place on a miss
        strategy: Strategy to use instead of the manager's default

    Returns:
        ``(resolved_version, lock_mutated)``

    Raises:
        VersionResolutionError: If the strategy cannot resolve the keyword
        CommandError: If the manager's listing command fails
    """
    if not is_symbolic(requested):
        return requested, False

    entry = lock.get(name, requested)
    if entry is not None:
        if entry.manager != manager.value:
            logger.debug(
                f"{name} {requested} was pinned by {entry.manager}, "
                f"now managed by {manager.value}; keeping {entry.resolved}"
            )
        logger.debug(f"{name} {requested} -> {entry.resolved} (locked)")
        return entry.resolved, False

    strategy = strategy or get_strategy(manager)
    resolved = strategy.resolve(name, requested)
    lock.set_runtime(name, requested, resolved, manager.value)
    logger.info(f"Resolved {name} {requested} -> {resolved} via {manager.value}")
    return resolved, True


__all__ = [
    "SYMBOLIC_VERSIONS",
    "STRATEGIES",
    "DEFAULT_MANAGERS",
    "FALLBACK_MANAGER",
    "is_symbolic",
    "parse_manager",
    "manager_for",
    "get_strategy",
    "resolve_runtime_version",
]
