"""
Method resolution: pick the best available backend for a package.

Availability of each method kind is a predicate over the host
:class:`Capabilities`, and ranking comes from the tier table in
:mod:`devstrap.packages.methods`. Both are plain lookups so the order can be
audited in one place.
"""

import logging
from typing import Optional

from devstrap.config.catalog import BackendMapping
from devstrap.core.platform import Capabilities
from devstrap.packages.methods import InstallMethod, MethodKind, priority

logger = logging.getLogger(__name__)


AVAILABILITY = {
    MethodKind.SYSTEM: lambda method, caps: caps.has_manager(method.manager),
    MethodKind.LANGUAGE: lambda method, caps: caps.has_manager(method.manager),
    MethodKind.SOURCE_RELEASE: lambda method, caps: True,
    MethodKind.ALREADY_PRESENT: lambda method, caps: True,
}


def is_available(method: InstallMethod, caps: Capabilities) -> bool:
    return AVAILABILITY[method.kind](method, caps)


def available_methods(
    mapping: BackendMapping, caps: Capabilities
) -> list[InstallMethod]:
    """
    Declared methods usable on this host, best first.

    ``sorted`` is stable, so equal-priority methods keep declaration order.
    """
    candidates = [m for m in mapping.candidates() if is_available(m, caps)]
    return sorted(
        candidates,
        key=lambda m: priority(m, caps.default_manager),
        reverse=True,
    )


def resolve_method(
    mapping: BackendMapping, caps: Capabilities
) -> Optional[InstallMethod]:
    """
    Best installation method for a package, or None if no backend is usable.

    Example:
        >>> caps = Capabilities(os="macos", default_manager=Manager.BREW,
        ...                     available_managers=frozenset({Manager.BREW, Manager.CARGO}))
        >>> resolve_method(catalog.get("ripgrep"), caps).name
        'brew'
    """
    ranked = available_methods(mapping, caps)
    if not ranked:
        logger.debug(f"No available method for {mapping.id}")
        return None
    logger.debug(
        f"Methods for {mapping.id}: "
        + ", ".join(f"{m.name}({priority(m, caps.default_manager)})" for m in ranked)
    )
    return ranked[0]


__all__ = ["AVAILABILITY", "is_available", "available_methods", "resolve_method"]
