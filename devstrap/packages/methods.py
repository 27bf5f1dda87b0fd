"""
Install methods and their priority order.

An :class:`InstallMethod` is a closed variant: an OS package manager, a
language package manager, a source release, or "already present" (installed
by means devstrap does not know). Methods compare only through
:func:`priority`, which reads a fixed tier table keyed by method kind.

Priority, highest first::

    default system manager > npm > cargo > pipx > already present > source release

A system manager that is not the host's default collapses to the
"already present" tier.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from devstrap.core.platform import Manager, LANGUAGE_MANAGERS, SYSTEM_MANAGERS


class MethodKind(Enum):
    SYSTEM = "system"
    LANGUAGE = "language"
    SOURCE_RELEASE = "source-release"
    ALREADY_PRESENT = "already-present"


SOURCE_RELEASE_NAME = "github"
ALREADY_PRESENT_NAME = "system"


@dataclass(frozen=True)
class InstallMethod:
    """
    How a package is (or would be) installed.

    Attributes:
        kind: Variant tag
        manager: Backing manager for SYSTEM and LANGUAGE methods
    """

    kind: MethodKind
    manager: Optional[Manager] = None

    def __post_init__(self):
        if self.kind is MethodKind.SYSTEM and self.manager not in SYSTEM_MANAGERS:
            raise ValueError(f"Not a system package manager: {self.manager}")
        if self.kind is MethodKind.LANGUAGE and self.manager not in LANGUAGE_MANAGERS:
            raise ValueError(f"Not a language package manager: {self.manager}")
        if self.kind in (MethodKind.SOURCE_RELEASE, MethodKind.ALREADY_PRESENT):
            if self.manager is not None:
                raise ValueError(f"{self.kind.value} takes no manager")

    @classmethod
    def system(cls, manager: Manager) -> "InstallMethod":
        return cls(MethodKind.SYSTEM, manager)

    @classmethod
    def language(cls, manager: Manager) -> "InstallMethod":
        return cls(MethodKind.LANGUAGE, manager)

    @classmethod
    def source_release(cls) -> "InstallMethod":
        return cls(MethodKind.SOURCE_RELEASE)

    @classmethod
    def already_present(cls) -> "InstallMethod":
        return cls(MethodKind.ALREADY_PRESENT)

    @classmethod
    def for_manager(cls, manager: Manager) -> "InstallMethod":
        if manager.is_system:
            return cls.system(manager)
        return cls.language(manager)

    @classmethod
    def from_name(cls, name: str) -> Optional["InstallMethod"]:
        """
        Parse the name stored in the state file.

        Example:
            >>> InstallMethod.from_name("cargo")
            InstallMethod(kind=<MethodKind.LANGUAGE: 'language'>, manager=<Manager.CARGO: 'cargo'>)
        """
        name = name.strip().lower()
        if name == SOURCE_RELEASE_NAME:
            return cls.source_release()
        if name == ALREADY_PRESENT_NAME:
            return cls.already_present()
        try:
            return cls.for_manager(Manager(name))
        except ValueError:
            return None

    @property
    def name(self) -> str:
        """Stable name used in the state file and in output."""
        if self.manager is not None:
            return self.manager.value
        if self.kind is MethodKind.SOURCE_RELEASE:
            return SOURCE_RELEASE_NAME
        return ALREADY_PRESENT_NAME

    @property
    def display_name(self) -> str:
        if self.manager is not None:
            return self.manager.display_name
        if self.kind is MethodKind.SOURCE_RELEASE:
            return "GitHub release"
        return "already installed"

    @property
    def is_already_present(self) -> bool:
        return self.kind is MethodKind.ALREADY_PRESENT

    def __str__(self) -> str:
        return self.name


# ============================================================================
# Priority Tiers
# ============================================================================

TIER_DEFAULT_SYSTEM = 10
TIER_ALREADY_PRESENT = 2
TIER_SOURCE_RELEASE = 1

LANGUAGE_TIERS = {
    Manager.NPM: 8,
    Manager.CARGO: 6,
    Manager.PIPX: 4,
}


def _system_tier(method: InstallMethod, default_manager: Optional[Manager]) -> int:
    if default_manager is not None and method.manager == default_manager:
        return TIER_DEFAULT_SYSTEM
    return TIER_ALREADY_PRESENT


PRIORITY_TABLE = {
    MethodKind.SYSTEM: _system_tier,
    MethodKind.LANGUAGE: lambda method, default: LANGUAGE_TIERS[method.manager],
    MethodKind.ALREADY_PRESENT: lambda method, default: TIER_ALREADY_PRESENT,
    MethodKind.SOURCE_RELEASE: lambda method, default: TIER_SOURCE_RELEASE,
}


def priority(method: InstallMethod, default_manager: Optional[Manager]) -> int:
    """
    Rank a method for a host whose default system manager is ``default_manager``.

    Example:
        >>> priority(InstallMethod.system(Manager.BREW), Manager.BREW)
        10
        >>> priority(InstallMethod.system(Manager.APT), Manager.BREW)
        2
    """
    return PRIORITY_TABLE[method.kind](method, default_manager)


__all__ = [
    "MethodKind",
    "InstallMethod",
    "priority",
    "PRIORITY_TABLE",
    "TIER_DEFAULT_SYSTEM",
    "TIER_ALREADY_PRESENT",
    "TIER_SOURCE_RELEASE",
    "LANGUAGE_TIERS",
]
