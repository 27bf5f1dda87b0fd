"""
Version resolution strategy interface.

Each version manager knows how to turn a symbolic version ("latest", "lts",
"stable", ...) into a concrete one for a runtime. Strategies are looked up by
:class:`VersionManager` through :func:`get_strategy`.
"""

from abc import ABC, abstractmethod
from enum import Enum


class VersionManager(Enum):
    """Runtime version managers devstrap can drive."""

    MISE = "mise"
    RUSTUP = "rustup"
    FNM = "fnm"
    SDKMAN = "sdkman"
    PYENV = "pyenv"
    RBENV = "rbenv"


class VersionResolverStrategy(ABC):
    """
    Abstract base class for per-manager version resolution.

    Example:
        class MyStrategy(VersionResolverStrategy):
            manager = VersionManager.MISE

            def resolve(self, runtime: str, keyword: str) -> str:
                return "1.2.3"
    """

    manager: VersionManager

    @abstractmethod
    def resolve(self, runtime: str, keyword: str) -> str:
        """
        Resolve a symbolic version for a runtime.

        Args:
            runtime: Runtime name ('node', 'python', ...)
            keyword: One of latest, lts, stable, beta, nightly

        Returns:
            Concrete version string

        Raises:
            VersionResolutionError: If the keyword cannot be resolved
            CommandError: If the manager's listing command fails
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


__all__ = ["VersionManager", "VersionResolverStrategy"]
