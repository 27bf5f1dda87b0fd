"""
Base package backend abstraction for devstrap.

A backend wraps one installation method (apt, brew, cargo, a GitHub release,
...) behind install / uninstall / index-refresh operations. Backends are
side-effect boundaries: they run external commands and raise
:class:`~devstrap.core.exceptions.CommandError` on failure.

Classes:
    PackageBackend: Abstract base class for backends
    CommandBackend: Backend whose operations are single external commands
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

from devstrap.config.catalog import BackendMapping
from devstrap.core.command import run_command
from devstrap.core.exceptions import NotAvailableError
from devstrap.packages.methods import InstallMethod

logger = logging.getLogger(__name__)


def needs_sudo() -> bool:
    """True unless already running as root."""
    return hasattr(os, "geteuid") and os.geteuid() != 0


# =============================================================================
# Abstract Backend
# =============================================================================


class PackageBackend(ABC):
    """
    Abstract base class for package backends.

    Abstract Methods:
        install(): Install a package, optionally at a pinned version
        uninstall(): Remove a package this backend installed
        describe_install(): Human-readable install action (for dry runs)
    """

    method: InstallMethod

    def package_name(self, mapping: BackendMapping) -> str:
        """Name of the package under this backend."""
        return mapping.name_for(self.method) or mapping.id

    @abstractmethod
    def install(self, mapping: BackendMapping, version: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def uninstall(self, mapping: BackendMapping) -> None:
        pass

    @abstractmethod
    def describe_install(
        self, mapping: BackendMapping, version: Optional[str] = None
    ) -> str:
        pass

    def describe_uninstall(self, mapping: BackendMapping) -> str:
        return f"remove {self.package_name(mapping)} via {self.method.name}"

    def update_index(self) -> None:
        """Refresh the backend's package index. Most backends have none."""
        return None


# =============================================================================
# Command-driven Backend
# =============================================================================


class CommandBackend(PackageBackend):
    """
    Backend whose install and uninstall are each one external command.

    Subclasses set ``method`` and ``use_sudo`` and implement the command
    builders.
    """

    use_sudo: bool = False

    def _prefix(self, cmd: list[str]) -> list[str]:
        if self.use_sudo and needs_sudo():
            return ["sudo"] + cmd
        return cmd

    @abstractmethod
    def install_command(self, name: str, version: Optional[str]) -> list[str]:
        pass

    def uninstall_command(self, name: str) -> Optional[list[str]]:
        return None

    def install(self, mapping: BackendMapping, version: Optional[str] = None) -> None:
        cmd = self._prefix(self.install_command(self.package_name(mapping), version))
        logger.info(f"Installing {mapping.id} via {self.method.display_name}")
        run_command(cmd)

    def uninstall(self, mapping: BackendMapping) -> None:
        cmd = self.uninstall_command(self.package_name(mapping))
        if cmd is None:
            raise NotAvailableError(
                mapping.id, f"{self.method.display_name} cannot uninstall packages"
            )
        logger.info(f"Removing {mapping.id} via {self.method.display_name}")
        run_command(self._prefix(cmd))

    def describe_install(
        self, mapping: BackendMapping, version: Optional[str] = None
    ) -> str:
        return " ".join(
            self._prefix(self.install_command(self.package_name(mapping), version))
        )

    def describe_uninstall(self, mapping: BackendMapping) -> str:
        cmd = self.uninstall_command(self.package_name(mapping))
        if cmd is None:
            return super().describe_uninstall(mapping)
        return " ".join(self._prefix(cmd))


__all__ = ["PackageBackend", "CommandBackend", "needs_sudo"]
