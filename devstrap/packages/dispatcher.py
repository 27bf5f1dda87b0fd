"""
Installation dispatcher.

Maps an :class:`InstallMethod` to its backend and performs (or, in dry-run
mode, only reports) the install, uninstall and index-refresh actions. This is
the single side-effect boundary the reconciler talks to.
"""

import logging
from typing import Optional

from devstrap.config.catalog import BackendMapping
from devstrap.core.context import RunContext
from devstrap.core.exceptions import NotAvailableError
from devstrap.core.platform import Capabilities, Manager
from devstrap.packages.base import PackageBackend
from devstrap.packages.github import GithubReleaseBackend
from devstrap.packages.language import LANGUAGE_BACKENDS
from devstrap.packages.methods import InstallMethod, MethodKind
from devstrap.packages.system import SYSTEM_BACKENDS

logger = logging.getLogger(__name__)

DRY_RUN = "[DRY-RUN]"


class InstallationDispatcher:
    """
    Executes install methods through their backends.

    Example:
        >>> dispatcher = InstallationDispatcher(caps, ctx)
        >>> dispatcher.install(catalog.get("jq"), InstallMethod.system(Manager.APT))
    """

    def __init__(self, caps: Capabilities, ctx: RunContext):
        self.caps = caps
        self.ctx = ctx
        self._backends: dict[InstallMethod, PackageBackend] = {}

    def backend_for(self, method: InstallMethod) -> PackageBackend:
        """
        Raises:
            NotAvailableError: For methods with no backend (already present)
        """
        if method in self._backends:
            return self._backends[method]

        if method.kind is MethodKind.SYSTEM:
            backend = SYSTEM_BACKENDS[method.manager]()
        elif method.kind is MethodKind.LANGUAGE:
            backend = LANGUAGE_BACKENDS[method.manager]()
        elif method.kind is MethodKind.SOURCE_RELEASE:
            backend = GithubReleaseBackend(self.caps)
        else:
            raise NotAvailableError(method.name, "no backend manages this method")

        self._backends[method] = backend
        return backend

    def install(
        self,
        mapping: BackendMapping,
        method: InstallMethod,
        version: Optional[str] = None,
    ) -> None:
        """
        Raises:
            CommandError: If the backend command fails
            NotAvailableError: If the method cannot install anything
        """
        backend = self.backend_for(method)
        if self.ctx.dry_run:
            logger.info(
                f"  {DRY_RUN} Would install {mapping.id}: "
                f"{backend.describe_install(mapping, version)}"
            )
            return
        backend.install(mapping, version)

    def uninstall(self, mapping: BackendMapping, method: InstallMethod) -> None:
        """
        Raises:
            CommandError: If the backend command fails
            NotAvailableError: If the method cannot uninstall
        """
        backend = self.backend_for(method)
        if self.ctx.dry_run:
            logger.info(
                f"  {DRY_RUN} Would remove {mapping.id}: "
                f"{backend.describe_uninstall(mapping)}"
            )
            return
        backend.uninstall(mapping)

    def update_index(self, manager: Manager) -> None:
        """Refresh a system manager's package index."""
        backend = self.backend_for(InstallMethod.for_manager(manager))
        if self.ctx.dry_run:
            logger.info(f"  {DRY_RUN} Would update {manager.display_name} package index")
            return
        logger.info(f"Updating {manager.display_name} package index...")
        backend.update_index()


__all__ = ["InstallationDispatcher", "DRY_RUN"]
