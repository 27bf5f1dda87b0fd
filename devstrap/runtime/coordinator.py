"""
Runtime installation coordinator.

Installs language runtimes through their version managers: bootstraps
missing managers, installs system languages, resolves every requested
version through the lock cache, installs it, and selects the default.
Each runtime is independent; a failure is recorded and the next runtime is
processed.
"""

import logging
from typing import Optional

from devstrap.config.lockfile import LockFile, LockFileManager
from devstrap.config.parser import DevstrapConfig, RuntimeSpec
from devstrap.core.context import RunContext
from devstrap.core.exceptions import DevstrapError
from devstrap.core.platform import Capabilities
from devstrap.core.state import DevstrapState, StateManager
from devstrap.packages.dispatcher import DRY_RUN, InstallationDispatcher
from devstrap.runtime.managers import (
    install_manager,
    install_runtime_command,
    install_runtime_version,
    is_manager_installed,
    set_default_command,
    set_default_runtime,
)
from devstrap.runtime.resolution import manager_for, resolve_runtime_version
from devstrap.runtime.strategy import VersionManager
from devstrap.runtime.system_lang import install_system_languages
from devstrap.sync.report import ErrorReport

logger = logging.getLogger(__name__)


def order_runtimes(runtimes: dict[str, RuntimeSpec]) -> list[RuntimeSpec]:
    """
    Declaration order, except that a runtime comes after the one it requires.

    Unknown or cyclic requirements fall back to declaration order.
    """
    ordered: list[RuntimeSpec] = []
    visiting: set[str] = set()
    done: set[str] = set()

    def visit(name: str):
        if name in done:
            return
        if name in visiting:
            logger.warning(f"Circular 'requires' involving runtime '{name}'")
            return
        visiting.add(name)
        spec = runtimes[name]
        if spec.requires:
            if spec.requires in runtimes:
                visit(spec.requires)
            else:
                logger.warning(
                    f"Runtime '{name}' requires unknown runtime '{spec.requires}'"
                )
        visiting.discard(name)
        if name not in done:
            done.add(name)
            ordered.append(spec)

    for name in runtimes:
        visit(name)
    return ordered


class RuntimeCoordinator:
    """
    Installs every configured runtime.

    Attributes:
        config: Desired configuration
        caps: Host capabilities
        ctx: Run options
        dispatcher: Package dispatcher, used for system languages
        state_manager: Persists runtime records after each success
        lock_manager: Persists the version lock cache
    """

    def __init__(
        self,
        config: DevstrapConfig,
        caps: Capabilities,
        ctx: RunContext,
        dispatcher: InstallationDispatcher,
        state_manager: StateManager,
        lock_manager: LockFileManager,
    ):
        self.config = config
        self.caps = caps
        self.ctx = ctx
        self.dispatcher = dispatcher
        self.state_manager = state_manager
        self.lock_manager = lock_manager
        self._unavailable: dict[VersionManager, str] = {}

    # ------------------------------------------------------------------
    # Lock handling
    # ------------------------------------------------------------------

    def load_lock(self) -> LockFile:
        """Load the lock, applying ``--refresh`` first."""
        if not self.ctx.refresh:
            return self.lock_manager.load()

        if self.ctx.refresh_runtimes:
            lock = self.lock_manager.load()
            for name in self.ctx.refresh_runtimes:
                if lock.invalidate(name):
                    logger.info(f"Refreshing pinned versions for {name}")
            return lock

        if self.ctx.dry_run:
            logger.info(f"  {DRY_RUN} Would delete {self.lock_manager.lock_file_path}")
        else:
            try:
                self.lock_manager.delete()
            except DevstrapError as e:
                logger.error(str(e))
        return LockFile()

    def _save_lock(self, lock: LockFile):
        if self.ctx.dry_run:
            return
        self.lock_manager.save_or_log(lock)

    # ------------------------------------------------------------------
    # Managers
    # ------------------------------------------------------------------

    def required_managers(self) -> list[VersionManager]:
        managers: list[VersionManager] = []
        for name, spec in self.config.runtimes.items():
            try:
                manager = manager_for(name, spec.manager)
            except DevstrapError:
                continue
            if manager not in managers:
                managers.append(manager)
        return managers

    def ensure_managers(self, report: ErrorReport):
        for manager in self.required_managers():
            if is_manager_installed(manager):
                continue
            if self.ctx.dry_run:
                logger.info(f"  {DRY_RUN} Would install version manager {manager.value}")
                continue
            try:
                install_manager(manager)
            except (DevstrapError, OSError) as e:
                self._unavailable[manager] = str(e)
                report.record(f"manager {manager.value}", e)

    # ------------------------------------------------------------------
    # Runtimes
    # ------------------------------------------------------------------

    def install_all(self, state: DevstrapState, report: ErrorReport) -> None:
        """Bootstrap managers, install system languages, then every runtime."""
        if not self.config.runtimes and not any(self.config.system_languages.values()):
            return

        logger.info("")
        logger.info("Runtimes")
        logger.info("=" * 60)

        self.ensure_managers(report)
        install_system_languages(
            self.config.system_languages,
            self.caps.default_manager,
            self.dispatcher,
            report,
        )

        lock = self.load_lock()
        failed: set[str] = set()
        for spec in order_runtimes(self.config.runtimes):
            if spec.requires in failed:
                failed.add(spec.name)
                report.add_failure(
                    f"runtime {spec.name}", f"required runtime {spec.requires} failed"
                )
                continue
            try:
                self.install_runtime(spec, lock, state)
            except (DevstrapError, OSError) as e:
                failed.add(spec.name)
                report.record(f"runtime {spec.name}", e)

    def install_runtime(
        self, spec: RuntimeSpec, lock: LockFile, state: DevstrapState
    ) -> Optional[str]:
        """
        Install every version of one runtime and select its default.

        Returns:
            The resolved default version

        Raises:
            NotAvailableError: If its version manager could not be installed
            VersionResolutionError, CommandError: On resolution or install failure
        """
        manager = manager_for(spec.name, spec.manager)
        if manager in self._unavailable:
            raise DevstrapError(
                f"version manager {manager.value} is not installed: "
                f"{self._unavailable[manager]}"
            )

        logger.info(f"Runtime {spec.name} (via {manager.value})")
        record = state.runtimes.get(spec.name)
        known: list[str] = []
        if record and record.manager == manager.value:
            known = record.versions

        installed: list[str] = []
        for requested in spec.versions:
            resolved = self._resolve(spec.name, requested, manager, lock)
            if resolved in installed:
                continue
            logger.info(f"  version {requested} (resolved: {resolved})")
            if resolved in known:
                logger.debug(f"  {spec.name} {resolved} already installed")
            else:
                self._install_version(manager, spec.name, resolved)
            installed.append(resolved)

        default = self._resolve(spec.name, spec.default, manager, lock)
        if default not in installed:
            if default not in known:
                self._install_version(manager, spec.name, default)
            installed.append(default)

        if self.ctx.dry_run:
            logger.info(
                f"  {DRY_RUN} Would set default: "
                f"{' '.join(set_default_command(manager, spec.name, default))}"
            )
            return default

        set_default_runtime(manager, spec.name, default)
        state.add_runtime(spec.name, default, manager.value, [*known, *installed])
        self.state_manager.save_or_log(state)
        return default

    def _resolve(
        self, name: str, requested: str, manager: VersionManager, lock: LockFile
    ) -> str:
        resolved, mutated = resolve_runtime_version(name, requested, manager, lock)
        if mutated:
            self._save_lock(lock)
        return resolved

    def _install_version(self, manager: VersionManager, runtime: str, version: str):
        if self.ctx.dry_run:
            logger.info(
                f"  {DRY_RUN} Would run: "
                f"{' '.join(install_runtime_command(manager, runtime, version))}"
            )
            return
        install_runtime_version(manager, runtime, version)


__all__ = ["RuntimeCoordinator", "order_runtimes"]
