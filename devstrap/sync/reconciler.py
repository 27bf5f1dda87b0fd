"""
State reconciliation.

Diffs the desired package set against devstrap's own state ledger and drives
each package toward its desired condition:

- not installed: install through the preferred method
- installed through a lower-priority method: reinstall (uninstall first,
  unless the current install is of unknown origin, in which case install
  alongside)
- installed through an equal or better method: satisfied; adopted into the
  ledger without being claimed for removal, unless it is already tracked
- tracked but no longer desired: removed only with prune enabled

Every desired package is checked on every run, tracked or not. The diff
reads only the ledger, never the live system, so prune can only touch what
devstrap itself installed; it also drives the plan display and prompt. Groups, and packages within groups,
run strictly one after another. State is written after each successful
action, never before it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional

from devstrap.config.catalog import BackendMapping, Catalog
from devstrap.config.parser import DevstrapConfig
from devstrap.core.context import RunContext
from devstrap.core.exceptions import DevstrapError, NotAvailableError
from devstrap.core.platform import Capabilities
from devstrap.core.state import DevstrapState, StateManager
from devstrap.packages.detection import detect_installed_method
from devstrap.packages.dispatcher import InstallationDispatcher
from devstrap.packages.methods import InstallMethod, priority
from devstrap.packages.priority import resolve_method
from devstrap.sync.report import ErrorKind, ErrorReport

logger = logging.getLogger(__name__)

MAX_REMOVAL_ATTEMPTS = 3


# ============================================================================
# Diff
# ============================================================================


@dataclass
class SyncPlan:
    """Set difference between desired packages and the state ledger."""

    to_install: list[str] = field(default_factory=list)
    to_remove: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_install and not self.to_remove


def compute_diff(desired: Iterable[str], tracked: Iterable[str]) -> SyncPlan:
    """
    ``to_install = desired - tracked`` and ``to_remove = tracked - desired``.

    Desired order is preserved; removals are sorted.

    Example:
        >>> compute_diff(["a", "b"], ["a"])
        SyncPlan(to_install=['b'], to_remove=[])
    """
    desired = list(dict.fromkeys(desired))
    tracked = set(tracked)
    desired_set = set(desired)
    return SyncPlan(
        to_install=[p for p in desired if p not in tracked],
        to_remove=sorted(tracked - desired_set),
    )


# ============================================================================
# Per-package state machine
# ============================================================================


class PackageAction(Enum):
    INSTALL = "install"
    REINSTALL = "reinstall"
    SATISFIED = "satisfied"
    SKIP = "skip"


@dataclass
class Package:
    """A desired package, as found on this host during one pass."""

    id: str
    mapping: BackendMapping
    current: Optional[InstallMethod]
    preferred: Optional[InstallMethod]


def plan_action(package: Package, caps: Capabilities) -> PackageAction:
    if package.preferred is None:
        return PackageAction.SKIP
    if package.current is None:
        return PackageAction.INSTALL
    default = caps.default_manager
    if priority(package.preferred, default) > priority(package.current, default):
        return PackageAction.REINSTALL
    return PackageAction.SATISFIED


# ============================================================================
# Reconciler
# ============================================================================


class Reconciler:
    """
    Applies a :class:`SyncPlan` to the machine.

    Attributes:
        config: Desired configuration
        catalog: Known packages
        caps: Host capabilities
        ctx: Run options
        dispatcher: Executes installs and removals
        state_manager: Persists the ledger after every mutation
    """

    def __init__(
        self,
        config: DevstrapConfig,
        catalog: Catalog,
        caps: Capabilities,
        ctx: RunContext,
        dispatcher: InstallationDispatcher,
        state_manager: StateManager,
        detector: Callable = detect_installed_method,
        resolver: Callable = resolve_method,
    ):
        self.config = config
        self.catalog = catalog
        self.caps = caps
        self.ctx = ctx
        self.dispatcher = dispatcher
        self.state_manager = state_manager
        self.detector = detector
        self.resolver = resolver

    def plan(self, state: DevstrapState) -> SyncPlan:
        return compute_diff(self.config.all_packages(), state.package_ids())

    def _persist(self, state: DevstrapState):
        if not self.ctx.dry_run:
            self.state_manager.save_or_log(state)

    def _mapping(self, package_id: str) -> BackendMapping:
        mapping = self.catalog.get(package_id)
        if mapping is None:
            # Tracked ids dropped from the catalog still need removing
            return BackendMapping(id=package_id, name=package_id)
        return mapping

    def build_package(self, package_id: str) -> Package:
        mapping = self._mapping(package_id)
        return Package(
            id=package_id,
            mapping=mapping,
            current=self.detector(mapping, self.caps),
            preferred=self.resolver(mapping, self.caps),
        )

    # ------------------------------------------------------------------
    # Installation
    # ------------------------------------------------------------------

    def refresh_index(self):
        manager = self.caps.default_manager
        if manager is None or not self.caps.has_manager(manager):
            return
        try:
            self.dispatcher.update_index(manager)
        except DevstrapError as e:
            logger.warning(f"Could not update {manager.display_name} index: {e}")

    def install_packages(self, state: DevstrapState, report: ErrorReport) -> None:
        """
        Converge every desired package, group by group.

        Tracked packages are checked again too, so one removed by hand is
        reinstalled and one installed through a lower-priority method is
        upgraded. The default manager's index is refreshed once, before the
        first package that needs installing.
        """
        index_refreshed = False
        seen = set()
        for group in self.config.groups:
            members = [p for p in dict.fromkeys(group.packages) if p not in seen]
            if not members:
                continue
            seen.update(members)

            logger.info("")
            logger.info(f"Group: {group.name}")
            for package_id in members:
                try:
                    package = self.build_package(package_id)
                    action = plan_action(package, self.caps)
                    if action in (PackageAction.INSTALL, PackageAction.REINSTALL):
                        if not index_refreshed:
                            self.refresh_index()
                            index_refreshed = True
                    self.apply(package, action, state, report, group.name)
                except (DevstrapError, OSError) as e:
                    report.record(package_id, e, group.name)

            failed = report.failures_in(group.name)
            if failed:
                logger.warning(
                    f"Group '{group.name}': {len(failed)} package(s) failed: "
                    + ", ".join(e.item for e in failed)
                )

    def converge(
        self,
        package_id: str,
        state: DevstrapState,
        report: ErrorReport,
        group: Optional[str] = None,
    ) -> PackageAction:
        """
        Drive one desired package to its desired condition.

        Raises:
            CommandError: If an install or uninstall command fails
        """
        package = self.build_package(package_id)
        action = plan_action(package, self.caps)
        return self.apply(package, action, state, report, group)

    def apply(
        self,
        package: Package,
        action: PackageAction,
        state: DevstrapState,
        report: ErrorReport,
        group: Optional[str] = None,
    ) -> PackageAction:
        package_id = package.id
        version = self.config.package_versions.get(package_id)

        if action is PackageAction.SKIP:
            report.add_skip(package_id, "no available installation method", group)
            return action

        if action is PackageAction.SATISFIED:
            logger.info(
                f"  ✓ {package_id} already installed via {package.current.display_name}"
            )
            # Only untracked installs are adopted; an existing record stays as is
            if not self.ctx.dry_run and not state.has_package(package_id):
                state.add_package(package_id, package.current.name, adopted=True)
                self._persist(state)
            return action

        if action is PackageAction.REINSTALL:
            logger.info(
                f"  ↻ {package_id}: {package.current.display_name} -> "
                f"{package.preferred.display_name}"
            )
            if not package.current.is_already_present:
                try:
                    self.dispatcher.uninstall(package.mapping, package.current)
                except NotAvailableError as e:
                    logger.warning(f"  {e}; installing alongside")
        else:
            logger.info(f"  ↓ {package_id} via {package.preferred.display_name}")

        self.dispatcher.install(package.mapping, package.preferred, version)
        if not self.ctx.dry_run:
            state.add_package(package_id, package.preferred.name, version)
            self._persist(state)
        return action

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def remove_packages(
        self, plan: SyncPlan, state: DevstrapState, report: ErrorReport
    ) -> None:
        """Remove tracked packages that are no longer desired (prune only)."""
        if not plan.to_remove:
            return

        if not self.ctx.prune:
            logger.debug(
                "Prune disabled, keeping: "
                + ", ".join(plan.to_remove)
            )
            return

        logger.info("")
        logger.info("Removing packages")
        for package_id in plan.to_remove:
            self.remove(package_id, state, report)

    def remove(self, package_id: str, state: DevstrapState, report: ErrorReport) -> bool:
        """
        Uninstall one tracked package.

        The record is deleted only after a successful uninstall; a failure
        bumps its failure counter. At ``MAX_REMOVAL_ATTEMPTS`` the package is
        reported as needing manual intervention and no longer retried
        (unless ``retry_stuck`` is set).

        Returns:
            True if the record was removed
        """
        record = state.packages.get(package_id)
        if record is None:
            return False

        method = InstallMethod.from_name(record.method)
        if record.adopted or (method is not None and method.is_already_present):
            logger.info(f"  - {package_id}: not installed by devstrap, no longer tracked")
            if not self.ctx.dry_run:
                state.remove_package(package_id)
                self._persist(state)
            return True

        if record.removal_failures >= MAX_REMOVAL_ATTEMPTS and not self.ctx.retry_stuck:
            report.add_failure(
                package_id,
                f"removal failed {record.removal_failures} times; uninstall it "
                f"manually, then run 'devstrap forget {package_id}'",
                kind=ErrorKind.STUCK_REMOVAL,
            )
            return False

        if method is None:
            report.add_failure(
                package_id, f"unknown install method '{record.method}' in state file"
            )
            return False

        logger.info(f"  ✗ Removing {package_id} (installed via {method.display_name})")
        try:
            self.dispatcher.uninstall(self._mapping(package_id), method)
        except (DevstrapError, OSError) as e:
            if not self.ctx.dry_run:
                record.removal_failures += 1
                self._persist(state)
            report.add_failure(package_id, str(e))
            return False

        if not self.ctx.dry_run:
            state.remove_package(package_id)
            self._persist(state)
        return True


__all__ = [
    "MAX_REMOVAL_ATTEMPTS",
    "SyncPlan",
    "compute_diff",
    "PackageAction",
    "Package",
    "plan_action",
    "Reconciler",
]
