"""
Sync command implementation.

Converges the machine toward the configuration file: removes pruned
packages, installs packages group by group, then installs runtimes.
"""

import logging

from devstrap.cli.utils import (
    build_context,
    print_error,
    print_report,
    print_warning,
    safe_print,
)
from devstrap.config.catalog import Catalog
from devstrap.config.lockfile import LockFileManager
from devstrap.config.parser import DevstrapConfig, parse_config
from devstrap.config.validation import ConfigValidator
from devstrap.core.context import RunContext
from devstrap.core.exceptions import (
    CapabilityProbeError,
    ConfigError,
    ConfigurationInvalidError,
    RunLockError,
)
from devstrap.core.locking import run_lock
from devstrap.core.platform import Capabilities, detect_capabilities
from devstrap.core.state import StateManager
from devstrap.packages.dispatcher import InstallationDispatcher
from devstrap.runtime.coordinator import RuntimeCoordinator
from devstrap.sync.reconciler import Reconciler, SyncPlan
from devstrap.sync.report import ErrorReport

logger = logging.getLogger(__name__)


def load_config(ctx: RunContext, catalog: Catalog) -> DevstrapConfig:
    """
    Parse and validate the configuration.

    Raises:
        ConfigError: If the file is malformed
        ConfigurationInvalidError: If it names unknown packages or managers
    """
    config = parse_config(ctx.config_path)
    result = ConfigValidator(catalog).validate_or_raise(config)
    for issue in result.warnings:
        print_warning(f"{issue.field}: {issue.message}")
    return config


def print_plan(plan: SyncPlan, ctx: RunContext):
    if plan.to_install or (ctx.prune and plan.to_remove):
        print()
        print("Sync Plan:")
        if plan.to_install:
            safe_print("  ✓ To install:")
            for package_id in plan.to_install:
                print(f"    - {package_id}")
        if ctx.prune and plan.to_remove:
            safe_print("  ✗ To remove:")
            for package_id in plan.to_remove:
                print(f"    - {package_id}")
    else:
        safe_print("\n✓ Everything in sync")

    if plan.to_remove and not ctx.prune:
        safe_print("  ⚠ Packages not in config (use --prune to remove):")
        for package_id in plan.to_remove:
            print(f"    - {package_id}")
    print()


def needs_confirmation(plan: SyncPlan, ctx: RunContext) -> bool:
    return bool(plan.to_install) or (ctx.prune and bool(plan.to_remove))


def sync(
    config: DevstrapConfig, catalog: Catalog, caps: Capabilities, ctx: RunContext
) -> ErrorReport:
    """
    Run one reconciliation pass.

    Returns:
        Report of every skip and failure; empty if the run was cancelled
    """
    state_manager = StateManager(ctx.state_path)
    dispatcher = InstallationDispatcher(caps, ctx)
    reconciler = Reconciler(config, catalog, caps, ctx, dispatcher, state_manager)
    report = ErrorReport()

    state = state_manager.load()
    plan = reconciler.plan(state)
    print_plan(plan, ctx)

    if needs_confirmation(plan, ctx) and not ctx.ask("Proceed with sync?"):
        print("Sync cancelled")
        return report

    reconciler.remove_packages(plan, state, report)
    reconciler.install_packages(state, report)

    coordinator = RuntimeCoordinator(
        config,
        caps,
        ctx,
        dispatcher,
        state_manager,
        LockFileManager(ctx.lock_path),
    )
    coordinator.install_all(state, report)
    return report


def run(args) -> int:
    """
    Run the sync command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 when every item succeeded or was skipped)
    """
    ctx = build_context(args)
    if ctx.dry_run:
        safe_print("⚠ DRY RUN MODE - No changes will be made")

    try:
        caps = detect_capabilities()
    except CapabilityProbeError as e:
        print_error(str(e))
        return 1

    logger.info(
        f"System: {caps.os} ({caps.distro}, {caps.arch}), default package manager: "
        f"{caps.default_manager.display_name if caps.default_manager else 'none'}"
    )

    try:
        catalog = Catalog.builtin()
        config = load_config(ctx, catalog)
    except ConfigurationInvalidError as e:
        print_error("Invalid configuration")
        for issue in e.issues:
            print(f"  - {issue.message}")
            if issue.suggestion:
                print(f"    {issue.suggestion}")
        return 1
    except ConfigError as e:
        print_error(str(e))
        return 1

    try:
        with run_lock(ctx.config_path):
            report = sync(config, catalog, caps, ctx)
    except RunLockError as e:
        print_error(str(e))
        return 1

    print_report(report)
    return report.exit_code
