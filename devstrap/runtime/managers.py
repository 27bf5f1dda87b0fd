"""
Version manager operations: presence checks, bootstrap, runtime installs
and default selection.

Freshly bootstrapped managers are usually not on ``PATH`` for the current
process yet, so executables are also looked up in each manager's well-known
home directory.
"""

import logging
from pathlib import Path
from typing import Optional

from devstrap.core.command import run_command
from devstrap.core.exceptions import NotAvailableError
from devstrap.core.filesystem import find_executable
from devstrap.runtime.strategy import VersionManager

logger = logging.getLogger(__name__)

SDKMAN_INIT = "source ~/.sdkman/bin/sdkman-init.sh"

# Official installer pipelines
BOOTSTRAP_SCRIPTS = {
    VersionManager.MISE: "curl -fsSL https://mise.run | sh",
    VersionManager.RUSTUP: (
        "curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | sh -s -- -y"
    ),
    VersionManager.FNM: "curl -fsSL https://fnm.vercel.app/install | bash",
    VersionManager.SDKMAN: 'curl -s "https://get.sdkman.io" | bash',
    VersionManager.PYENV: "curl -fsSL https://pyenv.run | bash",
}


def _home_dirs(manager: VersionManager) -> list[Path]:
    home = Path.home()
    return {
        VersionManager.MISE: [home / ".local" / "bin"],
        VersionManager.RUSTUP: [home / ".cargo" / "bin"],
        VersionManager.FNM: [home / ".local" / "share" / "fnm", home / ".fnm"],
        VersionManager.PYENV: [home / ".pyenv" / "bin"],
        VersionManager.RBENV: [home / ".rbenv" / "bin"],
        VersionManager.SDKMAN: [],
    }[manager]


def sdkman_init_script() -> Path:
    return Path.home() / ".sdkman" / "bin" / "sdkman-init.sh"


def manager_executable(manager: VersionManager) -> Optional[Path]:
    """Path to the manager's executable, or None (sdkman has none)."""
    if manager is VersionManager.SDKMAN:
        return None
    return find_executable(manager.value) or find_executable(
        manager.value, _home_dirs(manager)
    )


def is_manager_installed(manager: VersionManager) -> bool:
    if manager is VersionManager.SDKMAN:
        return sdkman_init_script().exists()
    return manager_executable(manager) is not None


def bootstrap_command(manager: VersionManager) -> list[str]:
    """
    Raises:
        NotAvailableError: If the manager has no installer script
    """
    script = BOOTSTRAP_SCRIPTS.get(manager)
    if script is None:
        raise NotAvailableError(
            manager.value,
            "no automatic installer; add it to your packages instead",
        )
    return ["bash", "-c", script]


def install_manager(manager: VersionManager) -> None:
    """
    Install a version manager with its official installer.

    Raises:
        NotAvailableError: If the manager has no installer script
        CommandError: If the installer fails
    """
    logger.info(f"Installing {manager.value}...")
    run_command(bootstrap_command(manager))


def _exe(manager: VersionManager) -> str:
    path = manager_executable(manager)
    return str(path) if path else manager.value


def _sdk(args: str) -> list[str]:
    # Auto-answer keeps sdk from prompting to change the default
    return ["bash", "-c", f"export sdkman_auto_answer=true && {SDKMAN_INIT} && sdk {args}"]


def install_runtime_command(
    manager: VersionManager, runtime: str, version: str
) -> list[str]:
    exe = _exe(manager)
    return {
        VersionManager.MISE: lambda: [exe, "install", f"{runtime}@{version}"],
        VersionManager.RUSTUP: lambda: [exe, "toolchain", "install", version],
        VersionManager.FNM: lambda: [exe, "install", version],
        VersionManager.SDKMAN: lambda: _sdk(f"install {runtime} {version}"),
        VersionManager.PYENV: lambda: [exe, "install", "--skip-existing", version],
        VersionManager.RBENV: lambda: [exe, "install", "--skip-existing", version],
    }[manager]()


def set_default_command(
    manager: VersionManager, runtime: str, version: str
) -> list[str]:
    exe = _exe(manager)
    return {
        VersionManager.MISE: lambda: [exe, "use", "--global", f"{runtime}@{version}"],
        VersionManager.RUSTUP: lambda: [exe, "default", version],
        VersionManager.FNM: lambda: [exe, "default", version],
        VersionManager.SDKMAN: lambda: _sdk(f"default {runtime} {version}"),
        VersionManager.PYENV: lambda: [exe, "global", version],
        VersionManager.RBENV: lambda: [exe, "global", version],
    }[manager]()


def install_runtime_version(manager: VersionManager, runtime: str, version: str) -> None:
    run_command(install_runtime_command(manager, runtime, version))


def set_default_runtime(manager: VersionManager, runtime: str, version: str) -> None:
    run_command(set_default_command(manager, runtime, version))


__all__ = [
    "BOOTSTRAP_SCRIPTS",
    "manager_executable",
    "is_manager_installed",
    "bootstrap_command",
    "install_manager",
    "install_runtime_command",
    "set_default_command",
    "install_runtime_version",
    "set_default_runtime",
]
