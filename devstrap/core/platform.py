"""
Host capability probing for devstrap.

This module detects the host operating system, Linux distribution, CPU
architecture and which package-manager executables are reachable, and
freezes the result into an immutable :class:`Capabilities` snapshot that the
method resolver, detector and dispatcher consume.

Usage:
    from devstrap.core.platform import detect_capabilities, Manager

    caps = detect_capabilities()
    print(f"OS: {caps.os} ({caps.distro})")
    if caps.has_manager(Manager.CARGO):
        print("cargo is available")
"""

import functools
import logging
import platform
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

import distro

from devstrap.core.exceptions import CapabilityProbeError
from devstrap.core.filesystem import find_executable

logger = logging.getLogger(__name__)


class Manager(Enum):
    """Package managers devstrap knows how to drive."""

    BREW = "brew"
    APT = "apt"
    PACMAN = "pacman"
    DNF = "dnf"
    YUM = "yum"
    CARGO = "cargo"
    NPM = "npm"
    PIPX = "pipx"

    @property
    def command(self) -> str:
        """Executable used to invoke this manager."""
        return _MANAGER_COMMANDS[self]

    @property
    def display_name(self) -> str:
        return _MANAGER_DISPLAY_NAMES[self]

    @property
    def is_system(self) -> bool:
        """True for OS-level package managers."""
        return self in SYSTEM_MANAGERS


_MANAGER_COMMANDS = {
    Manager.BREW: "brew",
    Manager.APT: "apt-get",
    Manager.PACMAN: "pacman",
    Manager.DNF: "dnf",
    Manager.YUM: "yum",
    Manager.CARGO: "cargo",
    Manager.NPM: "npm",
    Manager.PIPX: "pipx",
}

_MANAGER_DISPLAY_NAMES = {
    Manager.BREW: "Homebrew",
    Manager.APT: "APT",
    Manager.PACMAN: "Pacman",
    Manager.DNF: "DNF",
    Manager.YUM: "YUM",
    Manager.CARGO: "Cargo",
    Manager.NPM: "npm",
    Manager.PIPX: "pipx",
}

SYSTEM_MANAGERS = (
    Manager.BREW,
    Manager.APT,
    Manager.PACMAN,
    Manager.DNF,
    Manager.YUM,
)

LANGUAGE_MANAGERS = (Manager.NPM, Manager.CARGO, Manager.PIPX)

# Distribution IDs (from /etc/os-release) grouped by their native manager
_DEBIAN_FAMILY = {"ubuntu", "debian", "linuxmint", "pop"}
_REDHAT_FAMILY = {"fedora", "rhel", "redhat", "centos", "rocky", "almalinux", "alma"}
_ARCH_FAMILY = {"arch", "manjaro", "endeavouros"}


@dataclass(frozen=True)
class Capabilities:
    """
    Immutable snapshot of the host.

    Attributes:
        os: Operating system ('macos', 'linux')
        distro: Linux distribution ID ('ubuntu', 'fedora', 'arch', ...) or 'unknown'
        arch: CPU architecture ('x64', 'arm64', ...)
        default_manager: Native system package manager, if one is reachable
        available_managers: Managers whose executables are on the search path
        is_wsl: Running under Windows Subsystem for Linux
        is_apple_silicon: macOS on arm64
    """

    os: str
    distro: str = "unknown"
    arch: str = "x64"
    default_manager: Optional[Manager] = None
    available_managers: frozenset = field(default_factory=frozenset)
    is_wsl: bool = False
    is_apple_silicon: bool = False

    def has_manager(self, manager: Manager) -> bool:
        return manager in self.available_managers

    def __str__(self) -> str:
        parts = [f"{self.os}-{self.arch}"]
        if self.distro and self.distro != "unknown":
            parts.append(f"({self.distro})")
        if self.is_wsl:
            parts.append("[wsl]")
        return " ".join(parts)


@functools.lru_cache(maxsize=1)
def detect_capabilities() -> Capabilities:
    """
    Probe the current host.

    This function is cached - it only runs detection once per process.

    Raises:
        CapabilityProbeError: If the operating system is not supported
    """
    os_name = _detect_os()
    arch = _detect_architecture()
    distro_id = _detect_distribution() if os_name == "linux" else "unknown"
    available = frozenset(
        m for m in Manager if find_executable(m.command) is not None
    )
    default = default_manager_for(os_name, distro_id, available)

    caps = Capabilities(
        os=os_name,
        distro=distro_id,
        arch=arch,
        default_manager=default,
        available_managers=available,
        is_wsl=_detect_wsl() if os_name == "linux" else False,
        is_apple_silicon=os_name == "macos" and arch == "arm64",
    )
    logger.debug(
        f"Detected {caps}; default manager: "
        f"{default.value if default else 'none'}; available: "
        f"{', '.join(sorted(m.value for m in available)) or 'none'}"
    )
    return caps


def default_manager_for(
    os_name: str, distro_id: str, available: frozenset
) -> Optional[Manager]:
    """
    Pick the native system package manager for a platform.

    Example:
        >>> default_manager_for("linux", "fedora", frozenset({Manager.YUM}))
        <Manager.YUM: 'yum'>
    """
    if os_name == "macos":
        return Manager.BREW if Manager.BREW in available else None

    if os_name != "linux":
        return None

    if distro_id in _DEBIAN_FAMILY:
        return Manager.APT
    if distro_id in _REDHAT_FAMILY:
        if Manager.DNF in available:
            return Manager.DNF
        if Manager.YUM in available:
            return Manager.YUM
        return None
    if distro_id in _ARCH_FAMILY:
        return Manager.PACMAN
    return None


def _detect_os() -> str:
    system = platform.system().lower()

    if system == "linux":
        return "linux"
    elif system == "darwin":
        return "macos"
    else:
        raise CapabilityProbeError(f"Unsupported operating system: {system}")


def _detect_architecture() -> str:
    """Normalized architecture: 'x64', 'arm64', 'x86', 'arm'."""
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    else:
        return machine


def _detect_distribution(os_release: Path = Path("/etc/os-release")) -> str:
    """
    Linux distribution ID ('ubuntu', 'fedora', 'arch', ...) or 'unknown'.

    Uses the distro library; os-release and marker files cover hosts it
    cannot identify.
    """
    distro_id = distro.id()
    if distro_id:
        return distro_id.lower()

    try:
        if os_release.exists():
            for line in os_release.read_text().splitlines():
                if line.startswith("ID="):
                    return line.split("=", 1)[1].strip().strip('"').strip("'").lower()
    except OSError as e:
        logger.debug(f"Could not read {os_release}: {e}")

    distro_files = {
        "/etc/debian_version": "debian",
        "/etc/redhat-release": "rhel",
        "/etc/arch-release": "arch",
    }

    for file_path, distro_name in distro_files.items():
        if Path(file_path).exists():
            return distro_name

    return "unknown"


def _detect_wsl(proc_version: Path = Path("/proc/version")) -> bool:
    try:
        return "microsoft" in proc_version.read_text().lower()
    except OSError:
        return False


def clear_capabilities_cache():
    """
    Clear the capability probe cache.

    This forces the next call to detect_capabilities() to re-probe, which is
    needed after a version manager or package manager has been installed.
    """
    detect_capabilities.cache_clear()


__all__ = [
    "Manager",
    "SYSTEM_MANAGERS",
    "LANGUAGE_MANAGERS",
    "Capabilities",
    "detect_capabilities",
    "default_manager_for",
    "clear_capabilities_cache",
]
