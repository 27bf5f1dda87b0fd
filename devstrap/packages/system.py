"""
OS package manager backends: Homebrew, APT, Pacman, DNF and YUM.
"""

import logging
from typing import Optional

from devstrap.core.command import run_command
from devstrap.core.exceptions import CommandError
from devstrap.core.platform import Manager
from devstrap.packages.base import CommandBackend
from devstrap.packages.methods import InstallMethod

logger = logging.getLogger(__name__)


class BrewBackend(CommandBackend):
    method = InstallMethod.system(Manager.BREW)

    def install_command(self, name: str, version: Optional[str]) -> list[str]:
        # Versioned formulae are named formula@version
        return ["brew", "install", f"{name}@{version}" if version else name]

    def uninstall_command(self, name: str) -> list[str]:
        return ["brew", "uninstall", name]

    def update_index(self) -> None:
        run_command(["brew", "update"])


class AptBackend(CommandBackend):
    method = InstallMethod.system(Manager.APT)
    use_sudo = True

    def install_command(self, name: str, version: Optional[str]) -> list[str]:
        return ["apt-get", "install", "-y", f"{name}={version}" if version else name]

    def uninstall_command(self, name: str) -> list[str]:
        return ["apt-get", "remove", "-y", name]

    def update_index(self) -> None:
        run_command(self._prefix(["apt-get", "update"]))


class PacmanBackend(CommandBackend):
    method = InstallMethod.system(Manager.PACMAN)
    use_sudo = True

    def install_command(self, name: str, version: Optional[str]) -> list[str]:
        if version:
            logger.warning(
                f"pacman cannot install pinned versions; installing current {name}"
            )
        return ["pacman", "-S", "--noconfirm", "--needed", name]

    def uninstall_command(self, name: str) -> list[str]:
        return ["pacman", "-R", "--noconfirm", name]

    def update_index(self) -> None:
        run_command(self._prefix(["pacman", "-Sy"]))


class DnfBackend(CommandBackend):
    method = InstallMethod.system(Manager.DNF)
    use_sudo = True

    def install_command(self, name: str, version: Optional[str]) -> list[str]:
        return [
            self.method.manager.command,
            "install",
            "-y",
            f"{name}-{version}" if version else name,
        ]

    def uninstall_command(self, name: str) -> list[str]:
        return [self.method.manager.command, "remove", "-y", name]

    def update_index(self) -> None:
        # check-update exits 100 when updates are available
        try:
            run_command(self._prefix([self.method.manager.command, "check-update"]))
        except CommandError as e:
            if e.returncode != 100:
                raise


class YumBackend(DnfBackend):
    method = InstallMethod.system(Manager.YUM)


SYSTEM_BACKENDS = {
    Manager.BREW: BrewBackend,
    Manager.APT: AptBackend,
    Manager.PACMAN: PacmanBackend,
    Manager.DNF: DnfBackend,
    Manager.YUM: YumBackend,
}
