"""
Language package manager backends: npm, Cargo and pipx.
"""

from typing import Optional

from devstrap.core.platform import Manager
from devstrap.packages.base import CommandBackend
from devstrap.packages.methods import InstallMethod


class NpmBackend(CommandBackend):
    method = InstallMethod.language(Manager.NPM)

    def install_command(self, name: str, version: Optional[str]) -> list[str]:
        return ["npm", "install", "-g", f"{name}@{version}" if version else name]

    def uninstall_command(self, name: str) -> list[str]:
        return ["npm", "uninstall", "-g", name]


class CargoBackend(CommandBackend):
    method = InstallMethod.language(Manager.CARGO)

    def install_command(self, name: str, version: Optional[str]) -> list[str]:
        cmd = ["cargo", "install", name]
        if version:
            cmd.extend(["--version", version])
        return cmd

    def uninstall_command(self, name: str) -> list[str]:
        return ["cargo", "uninstall", name]


class PipxBackend(CommandBackend):
    method = InstallMethod.language(Manager.PIPX)

    def install_command(self, name: str, version: Optional[str]) -> list[str]:
        return ["pipx", "install", f"{name}=={version}" if version else name]

    def uninstall_command(self, name: str) -> list[str]:
        return ["pipx", "uninstall", name]


LANGUAGE_BACKENDS = {
    Manager.NPM: NpmBackend,
    Manager.CARGO: CargoBackend,
    Manager.PIPX: PipxBackend,
}
