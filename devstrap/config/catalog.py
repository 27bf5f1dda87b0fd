"""
Catalog of known packages.

The catalog maps a package id to its :class:`BackendMapping`: the name the
package has under each backend that can install it. It is loaded from the
embedded ``data/catalog.yaml`` and is read-only at runtime.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from devstrap.core.exceptions import ConfigError
from devstrap.core.platform import Manager, SYSTEM_MANAGERS
from devstrap.packages.methods import InstallMethod, MethodKind

logger = logging.getLogger(__name__)

# OS managers whose package name can come from the generic ``name`` field
_GENERIC_SYSTEM_ORDER = SYSTEM_MANAGERS

# Per-manager override fields for OS managers (yum shares dnf's)
_SYSTEM_OVERRIDE_FIELDS = {
    Manager.BREW: "brew",
    Manager.APT: "apt",
    Manager.PACMAN: "pacman",
    Manager.DNF: "dnf",
    Manager.YUM: "dnf",
}


@dataclass(frozen=True)
class GithubSource:
    """
    A GitHub repository whose latest release can be installed.

    Attributes:
        repo: ``owner/repo``
        asset: Optional asset name pattern; ``{os}`` and ``{arch}`` are
            substituted and shell-style wildcards are allowed
        script: Install script at the release tag to pipe into bash instead
            of downloading a binary asset
    """

    repo: str
    asset: Optional[str] = None
    script: Optional[str] = None

    @classmethod
    def parse(cls, value) -> "GithubSource":
        if isinstance(value, str):
            return cls(repo=value)
        if isinstance(value, dict) and "repo" in value:
            return cls(
                repo=str(value["repo"]),
                asset=value.get("asset"),
                script=value.get("script"),
            )
        raise ConfigError(f"Invalid github source: {value!r}")


@dataclass(frozen=True)
class BackendMapping:
    """
    How one package is named under each backend.

    Attributes:
        id: Catalog id used in configurations
        description: Human-readable description
        name: Package name for any OS package manager
        brew, apt, pacman, dnf: Per-manager overrides (dnf also serves yum)
        npm, cargo, pipx: Names for language package managers
        github: Source release location
        executable: Command name to look up on PATH (defaults to the id)
    """

    id: str
    description: Optional[str] = None
    name: Optional[str] = None
    brew: Optional[str] = None
    apt: Optional[str] = None
    pacman: Optional[str] = None
    dnf: Optional[str] = None
    npm: Optional[str] = None
    cargo: Optional[str] = None
    pipx: Optional[str] = None
    github: Optional[GithubSource] = None
    executable: Optional[str] = None

    @property
    def binary(self) -> str:
        return self.executable or self.id

    def candidates(self) -> list[InstallMethod]:
        """
        Every method this package declares, in declaration order.

        Declaration order is the tie-break for methods of equal priority:
        OS managers reachable through the generic ``name`` first, then npm,
        cargo, pipx and the source release, then OS managers only reachable
        through an explicit override.
        """
        methods: list[InstallMethod] = []

        if self.name:
            methods.extend(InstallMethod.system(m) for m in _GENERIC_SYSTEM_ORDER)

        if self.npm:
            methods.append(InstallMethod.language(Manager.NPM))
        if self.cargo:
            methods.append(InstallMethod.language(Manager.CARGO))
        if self.pipx:
            methods.append(InstallMethod.language(Manager.PIPX))
        if self.github:
            methods.append(InstallMethod.source_release())

        for manager in _GENERIC_SYSTEM_ORDER:
            method = InstallMethod.system(manager)
            if method not in methods and getattr(self, _SYSTEM_OVERRIDE_FIELDS[manager]):
                methods.append(method)

        return methods

    def name_for(self, method: InstallMethod) -> Optional[str]:
        """
        Package name to pass to the backend behind ``method``.

        Example:
            >>> fd.name_for(InstallMethod.system(Manager.BREW))
            'fd'
        """
        if method.kind is MethodKind.SYSTEM:
            override = getattr(self, _SYSTEM_OVERRIDE_FIELDS[method.manager])
            return override or self.name
        if method.kind is MethodKind.LANGUAGE:
            return getattr(self, method.manager.value)
        if method.kind is MethodKind.SOURCE_RELEASE:
            return self.github.repo if self.github else None
        return self.name or self.id

    @classmethod
    def from_dict(cls, package_id: str, data: Optional[dict]) -> "BackendMapping":
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Catalog entry for '{package_id}' must be a mapping")

        known = {
            "description", "name", "brew", "apt", "pacman", "dnf",
            "npm", "cargo", "pipx", "github", "executable",
        }
        unknown = set(data) - known
        if unknown:
            raise ConfigError(
                f"Catalog entry for '{package_id}' has unknown fields: "
                f"{', '.join(sorted(unknown))}"
            )

        github = data.get("github")
        return cls(
            id=package_id,
            description=data.get("description"),
            name=data.get("name"),
            brew=data.get("brew"),
            apt=data.get("apt"),
            pacman=data.get("pacman"),
            dnf=data.get("dnf"),
            npm=data.get("npm"),
            cargo=data.get("cargo"),
            pipx=data.get("pipx"),
            github=GithubSource.parse(github) if github else None,
            executable=data.get("executable"),
        )


class Catalog:
    """
    Read-only registry of known packages.

    Example:
        >>> catalog = Catalog.builtin()
        >>> catalog.get("fd").name_for(InstallMethod.system(Manager.APT))
        'fd-find'
    """

    def __init__(self, packages: dict[str, BackendMapping]):
        self._packages = dict(packages)

    @classmethod
    def from_file(cls, path: Path) -> "Catalog":
        """
        Raises:
            ConfigError: If the file is missing or malformed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"Failed to read catalog {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in catalog {path}: {e}") from e

        entries = data.get("packages") if isinstance(data, dict) else None
        if not isinstance(entries, dict):
            raise ConfigError(f"Catalog {path} has no 'packages' mapping")

        packages = {
            str(pid): BackendMapping.from_dict(str(pid), entry)
            for pid, entry in entries.items()
        }
        logger.debug(f"Loaded catalog with {len(packages)} packages from {path}")
        return cls(packages)

    @classmethod
    def builtin(cls) -> "Catalog":
        return cls.from_file(builtin_catalog_path())

    def get(self, package_id: str) -> Optional[BackendMapping]:
        return self._packages.get(package_id)

    def __contains__(self, package_id: str) -> bool:
        return package_id in self._packages

    def __len__(self) -> int:
        return len(self._packages)

    def ids(self) -> list[str]:
        return sorted(self._packages)

    def items(self) -> list[tuple[str, BackendMapping]]:
        return sorted(self._packages.items())


def builtin_catalog_path() -> Path:
    """Path to the embedded catalog: ../data/catalog.yaml."""
    return Path(__file__).parent.parent / "data" / "catalog.yaml"


__all__ = ["GithubSource", "BackendMapping", "Catalog", "builtin_catalog_path"]
