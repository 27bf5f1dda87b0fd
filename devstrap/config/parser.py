"""YAML configuration parser for devstrap.

This module parses ``devstrap.yaml``, the declarative description of the
packages, pinned package versions, runtimes and system languages a machine
should have.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from devstrap.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "devstrap.yaml"
DEFAULT_GROUP = "default"

KNOWN_SECTIONS = {"packages", "package_versions", "runtimes", "system_languages"}


@dataclass
class PackageGroup:
    """An ordered group of package ids, installed one after another."""

    name: str
    packages: list[str] = field(default_factory=list)


@dataclass
class RuntimeSpec:
    """
    A language runtime to install through a version manager.

    Attributes:
        name: Runtime name ('node', 'python', 'rust', ...)
        versions: Versions to install, symbolic or concrete
        default: Version to select as the global default
        manager: Explicit version manager, overriding the default table
        requires: Another runtime that must be processed first
    """

    name: str
    versions: list[str] = field(default_factory=lambda: ["latest"])
    default: str = "latest"
    manager: Optional[str] = None
    requires: Optional[str] = None


@dataclass
class DevstrapConfig:
    """Parsed desired configuration."""

    groups: list[PackageGroup] = field(default_factory=list)
    package_versions: dict[str, str] = field(default_factory=dict)
    runtimes: dict[str, RuntimeSpec] = field(default_factory=dict)
    system_languages: dict[str, bool] = field(default_factory=dict)

    def all_packages(self) -> list[str]:
        """Every desired package id, in group order, without duplicates."""
        seen: list[str] = []
        for group in self.groups:
            for package_id in group.packages:
                if package_id not in seen:
                    seen.append(package_id)
        return seen

    def group_of(self, package_id: str) -> Optional[str]:
        for group in self.groups:
            if package_id in group.packages:
                return group.name
        return None


def parse_config(config_path: Path) -> DevstrapConfig:
    """
    Parse devstrap.yaml configuration file.

    Args:
        config_path: Path to devstrap.yaml

    Returns:
        Parsed configuration

    Raises:
        ConfigError: If the file is missing or malformed
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if data is None:
        logger.warning(f"Configuration file is empty: {config_path}")
        return DevstrapConfig()

    return parse_config_data(data)


def parse_config_data(data: dict) -> DevstrapConfig:
    """Build a :class:`DevstrapConfig` from already-loaded YAML data."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    unknown = set(data) - KNOWN_SECTIONS
    if unknown:
        logger.warning(f"Ignoring unknown configuration sections: {', '.join(sorted(unknown))}")

    return DevstrapConfig(
        groups=_parse_groups(data.get("packages")),
        package_versions=_parse_package_versions(data.get("package_versions")),
        runtimes=_parse_runtimes(data.get("runtimes")),
        system_languages=_parse_system_languages(data.get("system_languages")),
    )


def _as_version(value, where: str) -> str:
    if isinstance(value, float):
        raise ConfigError(
            f"Version {value} for {where} must be quoted (e.g. \"{value}\") "
            f"so it is not read as a number"
        )
    if isinstance(value, bool) or value is None or isinstance(value, (list, dict)):
        raise ConfigError(f"Invalid version for {where}: {value!r}")
    return str(value)


def _parse_package_list(value, group: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
        raise ConfigError(f"Group '{group}' must be a list of package ids")
    return list(value)


def _parse_groups(value) -> list[PackageGroup]:
    """
    Accepted shapes:
        - a flat list of ids: one implicit group
        - a list of lists: groups named group-1, group-2, ...
        - a mapping of group name to list of ids, in file order
    """
    if value is None:
        return []

    if isinstance(value, dict):
        return [
            PackageGroup(name=str(name), packages=_parse_package_list(ids or [], str(name)))
            for name, ids in value.items()
        ]

    if not isinstance(value, list):
        raise ConfigError("'packages' must be a list or a mapping of groups")

    if all(isinstance(item, str) for item in value):
        return [PackageGroup(name=DEFAULT_GROUP, packages=list(value))]

    if all(isinstance(item, list) for item in value):
        return [
            PackageGroup(name=f"group-{i}", packages=_parse_package_list(item, f"group-{i}"))
            for i, item in enumerate(value, start=1)
        ]

    raise ConfigError(
        "'packages' cannot mix package ids and groups; use either a flat list "
        "or a list of lists"
    )


def _parse_package_versions(value) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError("'package_versions' must be a mapping of package id to version")
    return {
        str(pid): _as_version(version, f"package '{pid}'")
        for pid, version in value.items()
    }


def _parse_runtime(name: str, value) -> RuntimeSpec:
    if isinstance(value, dict):
        unknown = set(value) - {"version", "versions", "default", "manager", "requires"}
        if unknown:
            raise ConfigError(
                f"Runtime '{name}' has unknown fields: {', '.join(sorted(unknown))}"
            )

        where = f"runtime '{name}'"
        version = value.get("version")
        versions = value.get("versions")

        if versions is not None:
            if not isinstance(versions, list) or not versions:
                raise ConfigError(f"'versions' for {where} must be a non-empty list")
            version_list = [_as_version(v, where) for v in versions]
        elif version is not None:
            version_list = [_as_version(version, where)]
        else:
            version_list = ["latest"]

        if value.get("default") is not None:
            default = _as_version(value["default"], where)
        elif version is not None:
            default = _as_version(version, where)
        else:
            default = version_list[0]

        return RuntimeSpec(
            name=name,
            versions=version_list,
            default=default,
            manager=value.get("manager"),
            requires=value.get("requires"),
        )

    version = _as_version(value, f"runtime '{name}'")
    return RuntimeSpec(name=name, versions=[version], default=version)


def _parse_runtimes(value) -> dict[str, RuntimeSpec]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError("'runtimes' must be a mapping of runtime name to spec")
    return {str(name): _parse_runtime(str(name), spec) for name, spec in value.items()}


def _parse_system_languages(value) -> dict[str, bool]:
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(isinstance(v, bool) for v in value.values()):
        raise ConfigError("'system_languages' must be a mapping of language to true/false")
    return {str(k): v for k, v in value.items()}


__all__ = [
    "DEFAULT_CONFIG_NAME",
    "PackageGroup",
    "RuntimeSpec",
    "DevstrapConfig",
    "parse_config",
    "parse_config_data",
]
