"""Configuration validation module for devstrap.

Semantic checks that need the package catalog: every requested package id
must be known, and every explicit runtime manager must be one devstrap can
drive. Errors here abort a run before anything is installed.
"""

import difflib
from dataclasses import dataclass
from typing import List

from devstrap.config.catalog import Catalog
from devstrap.config.parser import DevstrapConfig
from devstrap.core.exceptions import ConfigurationInvalidError
from devstrap.runtime.strategy import VersionManager


@dataclass
class ValidationIssue:
    """A single validation issue."""

    level: str  # 'error', 'warning'
    field: str  # Configuration field path
    message: str  # Human-readable message
    suggestion: str  # How to fix it


@dataclass
class ValidationResult:
    """Result of configuration validation."""

    valid: bool
    issues: List[ValidationIssue]

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.level == "error"]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.level == "warning"]


class ConfigValidator:
    """Validates a parsed configuration against the package catalog."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        self.issues: List[ValidationIssue] = []

    def validate(self, config: DevstrapConfig) -> ValidationResult:
        self.issues = []

        self._validate_packages(config)
        self._validate_package_versions(config)
        self._validate_runtimes(config)

        has_errors = any(issue.level == "error" for issue in self.issues)
        return ValidationResult(valid=not has_errors, issues=self.issues)

    def validate_or_raise(self, config: DevstrapConfig) -> ValidationResult:
        """
        Validate and raise on errors.

        Raises:
            ConfigurationInvalidError: Listing every error found
        """
        result = self.validate(config)
        if not result.valid:
            lines = [f"{issue.message}" for issue in result.errors]
            raise ConfigurationInvalidError(
                "Invalid configuration:\n  " + "\n  ".join(lines), result.errors
            )
        return result

    def _validate_packages(self, config: DevstrapConfig):
        for group in config.groups:
            for package_id in group.packages:
                if package_id in self.catalog:
                    continue
                close = difflib.get_close_matches(package_id, self.catalog.ids(), n=1)
                suggestion = (
                    f"Did you mean '{close[0]}'?"
                    if close
                    else "Run 'devstrap list' to see supported packages"
                )
                self._add_error(
                    f"packages.{group.name}",
                    f"Package '{package_id}' in group '{group.name}' is not a supported package",
                    suggestion,
                )

    def _validate_package_versions(self, config: DevstrapConfig):
        desired = set(config.all_packages())
        for package_id in config.package_versions:
            if package_id not in desired:
                self._add_warning(
                    f"package_versions.{package_id}",
                    f"Version pinned for '{package_id}', which is not in any group",
                    "Add the package to a group or remove the pin",
                )

    def _validate_runtimes(self, config: DevstrapConfig):
        known_managers = [m.value for m in VersionManager]
        for name, spec in config.runtimes.items():
            if spec.manager is not None and spec.manager not in known_managers:
                self._add_error(
                    f"runtimes.{name}.manager",
                    f"Unknown version manager '{spec.manager}' for runtime '{name}'",
                    f"Supported managers: {', '.join(known_managers)}",
                )
            if spec.requires is not None and spec.requires not in config.runtimes:
                self._add_warning(
                    f"runtimes.{name}.requires",
                    f"Runtime '{name}' requires '{spec.requires}', which is not configured",
                    f"Add '{spec.requires}' to runtimes or drop 'requires'",
                )
            if spec.default not in spec.versions:
                self._add_warning(
                    f"runtimes.{name}.default",
                    f"Default version '{spec.default}' of '{name}' is not in its versions",
                    "It will be installed when it is selected as default",
                )

    def _add_error(self, field: str, message: str, suggestion: str):
        """Add error issue."""
        self.issues.append(
            ValidationIssue(
                level="error", field=field, message=message, suggestion=suggestion
            )
        )

    def _add_warning(self, field: str, message: str, suggestion: str):
        """Add warning issue."""
        self.issues.append(
            ValidationIssue(
                level="warning", field=field, message=message, suggestion=suggestion
            )
        )
