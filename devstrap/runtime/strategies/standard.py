"""
Standard version resolution strategies.

One strategy per supported version manager. Listing commands run through
:mod:`devstrap.core.command`; only rustup resolves without a subprocess,
because its symbolic versions are channel names.
"""

import logging
import re
from typing import Optional

from devstrap.core.command import run_command_output
from devstrap.core.exceptions import VersionResolutionError
from devstrap.runtime.managers import SDKMAN_INIT
from devstrap.runtime.strategy import VersionManager, VersionResolverStrategy

logger = logging.getLogger(__name__)

PRERELEASE = re.compile(r"(?i)(rc\d*|alpha|beta|dev|preview|nightly|snapshot)")
PLAIN_VERSION = re.compile(r"^\d+(\.\d+)+$")
SDK_IDENTIFIER = re.compile(r"^\d+(\.\d+)*([-.+][\w.]+)?$")


def _unsupported(manager: VersionManager, runtime: str, keyword: str):
    return VersionResolutionError(
        f"{manager.value} cannot resolve '{keyword}' for {runtime}; "
        f"use a concrete version or 'latest'"
    )


def _last(lines: list[str]) -> Optional[str]:
    return lines[-1] if lines else None


class MiseStrategy(VersionResolverStrategy):
    """``mise ls-remote <runtime>`` lists versions oldest first."""

    manager = VersionManager.MISE

    def resolve(self, runtime: str, keyword: str) -> str:
        if keyword not in ("latest", "stable"):
            raise _unsupported(self.manager, runtime, keyword)

        output = run_command_output(["mise", "ls-remote", runtime])
        lines = [line.strip() for line in output.splitlines() if line.strip()]
        version = _last([line for line in lines if not PRERELEASE.search(line)])
        if version is None:
            raise VersionResolutionError(f"No versions found for {runtime}")
        return version


class RustupStrategy(VersionResolverStrategy):
    """Symbolic Rust versions are release channels."""

    manager = VersionManager.RUSTUP

    CHANNELS = {
        "latest": "stable",
        "stable": "stable",
        "beta": "beta",
        "nightly": "nightly",
    }

    def resolve(self, runtime: str, keyword: str) -> str:
        if keyword not in self.CHANNELS:
            raise _unsupported(self.manager, runtime, keyword)
        return self.CHANNELS[keyword]


class FnmStrategy(VersionResolverStrategy):
    """
    ``fnm ls-remote`` prints ``v20.11.0 (Iron)`` for LTS releases, oldest
    first.
    """

    manager = VersionManager.FNM

    def resolve(self, runtime: str, keyword: str) -> str:
        if keyword not in ("latest", "stable", "lts"):
            raise _unsupported(self.manager, runtime, keyword)

        output = run_command_output(["fnm", "ls-remote"])
        lines = [line.strip() for line in output.splitlines() if line.strip()]
        if keyword == "lts":
            lines = [line for line in lines if "LTS" in line or "(" in line]

        line = _last(lines)
        if line is None:
            raise VersionResolutionError(f"No {keyword} version found for {runtime}")
        return line.split()[0].lstrip("v")


class SdkmanStrategy(VersionResolverStrategy):
    """
    ``sdk list <candidate>`` lists newest first. Java's listing is a table
    whose last column is the installable identifier (``21.0.2-tem``).
    """

    manager = VersionManager.SDKMAN

    MARKERS = {">>>", ">", "*", "+", "|"}

    def resolve(self, runtime: str, keyword: str) -> str:
        if keyword not in ("latest", "stable"):
            raise _unsupported(self.manager, runtime, keyword)

        output = run_command_output(
            ["bash", "-c", f"{SDKMAN_INIT} && sdk list {runtime}"]
        )
        version = self.parse_latest(output)
        if version is None:
            raise VersionResolutionError(f"No latest version found for {runtime}")
        return version

    def parse_latest(self, output: str) -> Optional[str]:
        for line in output.splitlines():
            if "|" in line:
                identifier = line.split("|")[-1].strip()
                if SDK_IDENTIFIER.match(identifier) and not PRERELEASE.search(identifier):
                    return identifier
                continue
            for token in line.split():
                if token in self.MARKERS:
                    continue
                if SDK_IDENTIFIER.match(token) and not PRERELEASE.search(token):
                    return token
        return None


class PyenvStrategy(VersionResolverStrategy):
    """``pyenv install --list``: CPython releases are bare ``X.Y.Z`` lines."""

    manager = VersionManager.PYENV

    def resolve(self, runtime: str, keyword: str) -> str:
        if keyword not in ("latest", "stable"):
            raise _unsupported(self.manager, runtime, keyword)

        output = run_command_output(["pyenv", "install", "--list"])
        versions = [
            line.strip()
            for line in output.splitlines()
            if PLAIN_VERSION.match(line.strip())
        ]
        version = _last(versions)
        if version is None:
            raise VersionResolutionError(f"No versions found for {runtime}")
        return version


class RbenvStrategy(VersionResolverStrategy):
    """``rbenv install --list`` shows the latest stable releases."""

    manager = VersionManager.RBENV

    def resolve(self, runtime: str, keyword: str) -> str:
        if keyword not in ("latest", "stable"):
            raise _unsupported(self.manager, runtime, keyword)

        output = run_command_output(["rbenv", "install", "--list"])
        versions = [
            line.strip()
            for line in output.splitlines()
            if PLAIN_VERSION.match(line.strip())
        ]
        version = _last(versions)
        if version is None:
            raise VersionResolutionError(f"No versions found for {runtime}")
        return version


__all__ = [
    "MiseStrategy",
    "RustupStrategy",
    "FnmStrategy",
    "SdkmanStrategy",
    "PyenvStrategy",
    "RbenvStrategy",
]
