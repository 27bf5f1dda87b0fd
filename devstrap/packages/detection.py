"""
Installed-method detection.

Infers how a package is currently installed on the live system. Signals are
tried cheapest first, first match wins:

1. executable not on the search path: not installed
2. well-known install directories in the executable's path
3. each available backend's "is this package installed" query
4. otherwise: installed by unknown means (already present)
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from devstrap.config.catalog import BackendMapping
from devstrap.core.command import command_succeeds, run_command_output
from devstrap.core.exceptions import CommandError
from devstrap.core.filesystem import find_executable
from devstrap.core.platform import Capabilities, Manager
from devstrap.packages.methods import InstallMethod

logger = logging.getLogger(__name__)

PATH_FRAGMENTS = [
    ("/.cargo/bin/", InstallMethod.language(Manager.CARGO)),
    ("/node_modules/", InstallMethod.language(Manager.NPM)),
    ("/npm/", InstallMethod.language(Manager.NPM)),
    ("/.local/pipx/", InstallMethod.language(Manager.PIPX)),
    ("/opt/homebrew/", InstallMethod.system(Manager.BREW)),
    ("/usr/local/Cellar/", InstallMethod.system(Manager.BREW)),
    ("/home/linuxbrew/.linuxbrew/", InstallMethod.system(Manager.BREW)),
]


def _listing_contains(cmd: list[str], predicate: Callable[[str], bool]) -> bool:
    try:
        output = run_command_output(cmd)
    except CommandError as e:
        logger.debug(f"Query failed: {e}")
        return False
    return any(predicate(line.strip()) for line in output.splitlines())


def _npm_has(name: str) -> bool:
    # "├── typescript@5.4.2"
    return _listing_contains(
        ["npm", "list", "-g", "--depth=0"],
        lambda line: f" {name}@" in f" {line.split(' ')[-1]}",
    )


def _cargo_has(name: str) -> bool:
    # "ripgrep v14.1.0:"
    return _listing_contains(
        ["cargo", "install", "--list"],
        lambda line: line.startswith(f"{name} v"),
    )


def _pipx_has(name: str) -> bool:
    # "httpie 3.2.2"
    return _listing_contains(
        ["pipx", "list", "--short"],
        lambda line: line.split(" ")[0] == name,
    )


BACKEND_QUERIES: dict[Manager, Callable[[str], bool]] = {
    Manager.BREW: lambda name: command_succeeds(["brew", "list", name]),
    Manager.NPM: _npm_has,
    Manager.PIPX: _pipx_has,
    Manager.CARGO: _cargo_has,
    Manager.APT: lambda name: command_succeeds(["dpkg", "-s", name]),
    Manager.PACMAN: lambda name: command_succeeds(["pacman", "-Q", name]),
    Manager.DNF: lambda name: command_succeeds(["rpm", "-q", name]),
    Manager.YUM: lambda name: command_succeeds(["rpm", "-q", name]),
}


def detect_from_path(executable: Path) -> Optional[InstallMethod]:
    """Match the executable's path (and its symlink target) against known install dirs."""
    paths = [str(executable)]
    try:
        resolved = str(executable.resolve())
        if resolved != paths[0]:
            paths.append(resolved)
    except OSError:
        pass

    for path_str in paths:
        for fragment, method in PATH_FRAGMENTS:
            if fragment in path_str:
                return method
    return None


def detect_from_backends(
    mapping: BackendMapping, caps: Capabilities
) -> Optional[InstallMethod]:
    """Ask each available backend whether it has the package."""
    for manager, query in BACKEND_QUERIES.items():
        if not caps.has_manager(manager):
            continue
        method = InstallMethod.for_manager(manager)
        name = mapping.name_for(method)
        if not name:
            continue
        if query(name):
            return method
    return None


def detect_installed_method(
    mapping: BackendMapping, caps: Capabilities
) -> Optional[InstallMethod]:
    """
    How the package is currently installed, or None if it is not.

    Example:
        >>> detect_installed_method(catalog.get("ripgrep"), caps)
        InstallMethod(kind=<MethodKind.LANGUAGE: 'language'>, manager=<Manager.CARGO: 'cargo'>)
    """
    executable = find_executable(mapping.binary)
    if executable is None:
        return None

    method = detect_from_path(executable)
    if method is None:
        method = detect_from_backends(mapping, caps)
    if method is None:
        method = InstallMethod.already_present()

    logger.debug(f"{mapping.id}: found {executable}, installed via {method.name}")
    return method


__all__ = [
    "PATH_FRAGMENTS",
    "BACKEND_QUERIES",
    "detect_from_path",
    "detect_from_backends",
    "detect_installed_method",
]
