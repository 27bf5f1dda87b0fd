"""
System-provided languages (compilers installed through the OS package
manager rather than a version manager).
"""

import logging
from typing import Optional

from devstrap.config.catalog import BackendMapping
from devstrap.core.exceptions import DevstrapError
from devstrap.core.platform import Manager
from devstrap.packages.dispatcher import InstallationDispatcher
from devstrap.packages.methods import InstallMethod
from devstrap.sync.report import ErrorReport

logger = logging.getLogger(__name__)

_GCC = {
    Manager.APT: ["gcc", "build-essential"],
    Manager.DNF: ["gcc", "make"],
    Manager.YUM: ["gcc", "make"],
    Manager.PACMAN: ["gcc", "base-devel"],
    Manager.BREW: ["gcc"],
}
_GXX = {
    Manager.APT: ["g++", "build-essential"],
    Manager.DNF: ["gcc-c++", "make"],
    Manager.YUM: ["gcc-c++", "make"],
    Manager.PACMAN: ["gcc", "base-devel"],
    Manager.BREW: ["gcc"],
}
_CLANG = {Manager.BREW: ["llvm"]}

SYSTEM_LANGUAGE_PACKAGES = {
    "c": _GCC,
    "gcc": _GCC,
    "cpp": _GXX,
    "g++": _GXX,
    "clang": _CLANG,
}


def packages_for_language(language: str, manager: Manager) -> list[str]:
    """
    OS packages providing a language on a given package manager.

    Example:
        >>> packages_for_language("cpp", Manager.APT)
        ['g++', 'build-essential']
    """
    table = SYSTEM_LANGUAGE_PACKAGES.get(language)
    if table is None:
        return [language]
    return table.get(manager, [language])


def install_system_languages(
    languages: dict[str, bool],
    manager: Optional[Manager],
    dispatcher: InstallationDispatcher,
    report: ErrorReport,
) -> None:
    enabled = [name for name, on in languages.items() if on]
    if not enabled:
        return

    logger.info(f"Installing system languages: {', '.join(enabled)}")
    if manager is None:
        for name in enabled:
            report.add_skip(name, "no system package manager on this host")
        return

    method = InstallMethod.system(manager)
    done: set[str] = set()
    for language in enabled:
        for package in packages_for_language(language, manager):
            if package in done:
                continue
            done.add(package)
            try:
                dispatcher.install(BackendMapping(id=package, name=package), method)
            except (DevstrapError, OSError) as e:
                report.record(f"{language} ({package})", e)
