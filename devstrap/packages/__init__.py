"""
Package installation for devstrap.

This package resolves the best installation method for each package, detects
how packages are currently installed, and drives the backends that install
and remove them.
"""

from .methods import (
    MethodKind,
    InstallMethod,
    priority,
)

__all__ = [
    "MethodKind",
    "InstallMethod",
    "priority",
]
