"""Per-manager version resolution strategies."""

from .standard import (
    FnmStrategy,
    MiseStrategy,
    PyenvStrategy,
    RbenvStrategy,
    RustupStrategy,
    SdkmanStrategy,
)

__all__ = [
    "FnmStrategy",
    "MiseStrategy",
    "PyenvStrategy",
    "RbenvStrategy",
    "RustupStrategy",
    "SdkmanStrategy",
]
