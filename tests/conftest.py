"""
Pytest configuration and shared fixtures for devstrap tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from devstrap.core.context import RunContext
from devstrap.core.platform import Capabilities, Manager, clear_capabilities_cache


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def isolated_home(temp_dir: Path, monkeypatch) -> Path:
    """Create isolated home directory for tests."""
    fake_home = temp_dir / "home"
    fake_home.mkdir()

    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setenv("USERPROFILE", str(fake_home))

    return fake_home


@pytest.fixture
def brew_caps() -> Capabilities:
    """macOS host with Homebrew as default manager plus cargo and npm."""
    return Capabilities(
        os="macos",
        arch="arm64",
        default_manager=Manager.BREW,
        available_managers=frozenset({Manager.BREW, Manager.CARGO, Manager.NPM}),
        is_apple_silicon=True,
    )


@pytest.fixture
def apt_caps() -> Capabilities:
    """Ubuntu host with APT as default manager plus cargo."""
    return Capabilities(
        os="linux",
        distro="ubuntu",
        arch="x64",
        default_manager=Manager.APT,
        available_managers=frozenset({Manager.APT, Manager.CARGO}),
    )


@pytest.fixture
def bare_caps() -> Capabilities:
    """Linux host without any package manager."""
    return Capabilities(os="linux", distro="unknown", arch="x64")


@pytest.fixture
def config_path(temp_dir: Path) -> Path:
    """Path of a devstrap.yaml inside the temporary directory (not created)."""
    return temp_dir / "devstrap.yaml"


@pytest.fixture
def ctx(config_path: Path) -> RunContext:
    """Non-interactive run context rooted in the temporary directory."""
    return RunContext(config_path=config_path, yes=True)


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset module-level caches between tests."""
    clear_capabilities_cache()
    yield
    clear_capabilities_cache()
