"""
Tests for OS and language package manager backends.
"""

from unittest.mock import patch

import pytest

from devstrap.config.catalog import BackendMapping
from devstrap.core.exceptions import CommandError
from devstrap.packages.language import CargoBackend, NpmBackend, PipxBackend
from devstrap.packages.system import (
    AptBackend,
    BrewBackend,
    DnfBackend,
    PacmanBackend,
    YumBackend,
)

FD = BackendMapping(
    id="fd", name="fd-find", brew="fd", pacman="fd", cargo="fd-find", executable="fd"
)


@pytest.fixture
def as_root():
    with patch("devstrap.packages.base.needs_sudo", return_value=False):
        yield


@pytest.fixture
def as_user():
    with patch("devstrap.packages.base.needs_sudo", return_value=True):
        yield


class TestSystemBackends:
    """Tests for OS package manager command lines."""

    def test_brew_uses_override(self):
        """Test brew installs the brew-specific name."""
        assert BrewBackend().describe_install(FD) == "brew install fd"

    def test_brew_versioned(self):
        """Test brew pins via versioned formulae."""
        assert BrewBackend().install_command("python", "3.12") == ["brew", "install", "python@3.12"]

    def test_apt_sudo(self, as_user):
        """Test apt is prefixed with sudo for normal users."""
        assert AptBackend().describe_install(FD) == "sudo apt-get install -y fd-find"

    def test_apt_as_root(self, as_root):
        """Test root runs apt directly."""
        assert AptBackend().describe_install(FD, "8.7.0-3") == "apt-get install -y fd-find=8.7.0-3"

    def test_pacman(self, as_root):
        """Test pacman install and removal."""
        backend = PacmanBackend()
        assert backend.describe_install(FD) == "pacman -S --noconfirm --needed fd"
        assert backend.describe_uninstall(FD) == "pacman -R --noconfirm fd"

    def test_dnf_versioned(self, as_root):
        """Test dnf pins with name-version."""
        assert DnfBackend().describe_install(FD, "9.0") == "dnf install -y fd-find-9.0"

    def test_yum_uses_yum(self, as_root):
        """Test YUM reuses the DNF backend with its own command."""
        assert YumBackend().describe_uninstall(FD) == "yum remove -y fd-find"

    def test_install_runs_command(self, as_root):
        """Test install executes the built command."""
        with patch("devstrap.packages.base.run_command") as run:
            AptBackend().install(FD)
        run.assert_called_once_with(["apt-get", "install", "-y", "fd-find"])

    def test_install_failure_propagates(self, as_root):
        """Test command failures reach the caller."""
        with patch(
            "devstrap.packages.base.run_command", side_effect=CommandError(["apt-get"], 100)
        ):
            with pytest.raises(CommandError):
                AptBackend().install(FD)

    def test_apt_update_index(self, as_root):
        """Test apt-get update refreshes the index."""
        with patch("devstrap.packages.system.run_command") as run:
            AptBackend().update_index()
        run.assert_called_once_with(["apt-get", "update"])

    def test_dnf_check_update_tolerates_100(self, as_root):
        """Test 'updates available' is not a failure."""
        with patch(
            "devstrap.packages.system.run_command",
            side_effect=CommandError(["dnf", "check-update"], 100),
        ):
            DnfBackend().update_index()

    def test_dnf_check_update_real_failure(self, as_root):
        """Test other exit codes still fail."""
        with patch(
            "devstrap.packages.system.run_command",
            side_effect=CommandError(["dnf", "check-update"], 1),
        ):
            with pytest.raises(CommandError):
                DnfBackend().update_index()


class TestLanguageBackends:
    """Tests for language package manager command lines."""

    def test_cargo(self):
        """Test cargo install with and without a version."""
        backend = CargoBackend()
        assert backend.describe_install(FD) == "cargo install fd-find"
        assert backend.describe_install(FD, "9.0.0") == "cargo install fd-find --version 9.0.0"
        assert backend.describe_uninstall(FD) == "cargo uninstall fd-find"

    def test_npm_versioned(self):
        """Test npm pins with name@version."""
        mapping = BackendMapping(id="tldr", npm="tldr")
        assert NpmBackend().describe_install(mapping, "3.4.0") == "npm install -g tldr@3.4.0"

    def test_pipx_versioned(self):
        """Test pipx pins with name==version."""
        mapping = BackendMapping(id="httpie", pipx="httpie")
        assert PipxBackend().describe_install(mapping, "3.2.2") == "pipx install httpie==3.2.2"

    def test_uninstall_runs_command(self):
        """Test uninstall executes the removal command."""
        mapping = BackendMapping(id="httpie", pipx="httpie")
        with patch("devstrap.packages.base.run_command") as run:
            PipxBackend().uninstall(mapping)
        run.assert_called_once_with(["pipx", "uninstall", "httpie"])
