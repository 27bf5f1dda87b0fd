"""
Tests for the installation dispatcher.
"""

from unittest.mock import patch

import pytest

from devstrap.config.catalog import BackendMapping
from devstrap.core.context import RunContext
from devstrap.core.exceptions import NotAvailableError
from devstrap.core.platform import Manager
from devstrap.packages.dispatcher import InstallationDispatcher
from devstrap.packages.github import GithubReleaseBackend
from devstrap.packages.language import CargoBackend
from devstrap.packages.methods import InstallMethod
from devstrap.packages.system import AptBackend

BAT = BackendMapping(id="bat", name="bat", cargo="bat")


class TestBackendFor:
    """Tests for backend selection."""

    def test_backend_types(self, apt_caps, ctx):
        """Test each method kind maps to its backend."""
        dispatcher = InstallationDispatcher(apt_caps, ctx)
        assert isinstance(dispatcher.backend_for(InstallMethod.system(Manager.APT)), AptBackend)
        assert isinstance(
            dispatcher.backend_for(InstallMethod.language(Manager.CARGO)), CargoBackend
        )
        assert isinstance(
            dispatcher.backend_for(InstallMethod.source_release()), GithubReleaseBackend
        )

    def test_backends_cached(self, apt_caps, ctx):
        """Test backends are created once."""
        dispatcher = InstallationDispatcher(apt_caps, ctx)
        method = InstallMethod.language(Manager.CARGO)
        assert dispatcher.backend_for(method) is dispatcher.backend_for(method)

    def test_already_present_has_no_backend(self, apt_caps, ctx):
        """Test unknown-origin installs cannot be driven."""
        dispatcher = InstallationDispatcher(apt_caps, ctx)
        with pytest.raises(NotAvailableError):
            dispatcher.uninstall(BAT, InstallMethod.already_present())


class TestDryRun:
    """Tests for dry-run behavior."""

    def test_install_only_reports(self, apt_caps, config_path, caplog):
        """Test dry-run logs the command instead of running it."""
        ctx = RunContext(config_path=config_path, dry_run=True)
        dispatcher = InstallationDispatcher(apt_caps, ctx)

        with patch("devstrap.packages.base.run_command") as run, caplog.at_level("INFO"):
            dispatcher.install(BAT, InstallMethod.language(Manager.CARGO), "0.24.0")

        run.assert_not_called()
        assert "[DRY-RUN] Would install bat: cargo install bat --version 0.24.0" in caplog.text

    def test_uninstall_only_reports(self, apt_caps, config_path, caplog):
        """Test dry-run removal."""
        ctx = RunContext(config_path=config_path, dry_run=True)
        dispatcher = InstallationDispatcher(apt_caps, ctx)

        with patch("devstrap.packages.base.run_command") as run, caplog.at_level("INFO"):
            dispatcher.uninstall(BAT, InstallMethod.language(Manager.CARGO))

        run.assert_not_called()
        assert "Would remove bat: cargo uninstall bat" in caplog.text

    def test_update_index_only_reports(self, apt_caps, config_path):
        """Test dry-run index refresh."""
        ctx = RunContext(config_path=config_path, dry_run=True)
        with patch("devstrap.packages.system.run_command") as run:
            InstallationDispatcher(apt_caps, ctx).update_index(Manager.APT)
        run.assert_not_called()


class TestExecution:
    """Tests for real (mocked) execution."""

    def test_install_calls_backend(self, apt_caps, ctx):
        """Test install reaches the backend command."""
        with patch("devstrap.packages.base.run_command") as run:
            InstallationDispatcher(apt_caps, ctx).install(BAT, InstallMethod.language(Manager.CARGO))
        run.assert_called_once_with(["cargo", "install", "bat"])
