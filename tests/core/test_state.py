"""
Unit tests for the state store.

Tests record serialization, loading, saving and recovery from damaged files.
"""

import json
from unittest.mock import patch

import pytest

from devstrap.core.exceptions import PersistenceError
from devstrap.core.state import (
    STATE_FILE_NAME,
    DevstrapState,
    PackageRecord,
    RuntimeRecord,
    StateManager,
)


class TestPackageRecord:
    """Tests for PackageRecord dataclass."""

    def test_default_values(self):
        """Test PackageRecord default values."""
        record = PackageRecord(method="apt")
        assert record.version is None
        assert record.removal_failures == 0
        assert record.adopted is False
        assert record.installed_at

    def test_to_dict_omits_defaults(self):
        """Test counters and flags are only written when set."""
        data = PackageRecord(method="cargo", version="14.1.0", installed_at="t").to_dict()
        assert data == {"method": "cargo", "version": "14.1.0", "installed_at": "t"}

    def test_to_dict_with_failures_and_adopted(self):
        """Test removal failures and adoption are serialized."""
        record = PackageRecord(method="system", removal_failures=2, adopted=True)
        data = record.to_dict()
        assert data["removal_failures"] == 2
        assert data["adopted"] is True

    def test_from_dict_missing_optional_fields(self):
        """Test loading a minimal record."""
        record = PackageRecord.from_dict({"method": "brew"})
        assert record.method == "brew"
        assert record.version is None
        assert record.removal_failures == 0


class TestDevstrapState:
    """Tests for DevstrapState."""

    def test_add_and_remove_package(self):
        """Test adding then removing a package record."""
        state = DevstrapState()
        state.add_package("git", "apt")
        assert state.has_package("git")

        removed = state.remove_package("git")
        assert removed.method == "apt"
        assert not state.has_package("git")

    def test_remove_missing_package(self):
        """Test removing an untracked package returns None."""
        assert DevstrapState().remove_package("nope") is None

    def test_package_ids_sorted(self):
        """Test package ids come back in sorted order."""
        state = DevstrapState()
        state.add_package("zoxide", "cargo")
        state.add_package("bat", "brew")
        assert state.package_ids() == ["bat", "zoxide"]

    def test_add_package_resets_failures(self):
        """Test re-adding a package replaces its record."""
        state = DevstrapState()
        state.add_package("jq", "apt").removal_failures = 3
        state.add_package("jq", "apt")
        assert state.packages["jq"].removal_failures == 0

    def test_add_runtime(self):
        """Test recording a runtime."""
        state = DevstrapState()
        record = state.add_runtime("node", "20.11.0", "fnm")
        assert isinstance(record, RuntimeRecord)
        assert state.runtimes["node"].version == "20.11.0"
        assert record.versions == ["20.11.0"]

    def test_add_runtime_keeps_every_version(self):
        """Test extra versions are kept and the default is always listed."""
        state = DevstrapState()
        record = state.add_runtime("python", "3.12.1", "mise", ["3.11.7", "3.11.7"])
        assert record.versions == ["3.11.7", "3.12.1"]

    def test_runtime_without_versions_field(self):
        """Test records written before versions were tracked list their default."""
        record = RuntimeRecord.from_dict({"version": "20.11.0", "manager": "fnm"})
        assert record.versions == ["20.11.0"]

    def test_round_trip(self):
        """Test to_dict/from_dict preserve every field."""
        state = DevstrapState()
        state.add_package("git", "apt", version="2.43.0")
        state.add_package("fd", "system", adopted=True)
        state.add_runtime("rust", "stable", "rustup")
        state.add_runtime("python", "3.12.1", "mise", ["3.11.7"])

        restored = DevstrapState.from_dict(state.to_dict())
        assert restored == state


class TestStateManager:
    """Tests for StateManager."""

    def test_beside_config(self, temp_dir):
        """Test the state file lives next to the config file."""
        manager = StateManager.beside(temp_dir / "devstrap.yaml")
        assert manager.state_file == temp_dir / STATE_FILE_NAME

    def test_load_missing_file(self, temp_dir):
        """Test a missing state file loads as empty state."""
        state = StateManager(temp_dir / "devstrap.state").load()
        assert state.packages == {}
        assert state.runtimes == {}

    def test_save_and_load(self, temp_dir):
        """Test state survives a save/load cycle."""
        manager = StateManager(temp_dir / "devstrap.state")
        state = DevstrapState()
        state.add_package("ripgrep", "cargo", version="14.1.0")
        state.add_runtime("node", "20.11.0", "fnm")

        manager.save(state)
        loaded = manager.load()

        assert loaded.packages["ripgrep"].method == "cargo"
        assert loaded.packages["ripgrep"].version == "14.1.0"
        assert loaded.runtimes["node"].manager == "fnm"

    def test_saved_file_is_json(self, temp_dir):
        """Test the state file is readable JSON."""
        manager = StateManager(temp_dir / "devstrap.state")
        state = DevstrapState()
        state.add_package("git", "brew")
        manager.save(state)

        data = json.loads((temp_dir / "devstrap.state").read_text())
        assert data["packages"]["git"]["method"] == "brew"

    def test_load_corrupted_file(self, temp_dir):
        """Test a corrupted state file degrades to empty state."""
        path = temp_dir / "devstrap.state"
        path.write_text("{not json")
        state = StateManager(path).load()
        assert state.packages == {}

    def test_load_wrong_shape(self, temp_dir):
        """Test a record without a method degrades to empty state."""
        path = temp_dir / "devstrap.state"
        path.write_text(json.dumps({"packages": {"git": {"version": "1"}}}))
        assert StateManager(path).load().packages == {}

    def test_save_failure_raises(self, temp_dir):
        """Test write errors surface as PersistenceError."""
        manager = StateManager(temp_dir / "devstrap.state")
        with patch("devstrap.core.state.atomic_write", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError, match="disk full"):
                manager.save(DevstrapState())

    def test_save_or_log_returns_false(self, temp_dir):
        """Test save_or_log swallows the write error."""
        manager = StateManager(temp_dir / "devstrap.state")
        with patch("devstrap.core.state.atomic_write", side_effect=OSError("read-only")):
            assert manager.save_or_log(DevstrapState()) is False
