"""
Tests for the GitHub release backend.
"""

import io
import tarfile
from unittest.mock import patch

import pytest
import responses

from devstrap.config.catalog import BackendMapping, GithubSource
from devstrap.core.exceptions import DownloadError, NotAvailableError
from devstrap.core.filesystem import FilesystemError
from devstrap.core.platform import Capabilities
from devstrap.packages.github import (
    API_BASE,
    GithubReleaseBackend,
    find_binary,
    select_asset,
)

LINUX_X64 = Capabilities(os="linux", distro="ubuntu", arch="x64")
MACOS_ARM = Capabilities(os="macos", arch="arm64", is_apple_silicon=True)

JQ = BackendMapping(id="jq", name="jq", github=GithubSource("jqlang/jq", asset="jq-{os}-{arch}"))
RIPGREP = BackendMapping(
    id="ripgrep", github=GithubSource("BurntSushi/ripgrep"), executable="rg"
)
NVM = BackendMapping(id="nvm", github=GithubSource("nvm-sh/nvm", script="install.sh"))

RIPGREP_ASSETS = [
    {"name": "ripgrep-14.1.0-x86_64-unknown-linux-musl.tar.gz.sha256"},
    {"name": "ripgrep_14.1.0-1_amd64.deb"},
    {"name": "ripgrep-14.1.0-aarch64-apple-darwin.tar.gz"},
    {
        "name": "ripgrep-14.1.0-x86_64-unknown-linux-musl.tar.gz",
        "browser_download_url": "https://github.com/BurntSushi/ripgrep/releases/download/14.1.0/"
        "ripgrep-14.1.0-x86_64-unknown-linux-musl.tar.gz",
    },
]


def _tarball(member: str, content: bytes = b"#!/bin/sh\n") -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        info = tarfile.TarInfo(member)
        info.size = len(content)
        tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


class TestSelectAsset:
    """Tests for select_asset()."""

    def test_pattern(self):
        """Test the catalog pattern is filled with OS and arch names."""
        assets = [{"name": "jq-linux-amd64"}, {"name": "jq-macos-arm64"}]
        assert select_asset(assets, JQ.github, LINUX_X64)["name"] == "jq-linux-amd64"
        assert select_asset(assets, JQ.github, MACOS_ARM)["name"] == "jq-macos-arm64"

    def test_auto_skips_checksums_and_packages(self):
        """Test checksum and distro package assets are ignored."""
        asset = select_asset(RIPGREP_ASSETS, RIPGREP.github, LINUX_X64)
        assert asset["name"] == "ripgrep-14.1.0-x86_64-unknown-linux-musl.tar.gz"

    def test_auto_macos(self):
        """Test darwin/aarch64 naming matches Apple Silicon."""
        asset = select_asset(RIPGREP_ASSETS, RIPGREP.github, MACOS_ARM)
        assert asset["name"] == "ripgrep-14.1.0-aarch64-apple-darwin.tar.gz"

    def test_no_match(self):
        """Test None when nothing fits the host."""
        caps = Capabilities(os="linux", arch="riscv64")
        assert select_asset(RIPGREP_ASSETS, RIPGREP.github, caps) is None


class TestFindBinary:
    """Tests for find_binary()."""

    def test_shallowest_wins(self, temp_dir):
        """Test the least nested match is returned."""
        (temp_dir / "a" / "b").mkdir(parents=True)
        (temp_dir / "a" / "b" / "rg").write_text("deep")
        (temp_dir / "a" / "rg").write_text("shallow")
        assert find_binary(temp_dir, "rg") == temp_dir / "a" / "rg"


class TestGithubReleaseBackend:
    """Tests for GithubReleaseBackend."""

    @responses.activate
    def test_install_raw_binary(self, temp_dir):
        """Test a bare binary asset is copied and made executable."""
        url = "https://github.com/jqlang/jq/releases/download/jq-1.7.1/jq-linux-amd64"
        responses.add(
            responses.GET,
            f"{API_BASE}/repos/jqlang/jq/releases/latest",
            json={
                "tag_name": "jq-1.7.1",
                "assets": [
                    {"name": "jq-linux-amd64", "browser_download_url": url},
                    {"name": "jq-macos-arm64", "browser_download_url": url + "x"},
                ],
            },
        )
        responses.add(responses.GET, url, body=b"\x7fELF")

        backend = GithubReleaseBackend(LINUX_X64, install_dir=temp_dir / "bin")
        backend.install(JQ)

        target = temp_dir / "bin" / "jq"
        assert target.read_bytes() == b"\x7fELF"
        assert target.stat().st_mode & 0o111

    @responses.activate
    def test_install_from_archive(self, temp_dir):
        """Test the executable is found inside an extracted archive."""
        asset = RIPGREP_ASSETS[-1]
        responses.add(
            responses.GET,
            f"{API_BASE}/repos/BurntSushi/ripgrep/releases/latest",
            json={"tag_name": "14.1.0", "assets": RIPGREP_ASSETS},
        )
        responses.add(
            responses.GET,
            asset["browser_download_url"],
            body=_tarball("ripgrep-14.1.0-x86_64-unknown-linux-musl/rg"),
        )

        backend = GithubReleaseBackend(LINUX_X64, install_dir=temp_dir / "bin")
        backend.install(RIPGREP)
        assert (temp_dir / "bin" / "rg").exists()

    @responses.activate
    def test_pinned_version_tries_v_prefix(self, temp_dir):
        """Test pinned versions fall back from v<version> to <version>."""
        responses.add(
            responses.GET, f"{API_BASE}/repos/jqlang/jq/releases/tags/v1.7.1", status=404
        )
        responses.add(
            responses.GET,
            f"{API_BASE}/repos/jqlang/jq/releases/tags/1.7.1",
            json={"tag_name": "1.7.1", "assets": []},
        )

        backend = GithubReleaseBackend(LINUX_X64, install_dir=temp_dir)
        assert backend.fetch_release("jqlang/jq", "1.7.1")["tag_name"] == "1.7.1"

    @responses.activate
    def test_token_header(self, temp_dir, monkeypatch):
        """Test GITHUB_TOKEN is sent when set."""
        monkeypatch.setenv("GITHUB_TOKEN", "secret")
        responses.add(
            responses.GET,
            f"{API_BASE}/repos/jqlang/jq/releases/latest",
            json={"tag_name": "x", "assets": []},
        )
        GithubReleaseBackend(LINUX_X64, install_dir=temp_dir).fetch_release("jqlang/jq")
        assert responses.calls[0].request.headers["Authorization"] == "Bearer secret"

    @responses.activate
    def test_no_matching_asset(self, temp_dir):
        """Test a release without a host asset is not available."""
        responses.add(
            responses.GET,
            f"{API_BASE}/repos/jqlang/jq/releases/latest",
            json={"tag_name": "jq-1.7.1", "assets": [{"name": "jq-windows-amd64.exe"}]},
        )
        backend = GithubReleaseBackend(LINUX_X64, install_dir=temp_dir)
        with pytest.raises(NotAvailableError, match="no release asset"):
            backend.install(JQ)

    @responses.activate
    def test_install_script(self, temp_dir):
        """Test script installs pipe the tagged script into bash."""
        responses.add(
            responses.GET,
            f"{API_BASE}/repos/nvm-sh/nvm/releases/latest",
            json={"tag_name": "v0.39.7", "assets": []},
        )
        with patch("devstrap.packages.github.run_shell") as run:
            GithubReleaseBackend(LINUX_X64, install_dir=temp_dir).install(NVM)

        script = run.call_args[0][0]
        assert "raw.githubusercontent.com/nvm-sh/nvm/v0.39.7/install.sh" in script

    def test_uninstall_removes_binary(self, temp_dir):
        """Test uninstall deletes the installed executable."""
        (temp_dir / "rg").write_text("x")
        GithubReleaseBackend(LINUX_X64, install_dir=temp_dir).uninstall(RIPGREP)
        assert not (temp_dir / "rg").exists()

    def test_uninstall_unremovable_target(self, temp_dir):
        """Test a target that cannot be unlinked raises FilesystemError."""
        (temp_dir / "rg").mkdir()
        with pytest.raises(FilesystemError, match="Failed to remove"):
            GithubReleaseBackend(LINUX_X64, install_dir=temp_dir).uninstall(RIPGREP)

    def test_uninstall_script_install(self, temp_dir):
        """Test script installs cannot be removed automatically."""
        with pytest.raises(NotAvailableError, match="remove it manually"):
            GithubReleaseBackend(LINUX_X64, install_dir=temp_dir).uninstall(NVM)

    def test_describe(self, temp_dir):
        """Test dry-run descriptions."""
        backend = GithubReleaseBackend(LINUX_X64, install_dir=temp_dir)
        assert "jqlang/jq latest release" in backend.describe_install(JQ)
        assert backend.describe_uninstall(RIPGREP) == f"delete {temp_dir / 'rg'}"


class TestGithubReleaseFailures:
    """Tests for malformed releases and local install failures."""

    @responses.activate
    def test_release_without_tag(self, temp_dir):
        """Test release metadata missing tag_name is a download failure."""
        responses.add(
            responses.GET,
            f"{API_BASE}/repos/jqlang/jq/releases/latest",
            json={"assets": []},
        )
        backend = GithubReleaseBackend(LINUX_X64, install_dir=temp_dir)
        with pytest.raises(DownloadError, match="no tag_name"):
            backend.install(JQ)

    @responses.activate
    def test_asset_without_download_url(self, temp_dir):
        """Test an asset missing browser_download_url is a download failure."""
        responses.add(
            responses.GET,
            f"{API_BASE}/repos/jqlang/jq/releases/latest",
            json={"tag_name": "jq-1.7.1", "assets": [{"name": "jq-linux-amd64"}]},
        )
        backend = GithubReleaseBackend(LINUX_X64, install_dir=temp_dir)
        with pytest.raises(DownloadError, match="no download URL"):
            backend.install(JQ)

    @responses.activate
    def test_copy_failure_is_filesystem_error(self, temp_dir):
        """Test an OSError while placing the binary becomes FilesystemError."""
        url = "https://github.com/jqlang/jq/releases/download/jq-1.7.1/jq-linux-amd64"
        responses.add(
            responses.GET,
            f"{API_BASE}/repos/jqlang/jq/releases/latest",
            json={
                "tag_name": "jq-1.7.1",
                "assets": [{"name": "jq-linux-amd64", "browser_download_url": url}],
            },
        )
        responses.add(responses.GET, url, body=b"\x7fELF")

        backend = GithubReleaseBackend(LINUX_X64, install_dir=temp_dir / "bin")
        with patch(
            "devstrap.packages.github.shutil.copy2", side_effect=OSError(26, "Text file busy")
        ):
            with pytest.raises(FilesystemError, match="Text file busy"):
                backend.install(JQ)

    @responses.activate
    def test_install_creates_nested_directory(self, temp_dir):
        """Test a missing install directory is created with its parents."""
        url = "https://github.com/jqlang/jq/releases/download/jq-1.7.1/jq-linux-amd64"
        responses.add(
            responses.GET,
            f"{API_BASE}/repos/jqlang/jq/releases/latest",
            json={
                "tag_name": "jq-1.7.1",
                "assets": [{"name": "jq-linux-amd64", "browser_download_url": url}],
            },
        )
        responses.add(responses.GET, url, body=b"\x7fELF")

        install_dir = temp_dir / "home" / ".local" / "bin"
        GithubReleaseBackend(LINUX_X64, install_dir=install_dir).install(JQ)
        assert (install_dir / "jq").is_file()
