"""
Source-release backend: install binaries from GitHub releases.

The latest (or a pinned) release is looked up through the GitHub REST API.
A release asset matching the host OS and architecture is downloaded,
unpacked if it is an archive, and the package's executable is copied into
``~/.local/bin``. Packages that ship an install script instead of binaries
have that script, taken from the release tag, piped into bash.
"""

import fnmatch
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from devstrap.config.catalog import BackendMapping, GithubSource
from devstrap.core.command import run_shell
from devstrap.core.download import download_file, fetch_json
from devstrap.core.exceptions import DownloadError, NotAvailableError
from devstrap.core.filesystem import (
    FilesystemError,
    ensure_directory,
    extract_archive,
    is_archive,
    make_executable,
)
from devstrap.core.platform import Capabilities
from devstrap.packages.base import PackageBackend
from devstrap.packages.methods import InstallMethod

logger = logging.getLogger(__name__)

API_BASE = "https://api.github.com"
RAW_BASE = "https://raw.githubusercontent.com"

# Names used in release assets for each OS / architecture
OS_ALIASES = {
    "linux": ("linux",),
    "macos": ("darwin", "macos", "apple", "osx"),
}
ARCH_ALIASES = {
    "x64": ("x86_64", "amd64", "x64"),
    "arm64": ("aarch64", "arm64"),
    "x86": ("i686", "i386", "386"),
    "arm": ("armv7", "armhf", "arm"),
}

# Substitutions for {os} and {arch} in catalog asset patterns
PATTERN_OS = {"linux": "linux", "macos": "macos"}
PATTERN_ARCH = {"x64": "amd64", "arm64": "arm64", "x86": "i386", "arm": "armhf"}

SKIPPED_SUFFIXES = (
    ".sha256", ".sha256sum", ".sha512", ".sig", ".asc", ".pem", ".sbom",
    ".deb", ".rpm", ".msi", ".exe", ".apk", ".txt", ".json", ".zst",
)


def default_install_dir() -> Path:
    return Path.home() / ".local" / "bin"


def select_asset(
    assets: list[dict], source: GithubSource, caps: Capabilities
) -> Optional[dict]:
    """
    Pick the release asset for this host.

    An explicit ``asset`` pattern in the catalog wins. Otherwise the asset
    name must mention the host OS and architecture; archives are preferred
    over bare files.
    """
    if source.asset:
        pattern = source.asset.format(
            os=PATTERN_OS.get(caps.os, caps.os),
            arch=PATTERN_ARCH.get(caps.arch, caps.arch),
        )
        for asset in assets:
            if fnmatch.fnmatch(asset.get("name", ""), pattern):
                return asset
        return None

    os_names = OS_ALIASES.get(caps.os, (caps.os,))
    arch_names = ARCH_ALIASES.get(caps.arch, (caps.arch,))

    matches = []
    for asset in assets:
        name = asset.get("name", "").lower()
        if name.endswith(SKIPPED_SUFFIXES):
            continue
        if not any(o in name for o in os_names):
            continue
        if not any(a in name for a in arch_names):
            continue
        matches.append(asset)

    archives = [a for a in matches if is_archive(a["name"])]
    if archives:
        return archives[0]
    return matches[0] if matches else None


def find_binary(root: Path, binary: str) -> Optional[Path]:
    """Locate an extracted executable, shallowest match first."""
    candidates = sorted(
        (p for p in root.rglob(binary) if p.is_file()),
        key=lambda p: len(p.parts),
    )
    return candidates[0] if candidates else None


class GithubReleaseBackend(PackageBackend):
    """
    Installs the latest (or pinned) GitHub release of a package.

    Attributes:
        caps: Host capabilities, used to match release assets
        install_dir: Directory that receives installed executables
    """

    method = InstallMethod.source_release()

    def __init__(self, caps: Capabilities, install_dir: Optional[Path] = None):
        self.caps = caps
        self.install_dir = Path(install_dir) if install_dir else default_install_dir()

    def _headers(self) -> dict:
        headers = {"Accept": "application/vnd.github+json"}
        token = os.environ.get("GITHUB_TOKEN")
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _source(self, mapping: BackendMapping) -> GithubSource:
        if mapping.github is None:
            raise NotAvailableError(mapping.id, "no GitHub source declared")
        return mapping.github

    def fetch_release(self, repo: str, version: Optional[str] = None) -> dict:
        """
        Release metadata for ``repo``: the latest, or the one tagged ``version``.

        Pinned versions are tried as ``v<version>`` first, then verbatim.
        """
        if not version:
            return fetch_json(
                f"{API_BASE}/repos/{repo}/releases/latest", headers=self._headers()
            )

        tags = [version] if version.startswith("v") else [f"v{version}", version]
        last_error: Optional[DownloadError] = None
        for tag in tags:
            try:
                return fetch_json(
                    f"{API_BASE}/repos/{repo}/releases/tags/{tag}",
                    headers=self._headers(),
                )
            except DownloadError as e:
                last_error = e
        raise last_error

    def install(self, mapping: BackendMapping, version: Optional[str] = None) -> None:
        """
        Raises:
            NotAvailableError: If the release has no asset for this host
            DownloadError: If the release metadata or asset cannot be fetched
            FilesystemError: If the binary cannot be unpacked or installed
        """
        source = self._source(mapping)
        release = self.fetch_release(source.repo, version)
        tag = release.get("tag_name")
        if not tag:
            raise DownloadError(f"Release of {source.repo} has no tag_name")

        if source.script:
            logger.info(f"Running {source.repo} {tag} install script")
            run_shell(f"curl -fsSL {RAW_BASE}/{source.repo}/{tag}/{source.script} | bash")
            return

        asset = select_asset(release.get("assets", []), source, self.caps)
        if asset is None:
            raise NotAvailableError(
                mapping.id,
                f"no release asset for {self.caps.os}-{self.caps.arch} "
                f"in {source.repo} {tag}",
            )
        url = asset.get("browser_download_url")
        if not url:
            raise DownloadError(f"Asset {asset['name']} of {source.repo} has no download URL")

        logger.info(f"Installing {mapping.id} {tag} from {asset['name']}")
        try:
            target = self._install_asset(mapping, url, asset["name"])
        except OSError as e:
            raise FilesystemError(f"Failed to install {mapping.binary}: {e}") from e
        logger.info(f"Installed {target}")

    def _install_asset(self, mapping: BackendMapping, url: str, asset_name: str) -> Path:
        with tempfile.TemporaryDirectory(prefix="devstrap_") as tmp:
            tmp_dir = Path(tmp)
            downloaded = download_file(url, tmp_dir / asset_name)

            if is_archive(downloaded):
                extract_dir = tmp_dir / "extract"
                extract_archive(downloaded, extract_dir)
                binary = find_binary(extract_dir, mapping.binary)
                if binary is None:
                    raise NotAvailableError(
                        mapping.id, f"'{mapping.binary}' not found in {asset_name}"
                    )
            else:
                binary = downloaded

            target = ensure_directory(self.install_dir) / mapping.binary
            shutil.copy2(binary, target)
            make_executable(target)
        return target

    def uninstall(self, mapping: BackendMapping) -> None:
        """
        Raises:
            NotAvailableError: For script installs
            FilesystemError: If the binary cannot be deleted
        """
        source = self._source(mapping)
        if source.script:
            raise NotAvailableError(
                mapping.id, f"{source.repo} was installed by script; remove it manually"
            )

        target = self.install_dir / mapping.binary
        if not target.exists():
            logger.warning(f"{target} is already gone")
            return
        try:
            target.unlink()
        except OSError as e:
            raise FilesystemError(f"Failed to remove {target}: {e}") from e
        logger.info(f"Removed {target}")

    def describe_install(
        self, mapping: BackendMapping, version: Optional[str] = None
    ) -> str:
        source = self._source(mapping)
        release = f"release {version}" if version else "latest release"
        if source.script:
            return f"run {source.script} from {source.repo} {release}"
        return f"download {source.repo} {release} into {self.install_dir}"

    def describe_uninstall(self, mapping: BackendMapping) -> str:
        return f"delete {self.install_dir / mapping.binary}"


__all__ = ["GithubReleaseBackend", "select_asset", "find_binary", "default_install_dir"]
