# Copyright 2025 Entalpic
"""Install the latest OpenCode release archive for the host platform.

The archive is fully downloaded and unpacked into a staging directory before
the previous installation is touched, and the version marker is written last.
An interrupted or failed run therefore leaves either the old installation or
the new one, never neither.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from tempfile import TemporaryDirectory

from agentation_update.utils.common import logger
from agentation_update.utils.config import GITHUB_REPO, UNKNOWN_VERSION
from agentation_update.utils.github import GithubReleaseFeed, release_download_url
from agentation_update.utils.platform import PlatformId
from agentation_update.utils.results import UpdateResult
from agentation_update.utils.transport import (
    ArchiveDownloader,
    ArchiveError,
    DownloadError,
    archive_suffix,
    extract_archive,
)

COMPONENT = "opencode"


def read_version_marker(path: Path) -> str:
    """Read the installed release tag.

    A missing, empty or unreadable marker reads as ``"unknown"``, which never
    matches a release tag.
    """
    path = Path(path)
    if not path.is_file():
        return UNKNOWN_VERSION
    try:
        return path.read_text(encoding="utf-8").strip() or UNKNOWN_VERSION
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Ignoring unreadable version marker {path}: {e}")
        return UNKNOWN_VERSION


def write_version_marker(path: Path, tag: str) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"{tag}\n", encoding="utf-8")


class ReleaseUpdater:
    """Keep ``<bin_dir>/<artifact>-<platform>`` on the latest release.

    Parameters
    ----------
    bin_dir : str | Path
        Directory holding the installations and the staging archive.
    version_file : str | Path
        File holding the installed release tag.
    feed : GithubReleaseFeed | None, optional
        Source of the latest release tag, by default one for ``repo``.
    downloader : ArchiveDownloader | None, optional
        HTTP transport. No release can be installed without one.
    artifact : str, optional
        Prefix of the release assets and installation directories.
    repo : str, optional
        ``owner/name`` of the repository the assets are downloaded from.
    """

    def __init__(
        self,
        bin_dir: str | Path,
        version_file: str | Path,
        feed: GithubReleaseFeed | None = None,
        downloader: ArchiveDownloader | None = None,
        artifact: str = "opencode",
        repo: str = GITHUB_REPO,
    ):
        self.bin_dir = Path(bin_dir)
        self.version_file = Path(version_file)
        self.feed = feed or GithubReleaseFeed(repo)
        self.downloader = downloader
        self.artifact = artifact
        self.repo = repo

    def archive_name(self, platform: PlatformId) -> str:
        return f"{self.artifact}-{platform}{archive_suffix(platform.is_windows)}"

    def install_dir(self, platform: PlatformId) -> Path:
        return self.bin_dir / f"{self.artifact}-{platform}"

    def current_version(self) -> str:
        return read_version_marker(self.version_file)

    def _install(self, archive: Path, platform: PlatformId) -> None:
        """Swap the extracted archive in place of the previous installation.

        Raises
        ------
        ArchiveError
            If extraction fails. The previous installation is then untouched.
        """
        with TemporaryDirectory(prefix=".staging-", dir=self.bin_dir) as tmp:
            staging = Path(tmp)
            extract_archive(archive, staging)

            install_dir = self.install_dir(platform)
            if install_dir.exists():
                shutil.rmtree(install_dir)
            for entry in staging.iterdir():
                target = self.bin_dir / entry.name
                if target.is_dir() and not target.is_symlink():
                    shutil.rmtree(target)
                elif target.exists() or target.is_symlink():
                    target.unlink()
                shutil.move(str(entry), str(target))

    def update(self, platform: PlatformId, force: bool = False) -> UpdateResult:
        """Install the latest release if it differs from the installed one.

        Parameters
        ----------
        platform : PlatformId
            Platform whose archive to install.
        force : bool, optional
            Reinstall even if the installed tag is the latest one.

        Returns
        -------
        UpdateResult
            ``skipped`` for unknown/unsupported platforms or an unreachable
            release feed, ``up_to_date``, ``updated`` or ``failed``.
        """
        if not platform.is_known:
            logger.warning("Unknown platform, skipping OpenCode update")
            return UpdateResult.skipped(COMPONENT, "Unknown platform")

        if not platform.is_supported:
            message = (
                f"{platform} has no prebuilt OpenCode release, "
                "build it from source instead. Skipping binary update"
            )
            logger.warning(message)
            return UpdateResult.skipped(COMPONENT, message)

        if self.downloader is None:
            logger.error("No HTTP client available to download OpenCode")
            return UpdateResult.failed(COMPONENT, "No HTTP client available")

        logger.info("Checking for OpenCode updates...")
        current = self.current_version()
        with logger.loading("Fetching latest release..."):
            latest = self.feed.latest_tag()

        if not latest:
            logger.warning("Could not fetch latest version, skipping OpenCode update")
            return UpdateResult.skipped(COMPONENT, "Latest release unavailable")

        if current == latest and not force:
            logger.info(f"OpenCode is up-to-date ({current})")
            return UpdateResult.up_to_date(COMPONENT, current)

        logger.info(f"Updating OpenCode: {current} -> {latest}")
        archive_name = self.archive_name(platform)
        archive = self.bin_dir / archive_name
        url = release_download_url(self.repo, latest, archive_name)

        self.bin_dir.mkdir(parents=True, exist_ok=True)
        try:
            with logger.loading(f"Downloading {archive_name}..."):
                self.downloader.download(url, archive)
        except DownloadError as e:
            logger.error(f"Download failed: {e}")
            return UpdateResult.failed(COMPONENT, "Download failed")

        logger.info("Extracting...")
        try:
            self._install(archive, platform)
        except (ArchiveError, OSError) as e:
            logger.error(f"Installation failed: {e}")
            return UpdateResult.failed(COMPONENT, "Installation failed")
        finally:
            archive.unlink(missing_ok=True)

        write_version_marker(self.version_file, latest)
        logger.success(f"OpenCode updated to {latest}")
        return UpdateResult.updated(COMPONENT, latest)
