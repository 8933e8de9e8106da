# Copyright 2025 Entalpic
"""Download release archives and unpack them."""

from __future__ import annotations

import tarfile
import zipfile
from pathlib import Path

import requests

from agentation_update.utils.common import UpdaterError


class DownloadError(UpdaterError):
    """An archive could not be downloaded."""


class ArchiveError(UpdaterError):
    """An archive could not be extracted."""


def archive_suffix(windows: bool) -> str:
    """``.zip`` for Windows releases, ``.tar.gz`` for everything else."""
    return ".zip" if windows else ".tar.gz"


class ArchiveDownloader:
    """Stream files over HTTP(S) to disk with ``requests``.

    Parameters
    ----------
    timeout : float, optional
        Connect/read timeout in seconds, by default 60.0.
    session : requests.Session | None, optional
        Session to reuse, by default a new one.
    """

    chunk_size = 8192

    def __init__(self, timeout: float = 60.0, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def download(self, url: str, dest: Path) -> Path:
        """Download ``url`` to ``dest``.

        A partially written ``dest`` is removed on failure.

        Raises
        ------
        DownloadError
            On any HTTP or network error.
        """
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as resp:
                resp.raise_for_status()
                with open(dest, "wb") as f:
                    for chunk in resp.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            f.write(chunk)
        except (requests.RequestException, OSError) as e:
            dest.unlink(missing_ok=True)
            raise DownloadError(f"Download of {url} failed: {e}") from e
        return dest


def _check_member(base: Path, name: str) -> None:
    target = (base / name).resolve()
    if target != base and base not in target.parents:
        raise ArchiveError(f"Unsafe path in archive: {name}")


def extract_archive(archive: Path, dest: Path) -> None:
    """Extract a ``.zip`` or ``.tar.gz`` archive into ``dest``.

    Members that would land outside of ``dest`` are rejected.

    Raises
    ------
    ArchiveError
        If the archive is corrupt, of an unknown type or unsafe.
    """
    archive, base = Path(archive), Path(dest).resolve()
    try:
        if archive.name.endswith(".zip"):
            with zipfile.ZipFile(archive) as zf:
                for name in zf.namelist():
                    _check_member(base, name)
                zf.extractall(base)
        elif archive.name.endswith((".tar.gz", ".tgz")):
            with tarfile.open(archive, "r:gz") as tar:
                for member in tar.getmembers():
                    _check_member(base, member.name)
                    if member.issym():
                        link = Path(member.name).parent / member.linkname
                        _check_member(base, str(link))
                    elif member.islnk():
                        _check_member(base, member.linkname)
                if hasattr(tarfile, "data_filter"):
                    tar.extractall(base, filter="tar")
                else:
                    tar.extractall(base)
        else:
            raise ArchiveError(f"Unsupported archive type: {archive.name}")
    except (tarfile.TarError, zipfile.BadZipFile, OSError, EOFError) as e:
        raise ArchiveError(f"Could not extract {archive.name}: {e}") from e
