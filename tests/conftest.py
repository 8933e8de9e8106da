# Copyright 2025 Entalpic
import io
import sys
import tarfile
import zipfile
from contextlib import contextmanager
from io import StringIO
from pathlib import Path

import pytest

from agentation_update.utils.common import logger
from agentation_update.utils.git import GitError
from agentation_update.utils.transport import DownloadError


@pytest.fixture(autouse=True)
def reset_logger():
    """Make sure no test leaves the shared logger in quiet mode."""
    logger.quiet = False
    # wide enough that paths never wrap messages in captured output
    logger.console.width = 500
    logger.err_console.width = 500
    yield
    logger.quiet = False


@pytest.fixture(autouse=True)
def no_user_pat(monkeypatch):
    """Never read the real keyring from tests."""
    monkeypatch.setattr(
        "agentation_update.utils.github.get_password", lambda service, key: None
    )


@pytest.fixture
def capture_output():
    @contextmanager
    def c():
        """Context manager to capture stdout for testing.

        Returns
        -------
        StringIO
            The captured stdout buffer.
        """
        stdout = StringIO()
        old_stdout = sys.stdout
        try:
            sys.stdout = stdout
            yield stdout
        finally:
            sys.stdout = old_stdout

    return c


class FakeGit:
    """In-memory stand-in for :class:`~agentation_update.utils.git.GitBackend`.

    Operations named in ``fail`` raise :class:`GitError`. The working tree is
    modelled by ``changes`` (uncommitted edits) and the stash by a stack.
    """

    def __init__(self):
        self.repo = True
        self.local = "a" * 40
        self.remote = "b" * 40
        self.changes = {}
        self.stash = []
        self.fail = set()
        self.calls = []

    def _call(self, name):
        self.calls.append(name)
        if name in self.fail:
            raise GitError(f"{name} failed")

    def is_repository(self):
        return self.repo

    def fetch(self, remote, branch):
        self._call("fetch")

    def current_revision(self):
        self._call("current_revision")
        return self.local

    def remote_revision(self, remote, branch):
        self._call("remote_revision")
        return self.remote

    def has_uncommitted_changes(self):
        self._call("has_uncommitted_changes")
        return bool(self.changes)

    def stash_push(self, label):
        self._call("stash_push")
        if not self.changes:
            return False
        self.stash.append(dict(self.changes))
        self.changes = {}
        return True

    def stash_pop(self):
        self._call("stash_pop")
        self.changes.update(self.stash.pop())

    def pull(self, remote, branch):
        self._call("pull")
        self.local = self.remote

    @property
    def mutations(self):
        return [c for c in self.calls if c in ("stash_push", "stash_pop", "pull")]


class FakeBuilder:
    """Stand-in for :class:`~agentation_update.utils.build.NodeBuilder`."""

    package_manager = "npm"

    def __init__(self):
        self.descriptor = True
        self.install_ok = True
        self.build_ok = True
        self.calls = []

    def has_descriptor(self):
        return self.descriptor

    def install(self):
        self.calls.append("install")
        return self.install_ok

    def build(self):
        self.calls.append("build")
        return self.build_ok


class FakeFeed:
    """Stand-in for :class:`~agentation_update.utils.github.GithubReleaseFeed`."""

    def __init__(self, tag="v1.3.0"):
        self.tag = tag
        self.calls = 0

    def latest_tag(self):
        self.calls += 1
        return self.tag


class FakeDownloader:
    """Stand-in for :class:`~agentation_update.utils.transport.ArchiveDownloader`.

    Writes ``payload`` to the destination, or raises :class:`DownloadError`
    when ``fail`` is set.
    """

    def __init__(self, payload=b""):
        self.payload = payload
        self.fail = False
        self.urls = []

    def download(self, url, dest):
        self.urls.append(url)
        if self.fail:
            raise DownloadError(f"Download of {url} failed: 404")
        Path(dest).write_bytes(self.payload)
        return dest


def build_archive(top_dir: str, windows: bool = False, binary=b"#!/bin/sh\n"):
    """Bytes of a release archive holding ``<top_dir>/bin/opencode``."""
    buffer = io.BytesIO()
    name = f"{top_dir}/bin/opencode" + (".exe" if windows else "")
    if windows:
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr(name, binary)
    else:
        with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
            info = tarfile.TarInfo(name)
            info.size = len(binary)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(binary))
    return buffer.getvalue()


@pytest.fixture
def fake_git():
    return FakeGit()


@pytest.fixture
def fake_builder():
    return FakeBuilder()


@pytest.fixture
def fake_feed():
    return FakeFeed()


@pytest.fixture
def fake_downloader():
    return FakeDownloader(build_archive("opencode-linux-x64"))


@pytest.fixture
def make_archive():
    return build_archive


@pytest.fixture
def bin_dir(tmp_path):
    path = tmp_path / ".opencode"
    path.mkdir()
    return path
