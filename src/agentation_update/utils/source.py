# Copyright 2025 Entalpic
"""Update the agentation checkout from its git remote.

The sequence is fetch, compare, stash, pull, rebuild, restore. A stash created
by a run is popped exactly once before :meth:`SourceUpdater.update` returns,
whatever happens in between, so uncommitted work is never left behind in the
stash list by this tool.

A failed fetch is a soft skip: staying on the current revision is always safe.
Consecutive fetch failures are counted in a small JSON file so that, when
``max_fetch_skips`` is set, a checkout that silently stopped updating
eventually turns into a hard failure.
"""

from __future__ import annotations

import json
from pathlib import Path

from agentation_update.utils.build import NodeBuilder
from agentation_update.utils.common import logger
from agentation_update.utils.config import STASH_LABEL
from agentation_update.utils.git import GitBackend, GitError
from agentation_update.utils.results import UpdateResult

COMPONENT = "agentation"


class FetchSkipTracker:
    """Persist the number of consecutive runs whose fetch failed.

    Parameters
    ----------
    path : Path
        JSON file holding ``{"consecutive_skips": int}``.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> int:
        if not self.path.exists():
            return 0
        try:
            with self.path.open() as f:
                return int(json.load(f).get("consecutive_skips", 0))
        except (json.JSONDecodeError, OSError, AttributeError, TypeError, ValueError):
            return 0

    def _write(self, count: int) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w") as f:
                json.dump({"consecutive_skips": count}, f)
        except OSError as e:
            logger.warning(f"Could not record fetch failures in {self.path}: {e}")

    def record_skip(self) -> int:
        """Increment the counter and return its new value."""
        count = self.read() + 1
        self._write(count)
        return count

    def reset(self) -> None:
        if self.read():
            self._write(0)


class SourceUpdater:
    """Bring a git checkout up to date with ``remote/branch``.

    Parameters
    ----------
    root : str | Path
        The agentation checkout.
    git : GitBackend | None, optional
        Git backend, by default one working in ``root``.
    builder : NodeBuilder | None, optional
        Build backend, by default one working in ``root``.
    remote : str, optional
        Remote to fetch and pull from, by default ``"origin"``.
    branch : str, optional
        Tracked branch, by default ``"main"``.
    skip_tracker : FetchSkipTracker | None, optional
        Where consecutive fetch failures are counted. Not counted if ``None``.
    max_fetch_skips : int, optional
        Consecutive fetch failures after which the run fails instead of being
        skipped. ``0`` (default) never escalates.
    """

    def __init__(
        self,
        root: str | Path,
        git: GitBackend | None = None,
        builder: NodeBuilder | None = None,
        remote: str = "origin",
        branch: str = "main",
        skip_tracker: FetchSkipTracker | None = None,
        max_fetch_skips: int = 0,
    ):
        self.root = Path(root)
        self.git = git or GitBackend(self.root)
        self.builder = builder or NodeBuilder(self.root)
        self.remote = remote
        self.branch = branch
        self.skip_tracker = skip_tracker
        self.max_fetch_skips = max_fetch_skips

    def _fetch_failed(self, error: GitError) -> UpdateResult:
        logger.warning(f"Failed to fetch from {self.remote}: {error}")
        if self.skip_tracker is None:
            return UpdateResult.skipped(COMPONENT, "Fetch failed, skipping git update")

        count = self.skip_tracker.record_skip()
        if self.max_fetch_skips and count >= self.max_fetch_skips:
            message = (
                f"Could not fetch updates {count} times in a row, "
                "agentation may be out of date"
            )
            logger.error(message)
            return UpdateResult.failed(COMPONENT, message)
        if count > 1:
            logger.warning(f"Fetch has failed {count} runs in a row.")
        return UpdateResult.skipped(COMPONENT, "Fetch failed, skipping git update")

    def _rebuild(self) -> UpdateResult | None:
        """Install and build, returning a failure result or ``None``."""
        if not self.builder.has_descriptor():
            return None
        logger.info("Rebuilding agentation...")
        with logger.loading(f"Running {self.builder.package_manager} install..."):
            installed = self.builder.install()
        if not installed:
            logger.error("Dependency install failed")
            return UpdateResult.failed(COMPONENT, "Dependency install failed")
        with logger.loading(f"Running {self.builder.package_manager} run build..."):
            built = self.builder.build()
        if not built:
            logger.error("Build failed")
            return UpdateResult.failed(COMPONENT, "Build failed")
        return None

    def _restore(self) -> UpdateResult | None:
        """Pop the stash created by this run, returning a failure result or ``None``."""
        try:
            self.git.stash_pop()
        except GitError as e:
            message = (
                f"Could not restore your uncommitted changes ({e}). "
                f"They are kept in the stash as '{STASH_LABEL}': "
                "run 'git stash pop' once conflicts are resolved"
            )
            logger.error(message)
            return UpdateResult.failed(COMPONENT, message)
        logger.info("Restored uncommitted changes")
        return None

    def update(self, force: bool = False) -> UpdateResult:
        """Update the checkout if it is behind its remote.

        Parameters
        ----------
        force : bool, optional
            Pull and rebuild even if local and remote revisions match.

        Returns
        -------
        UpdateResult
            ``skipped`` if not a repository or the fetch failed, ``up_to_date``,
            ``updated`` or ``failed``.
        """
        if not self.git.is_repository():
            logger.warning("Not a git repository, skipping agentation update")
            return UpdateResult.skipped(COMPONENT, "Not a git repository")

        logger.info("Checking for agentation updates...")
        try:
            self.git.fetch(self.remote, self.branch)
        except GitError as e:
            return self._fetch_failed(e)
        if self.skip_tracker is not None:
            self.skip_tracker.reset()

        try:
            local = self.git.current_revision()
            remote = self.git.remote_revision(self.remote, self.branch)
        except GitError as e:
            logger.error(f"Could not read revisions: {e}")
            return UpdateResult.failed(COMPONENT, str(e))

        if local == remote and not force:
            logger.info("Agentation is up-to-date")
            return UpdateResult.up_to_date(COMPONENT, local)

        logger.info("Updating agentation...")
        stashed = False
        try:
            if self.git.has_uncommitted_changes():
                logger.warning("Uncommitted changes detected, stashing...")
                stashed = self.git.stash_push(STASH_LABEL)
        except GitError as e:
            logger.error(f"Could not stash uncommitted changes: {e}")
            return UpdateResult.failed(COMPONENT, str(e))

        result = None
        try:
            try:
                self.git.pull(self.remote, self.branch)
            except GitError as e:
                logger.error(f"Failed to pull updates: {e}")
                result = UpdateResult.failed(COMPONENT, "Failed to pull updates")
            else:
                result = self._rebuild()
        finally:
            if stashed:
                restore_failure = self._restore()
                if result is None:
                    result = restore_failure

        if result is not None:
            return result
        logger.success("Agentation updated successfully")
        return UpdateResult.updated(COMPONENT, remote)
