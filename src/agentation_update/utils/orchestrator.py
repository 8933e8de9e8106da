# Copyright 2025 Entalpic
"""Run both update pipelines and combine their outcomes into an exit code."""

from __future__ import annotations

from agentation_update.utils import platform as platforms
from agentation_update.utils.build import NodeBuilder
from agentation_update.utils.common import logger
from agentation_update.utils.config import UpdaterConfig
from agentation_update.utils.git import GitBackend
from agentation_update.utils.github import GithubReleaseFeed
from agentation_update.utils.platform import PlatformId
from agentation_update.utils.release import COMPONENT as RELEASE_COMPONENT
from agentation_update.utils.release import ReleaseUpdater
from agentation_update.utils.results import UpdateResult
from agentation_update.utils.source import COMPONENT as SOURCE_COMPONENT
from agentation_update.utils.source import FetchSkipTracker, SourceUpdater
from agentation_update.utils.transport import ArchiveDownloader


def make_source_updater(config: UpdaterConfig) -> SourceUpdater:
    """Build a :class:`SourceUpdater` from the configuration."""
    return SourceUpdater(
        config.root,
        git=GitBackend(config.root, timeout=config.timeout),
        builder=NodeBuilder(config.root, timeout=config.build_timeout),
        remote=config.remote,
        branch=config.branch,
        skip_tracker=FetchSkipTracker(config.state_file),
        max_fetch_skips=config.max_fetch_skips,
    )


def make_release_updater(config: UpdaterConfig) -> ReleaseUpdater:
    """Build a :class:`ReleaseUpdater` from the configuration."""
    return ReleaseUpdater(
        config.bin_dir,
        config.version_file,
        feed=GithubReleaseFeed(config.github_repo, timeout=config.timeout),
        downloader=ArchiveDownloader(timeout=config.timeout),
        artifact=config.artifact,
        repo=config.github_repo,
    )


def _guarded(component: str, pipeline, *args) -> UpdateResult:
    # one pipeline crashing must not prevent the other from running
    try:
        return pipeline(*args)
    except Exception as e:
        logger.error(f"Unexpected error while updating {component}: {e!r}")
        return UpdateResult.failed(component, repr(e))


def run_pipelines(
    force: bool = False,
    config: UpdaterConfig | None = None,
    platform: PlatformId | None = None,
    source_updater: SourceUpdater | None = None,
    release_updater: ReleaseUpdater | None = None,
) -> list[UpdateResult]:
    """Run the source then the release pipeline.

    Parameters
    ----------
    force : bool, optional
        Update even when already up to date.
    config : UpdaterConfig | None, optional
        Configuration used to build missing updaters, by default the one of
        the current directory.
    platform : PlatformId | None, optional
        Platform to install releases for, by default the host's.
    source_updater : SourceUpdater | None, optional
        Pre-built source pipeline.
    release_updater : ReleaseUpdater | None, optional
        Pre-built release pipeline.

    Returns
    -------
    list[UpdateResult]
        One result per pipeline, source first.
    """
    if source_updater is None or release_updater is None:
        config = config or UpdaterConfig()
    if platform is None:
        platform = platforms.resolve()
    source_updater = source_updater or make_source_updater(config)
    release_updater = release_updater or make_release_updater(config)

    return [
        _guarded(SOURCE_COMPONENT, source_updater.update, force),
        _guarded(RELEASE_COMPONENT, release_updater.update, platform, force),
    ]


def exit_code(results: list[UpdateResult]) -> int:
    """``0`` if no pipeline failed, ``1`` otherwise."""
    return 0 if all(r.ok for r in results) else 1


def run(force: bool = False, **kwargs) -> int:
    """Run both pipelines and return the process exit code.

    Accepts the same keyword arguments as :func:`run_pipelines`.
    """
    return exit_code(run_pipelines(force=force, **kwargs))
