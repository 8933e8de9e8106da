# Copyright 2025 Entalpic
"""Tests for the source (git checkout) updater."""

from subprocess import TimeoutExpired
from unittest.mock import patch

import pytest

from agentation_update.utils.common import logger
from agentation_update.utils.git import GitBackend
from agentation_update.utils.results import UpdateOutcome
from agentation_update.utils.source import FetchSkipTracker, SourceUpdater


@pytest.fixture
def updater(tmp_path, fake_git, fake_builder):
    return SourceUpdater(tmp_path, git=fake_git, builder=fake_builder)


class TestPreconditions:
    """Runs that stop before touching the working tree."""

    def test_not_a_repository_is_skipped(self, updater, fake_git):
        fake_git.repo = False
        result = updater.update()
        assert result.outcome is UpdateOutcome.SKIPPED
        assert fake_git.calls == []

    def test_fetch_failure_is_skipped(self, updater, fake_git):
        fake_git.fail.add("fetch")
        result = updater.update()
        assert result.outcome is UpdateOutcome.SKIPPED
        assert result.ok
        assert fake_git.mutations == []

    def test_fetch_timeout_is_silent_when_quiet(self, tmp_path, fake_builder, capsys):
        """A timed out fetch is a soft skip and writes nothing to stderr."""
        (tmp_path / ".git").mkdir()
        updater = SourceUpdater(
            tmp_path, git=GitBackend(tmp_path, timeout=1), builder=fake_builder
        )
        logger.quiet = True
        with patch(
            "agentation_update.utils.common.run",
            side_effect=TimeoutExpired(["git", "fetch"], 1),
        ):
            result = updater.update()
        assert result.outcome is UpdateOutcome.SKIPPED
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_up_to_date_performs_no_mutation(self, updater, fake_git, fake_builder):
        fake_git.remote = fake_git.local
        fake_git.changes = {"notes.md": "wip"}
        result = updater.update()
        assert result.outcome is UpdateOutcome.UP_TO_DATE
        assert fake_git.mutations == []
        assert fake_builder.calls == []
        assert fake_git.changes == {"notes.md": "wip"}

    def test_force_updates_even_when_up_to_date(self, updater, fake_git, fake_builder):
        fake_git.remote = fake_git.local
        result = updater.update(force=True)
        assert result.outcome is UpdateOutcome.UPDATED
        assert "pull" in fake_git.calls
        assert fake_builder.calls == ["install", "build"]


class TestApplyUpdate:
    """Stash, pull, rebuild, restore."""

    def test_clean_tree_updates_without_stash(self, updater, fake_git, fake_builder):
        result = updater.update()
        assert result.outcome is UpdateOutcome.UPDATED
        assert fake_git.mutations == ["pull"]
        assert fake_builder.calls == ["install", "build"]
        assert fake_git.local == fake_git.remote

    def test_no_build_descriptor_skips_rebuild(self, updater, fake_git, fake_builder):
        fake_builder.descriptor = False
        fake_git.changes = {"a.txt": "edit"}
        result = updater.update()
        assert result.outcome is UpdateOutcome.UPDATED
        assert fake_builder.calls == []
        assert fake_git.mutations == ["stash_push", "pull", "stash_pop"]
        assert fake_git.changes == {"a.txt": "edit"}

    def test_dirty_tree_is_stashed_and_restored(self, updater, fake_git):
        fake_git.changes = {"src/app.ts": "local edit"}
        result = updater.update()
        assert result.outcome is UpdateOutcome.UPDATED
        assert fake_git.mutations == ["stash_push", "pull", "stash_pop"]
        assert fake_git.stash == []
        assert fake_git.changes == {"src/app.ts": "local edit"}

    def test_pull_failure_restores_stash(self, updater, fake_git, fake_builder):
        fake_git.changes = {"src/app.ts": "local edit"}
        fake_git.fail.add("pull")
        result = updater.update()
        assert result.outcome is UpdateOutcome.FAILED
        assert fake_git.mutations == ["stash_push", "pull", "stash_pop"]
        assert fake_git.changes == {"src/app.ts": "local edit"}
        assert fake_builder.calls == []

    def test_build_failure_restores_stash(self, updater, fake_git, fake_builder):
        fake_git.changes = {"src/app.ts": "local edit"}
        fake_builder.build_ok = False
        result = updater.update()
        assert result.outcome is UpdateOutcome.FAILED
        assert result.message == "Build failed"
        assert fake_git.calls.count("stash_push") == 1
        assert fake_git.calls.count("stash_pop") == 1
        assert fake_git.local == fake_git.remote
        assert fake_git.changes == {"src/app.ts": "local edit"}

    def test_install_failure_skips_build(self, updater, fake_git, fake_builder):
        fake_builder.install_ok = False
        result = updater.update()
        assert result.outcome is UpdateOutcome.FAILED
        assert fake_builder.calls == ["install"]

    def test_failed_pull_without_stash_does_not_pop(self, updater, fake_git):
        fake_git.fail.add("pull")
        result = updater.update()
        assert result.outcome is UpdateOutcome.FAILED
        assert "stash_pop" not in fake_git.calls

    def test_stash_not_created_is_not_popped(self, updater, fake_git, monkeypatch):
        # status reports changes but git had nothing to stash
        monkeypatch.setattr(fake_git, "has_uncommitted_changes", lambda: True)
        result = updater.update()
        assert result.outcome is UpdateOutcome.UPDATED
        assert "stash_push" in fake_git.calls
        assert "stash_pop" not in fake_git.calls

    def test_stash_pop_conflict_fails(self, updater, fake_git):
        fake_git.changes = {"src/app.ts": "local edit"}
        fake_git.fail.add("stash_pop")
        result = updater.update()
        assert result.outcome is UpdateOutcome.FAILED
        assert "git stash pop" in result.message

    def test_unexpected_error_still_restores_stash(self, updater, fake_git, fake_builder):
        fake_git.changes = {"src/app.ts": "local edit"}

        def explode():
            raise RuntimeError("boom")

        fake_builder.install = explode
        with pytest.raises(RuntimeError):
            updater.update()
        assert fake_git.calls.count("stash_pop") == 1
        assert fake_git.changes == {"src/app.ts": "local edit"}


class TestFetchSkipTracking:
    """Consecutive fetch failures."""

    def test_tracker_counts_and_resets(self, tmp_path):
        tracker = FetchSkipTracker(tmp_path / "state" / "skips.json")
        assert tracker.read() == 0
        assert tracker.record_skip() == 1
        assert tracker.record_skip() == 2
        tracker.reset()
        assert tracker.read() == 0

    def test_tracker_ignores_corrupt_file(self, tmp_path):
        path = tmp_path / "skips.json"
        path.write_text("{not json")
        assert FetchSkipTracker(path).read() == 0

    def test_escalates_after_max_skips(self, tmp_path, fake_git, fake_builder):
        tracker = FetchSkipTracker(tmp_path / "skips.json")
        updater = SourceUpdater(
            tmp_path,
            git=fake_git,
            builder=fake_builder,
            skip_tracker=tracker,
            max_fetch_skips=3,
        )
        fake_git.fail.add("fetch")
        outcomes = [updater.update().outcome for _ in range(3)]
        assert outcomes == [
            UpdateOutcome.SKIPPED,
            UpdateOutcome.SKIPPED,
            UpdateOutcome.FAILED,
        ]

    def test_never_escalates_by_default(self, tmp_path, fake_git, fake_builder):
        tracker = FetchSkipTracker(tmp_path / "skips.json")
        updater = SourceUpdater(
            tmp_path, git=fake_git, builder=fake_builder, skip_tracker=tracker
        )
        fake_git.fail.add("fetch")
        for _ in range(5):
            assert updater.update().outcome is UpdateOutcome.SKIPPED
        assert tracker.read() == 5

    def test_successful_fetch_resets_counter(self, tmp_path, fake_git, fake_builder):
        tracker = FetchSkipTracker(tmp_path / "skips.json")
        tracker.record_skip()
        updater = SourceUpdater(
            tmp_path, git=fake_git, builder=fake_builder, skip_tracker=tracker
        )
        updater.update()
        assert tracker.read() == 0
