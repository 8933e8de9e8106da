# Copyright 2025 Entalpic
"""A thin wrapper around the ``git`` command line."""

from __future__ import annotations

from pathlib import Path

from agentation_update.utils.common import UpdaterError, run_command, succeeded


class GitError(UpdaterError):
    """A ``git`` command failed."""


class GitBackend:
    """Run ``git`` commands in a working tree.

    Every method raises :class:`GitError` when the underlying command fails or
    times out.

    Parameters
    ----------
    root : str | Path
        The working tree.
    timeout : float | None, optional
        Timeout for commands hitting the network (``fetch`` and ``pull``).
    """

    def __init__(self, root: str | Path, timeout: float | None = None):
        self.root = Path(root)
        self.timeout = timeout

    def _git(self, *args: str, timeout: float | None = None) -> str:
        cmd = ["git", *args]
        result = run_command(
            cmd, check=False, cwd=self.root, timeout=timeout, log_errors=False
        )
        if not succeeded(result):
            if result:
                detail = result.stderr.strip()
            else:
                detail = "timed out or could not be started"
            raise GitError(f"'{' '.join(cmd)}' failed" + (f": {detail}" if detail else ""))
        return result.stdout.strip()

    def is_repository(self) -> bool:
        """Whether ``root`` is the top of a git working tree."""
        return (self.root / ".git").exists()

    def fetch(self, remote: str, branch: str) -> None:
        self._git("fetch", remote, branch, "--quiet", timeout=self.timeout)

    def current_revision(self) -> str:
        return self._git("rev-parse", "HEAD")

    def remote_revision(self, remote: str, branch: str) -> str:
        return self._git("rev-parse", f"{remote}/{branch}")

    def has_uncommitted_changes(self) -> bool:
        """Whether the tree has staged, unstaged or untracked changes."""
        return bool(self._git("status", "--porcelain"))

    def _stash_ref(self) -> str | None:
        result = run_command(
            ["git", "rev-parse", "--quiet", "--verify", "refs/stash"],
            check=False,
            cwd=self.root,
            log_errors=False,
        )
        if succeeded(result):
            return result.stdout.strip()
        return None

    def stash_push(self, label: str) -> bool:
        """Stash local changes, untracked files included.

        Parameters
        ----------
        label : str
            The stash message.

        Returns
        -------
        bool
            Whether a stash entry was actually created. ``git stash push``
            succeeds without creating one when there is nothing to save, in
            which case nothing must be popped later.
        """
        before = self._stash_ref()
        self._git("stash", "push", "--include-untracked", "--quiet", "-m", label)
        return self._stash_ref() != before

    def stash_pop(self) -> None:
        """Restore the latest stash entry.

        On conflicts ``git`` keeps the entry in the stash list and this raises.
        """
        self._git("stash", "pop", "--quiet")

    def pull(self, remote: str, branch: str) -> None:
        self._git("pull", "--no-rebase", "--quiet", remote, branch, timeout=self.timeout)
