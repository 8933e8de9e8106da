# Copyright 2025 Entalpic
"""Rebuild the agentation checkout with its JavaScript package manager."""

from __future__ import annotations

from pathlib import Path
from shutil import which

from agentation_update.utils.common import logger, run_command, succeeded

BUILD_DESCRIPTOR = "package.json"
"""File whose presence means the checkout must be rebuilt after a pull."""


def get_package_manager() -> str:
    """``pnpm`` when it is on the ``PATH``, ``npm`` otherwise."""
    return "pnpm" if which("pnpm") else "npm"


class NodeBuilder:
    """Install dependencies and build a Node project.

    Parameters
    ----------
    root : str | Path
        The project directory.
    timeout : float | None, optional
        Timeout for each of the install and build commands.
    package_manager : str | None, optional
        Force a package manager instead of detecting it.
    """

    def __init__(
        self,
        root: str | Path,
        timeout: float | None = None,
        package_manager: str | None = None,
    ):
        self.root = Path(root)
        self.timeout = timeout
        self._package_manager = package_manager

    @property
    def package_manager(self) -> str:
        if self._package_manager is None:
            self._package_manager = get_package_manager()
        return self._package_manager

    def has_descriptor(self) -> bool:
        return (self.root / BUILD_DESCRIPTOR).exists()

    def _run(self, *args: str) -> bool:
        cmd = [self.package_manager, *args]
        result = run_command(cmd, check=False, cwd=self.root, timeout=self.timeout)
        if result and result.returncode != 0 and result.stderr:
            logger.error(result.stderr.strip(), title=" ".join(cmd), as_panel=True)
        return succeeded(result)

    def install(self) -> bool:
        return self._run("install")

    def build(self) -> bool:
        return self._run("run", "build")
