# Copyright 2025 Entalpic
"""
Source code for the ``agentation-update`` Command-Line Interface (CLI).

Learn how to use with:

.. code-block:: bash

    $ agentation-update            # check and update if needed
    $ agentation-update --quiet    # only print errors (for wrapper scripts)
    $ agentation-update --force    # re-pull, rebuild and re-download
    $ agentation-update status     # show what is installed, change nothing

You can also refer to the :ref:`agentation-update-tutorial` for more information.
"""

import sys
from importlib import metadata
from textwrap import dedent
from typing import Annotated, Optional

from cyclopts import App, Parameter

from agentation_update.utils.common import ConfigError, logger
from agentation_update.utils.config import PACKAGE_NAME, load_config
from agentation_update.utils.git import GitBackend, GitError
from agentation_update.utils.orchestrator import run
from agentation_update.utils.platform import resolve
from agentation_update.utils.release import read_version_marker

app = App(
    name=PACKAGE_NAME,
    help=dedent(
        f"""
    Keep agentation and its OpenCode binary up to date ({metadata.version(PACKAGE_NAME)}).

    Pulls the latest agentation sources (stashing and restoring uncommitted
    changes), rebuilds them, and installs the latest OpenCode release for this
    platform.
    """.strip()
    ),
)
""":py:class:`cyclopts.App`: The main CLI application."""


def main():
    """Run the CLI, gracefully handling ``KeyboardInterrupt``."""
    try:
        app()
    except KeyboardInterrupt:
        logger.abort("\nAborted.", exit=1)


@app.default
def update(
    *,
    quiet: Annotated[bool, Parameter(name=["--quiet", "-q"], negative="")] = False,
    force: Annotated[bool, Parameter(name=["--force", "-f"], negative="")] = False,
    root: Optional[str] = None,
):
    """Check for updates and apply them.

    Exits with ``0`` when both components are updated, up to date or skipped,
    and with ``1`` when either update failed.

    Parameters
    ----------
    quiet : bool, optional
        Suppress non-error output.
    force : bool, optional
        Force update even if up-to-date.
    root : str, optional
        Root of the agentation checkout, by default the current directory.
    """
    logger.quiet = quiet
    try:
        config = load_config(root)
    except ConfigError as e:
        logger.abort(str(e), exit=1)
    sys.exit(run(force=force, config=config))


@app.command(name="status")
def status(root: Optional[str] = None):
    """Show the platform, the installed OpenCode release and the agentation revision.

    Nothing is fetched or modified.

    Parameters
    ----------
    root : str, optional
        Root of the agentation checkout, by default the current directory.
    """
    try:
        config = load_config(root)
    except ConfigError as e:
        logger.abort(str(e), exit=1)

    platform = resolve()
    logger.info(f"Platform: [bold]{platform}[/bold]")
    logger.info(f"OpenCode release: [bold]{read_version_marker(config.version_file)}[/bold]")

    git = GitBackend(config.root)
    if not git.is_repository():
        logger.warning("Not a git repository, no agentation revision to show")
        return
    try:
        revision = git.current_revision()
    except GitError as e:
        logger.warning(f"Could not read agentation revision: {e}")
        return
    logger.info(f"Agentation revision: [bold]{revision[:12]}[/bold]")
