# Copyright 2025 Entalpic
r"""
.. _agentation-update-tutorial:

``agentation-update`` Tutorial
------------------------------

**Keep agentation and OpenCode up to date.**

``agentation-update`` updates the two halves of the agentation toolchain:

- the **agentation** sources, a git checkout pulled from ``origin/main`` and
  rebuilt with ``pnpm`` (or ``npm``) when it ships a ``package.json``;
- the **OpenCode** binary, a prebuilt release archive downloaded from GitHub
  into ``.opencode/opencode-<platform>/``.

TL;DR
------

.. code-block:: bash

    # From the root of the agentation checkout
    $ agentation-update

    # Only print errors (e.g. from a wrapper script)
    $ agentation-update --quiet

    # Re-pull, rebuild and re-download even if up to date
    $ agentation-update --force

What happens
============

1. The platform is resolved to ``<os>-<arch>`` (e.g. ``linux-x64``).
2. ``git fetch`` checks whether the checkout is behind. If it is, uncommitted
   changes are stashed, the branch is pulled, the project rebuilt and the stash
   popped back. Your changes are restored even when the pull or the build fails.
3. The latest OpenCode release tag is compared with ``.opencode/version``. If
   it differs, the archive is downloaded, and only then is the previous
   installation replaced and the new tag recorded.

Both steps always run. The command exits with ``1`` if either one failed.
Unreachable servers and unsupported platforms are skipped with a warning.

.. note::

    macOS on Intel has no prebuilt OpenCode release and is skipped: build
    OpenCode from source there.

Configuration
=============

Defaults can be overridden in a ``.agentation-update.yaml`` file at the root of
the checkout:

.. code-block:: yaml

    branch: main
    github_repo: GutMutCode/opencode
    timeout: 60
    max_fetch_skips: 5

or with the ``AGENTATION_UPDATE_TIMEOUT``, ``AGENTATION_UPDATE_BUILD_TIMEOUT``,
``AGENTATION_UPDATE_MAX_FETCH_SKIPS``, ``AGENTATION_UPDATE_REPO`` and
``AGENTATION_UPDATE_BRANCH`` environment variables.

.. tip::

    If GitHub rate-limits anonymous API calls, store a Personal Access Token
    in your keyring under the ``agentation-update`` service and the
    ``github_pat`` key.
"""

import importlib.metadata

__version__ = importlib.metadata.version("agentation-update")
