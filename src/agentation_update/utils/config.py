# Copyright 2025 Entalpic
"""Configuration of the updater: constants, defaults and the :class:`UpdaterConfig`.

Values are read, from lowest to highest priority, from:

- the defaults below,
- an optional ``.agentation-update.yaml`` file at the root of the agentation checkout,
- environment variables (see :data:`ENV_VARS`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from hashlib import sha256
from pathlib import Path

from platformdirs import user_cache_dir

from agentation_update.utils.common import ConfigError, resolve_path, safe_load

PACKAGE_NAME = "agentation-update"
"""Name of the ``agentation-update`` distribution."""

GITHUB_REPO = "GutMutCode/opencode"
"""``owner/name`` of the GitHub repository publishing the OpenCode releases."""

GITHUB_RELEASE_DOWNLOAD = "https://github.com/{repo}/releases/download"
"""Base URL of release assets. Formatted with the ``repo``."""

CONFIG_FILE_NAME = ".agentation-update.yaml"
"""Name of the optional configuration file at the root of the checkout."""

UNKNOWN_VERSION = "unknown"
"""Version marker value when no release has been installed yet."""

STASH_LABEL = "auto-stash before update"
"""Message of the stash entry created before pulling."""

ENV_VARS = {
    "AGENTATION_UPDATE_TIMEOUT": "timeout",
    "AGENTATION_UPDATE_BUILD_TIMEOUT": "build_timeout",
    "AGENTATION_UPDATE_MAX_FETCH_SKIPS": "max_fetch_skips",
    "AGENTATION_UPDATE_REPO": "github_repo",
    "AGENTATION_UPDATE_BRANCH": "branch",
}
"""Environment variables overriding :class:`UpdaterConfig` fields."""

# Cache directory holding the fetch-skip counters, one file per checkout
# - macOS: ~/Library/Caches/agentation-update
# - Linux: ~/.cache/agentation-update (or $XDG_CACHE_HOME/agentation-update)
# - Windows: C:\Users\<user>\AppData\Local\agentation-update\Cache
_CACHE_DIR = Path(user_cache_dir(PACKAGE_NAME))


def default_state_file(root: Path) -> Path:
    """Fetch-skip counter of one checkout, keyed by a hash of its ``root``."""
    digest = sha256(str(root).encode("utf-8")).hexdigest()[:16]
    return _CACHE_DIR / f"fetch_skips-{digest}.json"


@dataclass
class UpdaterConfig:
    """Where things live and how long we wait for them.

    ``bin_dir``, ``version_file`` and ``state_file`` default to locations derived
    from ``root`` when left to ``None``.
    """

    root: Path = field(default_factory=Path.cwd)
    bin_dir: Path | None = None
    version_file: Path | None = None
    state_file: Path | None = None
    github_repo: str = GITHUB_REPO
    remote: str = "origin"
    branch: str = "main"
    artifact: str = "opencode"
    timeout: float = 60.0
    build_timeout: float = 600.0
    max_fetch_skips: int = 0

    def __post_init__(self):
        self.root = resolve_path(self.root)
        if self.bin_dir is None:
            self.bin_dir = self.root / ".opencode"
        self.bin_dir = resolve_path(self.bin_dir, base=self.root)
        if self.version_file is None:
            self.version_file = self.bin_dir / "version"
        self.version_file = resolve_path(self.version_file, base=self.root)
        if self.state_file is None:
            self.state_file = default_state_file(self.root)
        self.state_file = resolve_path(self.state_file, base=self.root)
        self.timeout = float(self.timeout)
        self.build_timeout = float(self.build_timeout)
        self.max_fetch_skips = int(self.max_fetch_skips)
        if self.timeout <= 0 or self.build_timeout <= 0:
            raise ConfigError("Timeouts must be positive numbers of seconds.")
        if self.max_fetch_skips < 0:
            raise ConfigError("max_fetch_skips must be >= 0 (0 disables it).")


def read_config_file(path: Path) -> dict:
    """Read the YAML configuration file.

    Parameters
    ----------
    path : Path
        Path to the file.

    Returns
    -------
    dict
        The options it contains, ``{}`` if the file does not exist.

    Raises
    ------
    ConfigError
        If the file is not a YAML mapping of known options.
    """
    if not path.exists():
        return {}
    try:
        data = safe_load(path)
    except Exception as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of options.")
    known = {f.name for f in fields(UpdaterConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown option(s) in {path}: {', '.join(unknown)}")
    return dict(data)


def load_config(root: str | Path | None = None, **overrides) -> UpdaterConfig:
    """Build the :class:`UpdaterConfig` for a checkout.

    Parameters
    ----------
    root : str | Path | None, optional
        Root of the agentation checkout, by default the current directory.
    **overrides
        Values taking precedence over every other source (e.g. from tests).

    Returns
    -------
    UpdaterConfig
        The merged configuration.

    Raises
    ------
    ConfigError
        If any source holds an invalid value.
    """
    root = resolve_path(root or Path.cwd())
    options = read_config_file(root / CONFIG_FILE_NAME)
    options.pop("root", None)

    for env_var, name in ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is not None and value.strip():
            options[name] = value.strip()

    options.update(overrides)
    try:
        return UpdaterConfig(root=root, **options)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
