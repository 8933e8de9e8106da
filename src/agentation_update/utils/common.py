# Copyright 2025 Entalpic
"""Generalist utility functions."""

from os.path import expandvars
from pathlib import Path
from subprocess import CalledProcessError, CompletedProcess, TimeoutExpired, run

from ruamel.yaml import YAML

from agentation_update.logger import Logger

logger = Logger("update")
"""A logger to log messages to the console."""


class UpdaterError(Exception):
    """Base class for all errors raised by ``agentation_update``."""


class ConfigError(UpdaterError):
    """The configuration file or an environment override is invalid."""


def safe_load(file):
    """Load data from a file using ``ruamel.yaml``.

    Parameters
    ----------
    file : str | Path | IO
        The file to load the data from.
    """
    handle = file
    if isinstance(file, (str, Path)):
        handle = open(file, "r")
    yaml = YAML(typ="safe", pure=True)
    try:
        return yaml.load(handle)
    finally:
        if isinstance(file, (str, Path)):
            handle.close()


def run_command(
    cmd: list[str],
    check: bool = True,
    cwd: str | Path | None = None,
    timeout: float | None = None,
    log_errors: bool = True,
) -> CompletedProcess | bool:
    """Run a command in the shell.

    Parameters
    ----------
    cmd : list[str]
        The command to run.
    check : bool, optional
        Whether to raise an error if the command fails, by default ``True``.
    cwd : str | Path | None, optional
        The working directory to run the command in, by default ``None``.
    timeout : float | None, optional
        Seconds after which the command is killed, by default ``None`` (no limit).
    log_errors : bool, optional
        Whether to log failures, timeouts and missing commands as errors, by
        default ``True``. Callers that report failures themselves turn it off.

    Returns
    -------
    CompletedProcess | bool
        The result of the command, or ``False`` if it failed with ``check=True``,
        timed out or could not be started.
    """
    try:
        return run(
            cmd,
            check=check,
            capture_output=True,
            text=True,
            encoding="utf-8",
            cwd=cwd,
            timeout=timeout,
        )
    except CalledProcessError as e:
        if log_errors:
            logger.error(e.stderr.strip() or f"Command failed: {' '.join(cmd)}")
        return False
    except TimeoutExpired:
        if log_errors:
            logger.error(f"Command timed out after {timeout}s: {' '.join(cmd)}")
        return False
    except FileNotFoundError:
        if log_errors:
            logger.error(f"Command not found: {cmd[0]}")
        return False


def succeeded(result: CompletedProcess | bool) -> bool:
    """Whether a :func:`run_command` result denotes a successful command."""
    return bool(result) and result.returncode == 0


def resolve_path(path: str | Path, base: str | Path | None = None) -> Path:
    """Resolve a path and expand environment variables.

    Parameters
    ----------
    path : str | Path
        The path to resolve.
    base : str | Path | None, optional
        Directory relative paths are resolved against, by default the current
        working directory.

    Returns
    -------
    Path
        The resolved path.
    """
    path = Path(expandvars(str(path))).expanduser()
    if base is not None and not path.is_absolute():
        path = Path(base) / path
    return path.resolve()
