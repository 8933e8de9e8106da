# Copyright 2025 Entalpic
"""Resolve the host platform to the identifier used to name release archives."""

from __future__ import annotations

import platform as _platform
from dataclasses import dataclass

UNKNOWN = "unknown"

_OS_NAMES = {"Darwin": "darwin", "Linux": "linux", "Windows": "windows"}
_WINDOWS_PREFIXES = ("MINGW", "MSYS", "CYGWIN")
_ARCH_NAMES = {
    "x86_64": "x64",
    "amd64": "x64",
    "arm64": "arm64",
    "aarch64": "arm64",
}

UNSUPPORTED_PLATFORMS = {("darwin", "x64")}
"""Platforms without a prebuilt release: macOS Intel must build from source."""


@dataclass(frozen=True)
class PlatformId:
    """An ``<os>-<arch>`` platform identifier.

    Either field may be ``"unknown"``, in which case the whole identifier renders
    as ``"unknown"`` and release updates are skipped.
    """

    os: str = UNKNOWN
    arch: str = UNKNOWN

    @property
    def is_known(self) -> bool:
        return UNKNOWN not in (self.os, self.arch)

    @property
    def is_supported(self) -> bool:
        """Whether prebuilt release archives exist for this platform."""
        return self.is_known and (self.os, self.arch) not in UNSUPPORTED_PLATFORMS

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    def __str__(self) -> str:
        if not self.is_known:
            return UNKNOWN
        return f"{self.os}-{self.arch}"


def resolve_os(system: str) -> str:
    """Map a ``uname -s`` / :func:`platform.system` value to an OS name.

    Parameters
    ----------
    system : str
        E.g. ``"Darwin"``, ``"Linux"``, ``"MINGW64_NT-10.0"``.

    Returns
    -------
    str
        One of ``"darwin"``, ``"linux"``, ``"windows"`` or ``"unknown"``.
    """
    if system in _OS_NAMES:
        return _OS_NAMES[system]
    if system.upper().startswith(_WINDOWS_PREFIXES):
        return "windows"
    return UNKNOWN


def resolve_arch(machine: str) -> str:
    """Map a ``uname -m`` / :func:`platform.machine` value to an arch name.

    Parameters
    ----------
    machine : str
        E.g. ``"x86_64"``, ``"AMD64"``, ``"aarch64"``.

    Returns
    -------
    str
        One of ``"x64"``, ``"arm64"`` or ``"unknown"``.
    """
    return _ARCH_NAMES.get(machine.lower(), UNKNOWN)


def resolve(system: str | None = None, machine: str | None = None) -> PlatformId:
    """Resolve the platform of the running host.

    Parameters
    ----------
    system : str | None, optional
        OS name to use instead of :func:`platform.system`.
    machine : str | None, optional
        Machine name to use instead of :func:`platform.machine`.

    Returns
    -------
    PlatformId
        The resolved platform. Unrecognized values yield ``"unknown"`` fields
        rather than errors.
    """
    system = _platform.system() if system is None else system
    machine = _platform.machine() if machine is None else machine
    return PlatformId(os=resolve_os(system), arch=resolve_arch(machine))
