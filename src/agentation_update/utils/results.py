# Copyright 2025 Entalpic
"""Outcomes reported by the update pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UpdateOutcome(str, Enum):
    """What a pipeline did during a run.

    ``SKIPPED`` covers soft failures (nothing to do, or an unmet precondition
    that leaves the installation as it was). ``FAILED`` means an operation was
    attempted and did not complete.
    """

    SKIPPED = "skipped"
    UP_TO_DATE = "up_to_date"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass(frozen=True)
class UpdateResult:
    """The outcome of one pipeline and why."""

    component: str
    outcome: UpdateOutcome
    message: str = ""

    @property
    def ok(self) -> bool:
        """Whether this result counts as a success for the exit code."""
        return self.outcome is not UpdateOutcome.FAILED

    @classmethod
    def skipped(cls, component: str, message: str = "") -> UpdateResult:
        return cls(component, UpdateOutcome.SKIPPED, message)

    @classmethod
    def up_to_date(cls, component: str, message: str = "") -> UpdateResult:
        return cls(component, UpdateOutcome.UP_TO_DATE, message)

    @classmethod
    def updated(cls, component: str, message: str = "") -> UpdateResult:
        return cls(component, UpdateOutcome.UPDATED, message)

    @classmethod
    def failed(cls, component: str, message: str = "") -> UpdateResult:
        return cls(component, UpdateOutcome.FAILED, message)
