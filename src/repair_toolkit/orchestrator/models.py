"""Domain models for task batches and their outcomes."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

Task = Callable[[], object]


class TaskStatus(str, Enum):
    """Terminal state of one task."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class TaskOutcome:
    """Result of running one task of a batch."""

    index: int
    name: str
    status: TaskStatus
    duration_seconds: float
    error: str | None = None
    error_type: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == TaskStatus.SUCCEEDED


@dataclass(slots=True, frozen=True)
class BatchReport:
    """Aggregate of one drained batch, in submission order."""

    outcomes: tuple[TaskOutcome, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def failures(self) -> list[TaskOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]
