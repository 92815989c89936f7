"""Phased maintenance run: serial preflight, then one parallel batch."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from repair_toolkit.notifications import ProgressCallback
from repair_toolkit.orchestrator.executor import TaskExecutor, run_task
from repair_toolkit.orchestrator.models import BatchReport, Task, TaskOutcome

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class MaintenanceStep:
    """One named unit of a maintenance run."""

    name: str
    action: Task
    progress_key: str | None = None


@dataclass(slots=True, frozen=True)
class MaintenanceReport:
    preflight: tuple[TaskOutcome, ...]
    batch: BatchReport

    @property
    def ok(self) -> bool:
        return self.batch.ok and all(outcome.ok for outcome in self.preflight)


def run_maintenance(
    steps: Iterable[MaintenanceStep],
    *,
    executor: TaskExecutor,
    progress: ProgressCallback | None = None,
    preflight: Iterable[MaintenanceStep] = (),
) -> MaintenanceReport:
    """Run ``preflight`` one at a time on the calling thread, then fan ``steps`` out as one batch.

    ``progress`` receives a step's ``progress_key`` once that step succeeded.
    It is called from worker threads; hopping back to a UI thread is the
    callback's job.
    """

    preflight_outcomes: list[TaskOutcome] = []
    for index, step in enumerate(preflight):
        logger.info("Running preflight step: %s", step.name)
        preflight_outcomes.append(
            run_task(_with_progress(step, progress), name=step.name, index=index),
        )

    batch_steps = list(steps)
    logger.info("Running %d maintenance steps", len(batch_steps))
    batch = executor.execute_tasks(
        [_with_progress(step, progress) for step in batch_steps],
        names=[step.name for step in batch_steps],
    )
    return MaintenanceReport(preflight=tuple(preflight_outcomes), batch=batch)


def _with_progress(step: MaintenanceStep, progress: ProgressCallback | None) -> Task:
    def _run() -> None:
        step.action()
        if progress is not None and step.progress_key is not None:
            progress(step.progress_key)

    return _run
