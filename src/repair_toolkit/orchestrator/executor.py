"""Fan-out executor for independent maintenance tasks."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ALL_COMPLETED, Future, ThreadPoolExecutor, wait

from repair_toolkit.orchestrator.models import BatchReport, Task, TaskOutcome, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 64

_task_context = threading.local()


class TaskExecutor:
    """Run batches of zero-argument tasks on a shared thread pool.

    ``execute_tasks`` returns only after every task of the batch has finished.
    A task that raises is logged and reported as failed; its siblings still
    run. There is no timeout: a task that never returns blocks the batch.
    """

    def __init__(
        self,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        thread_name_prefix: str = "repair-task",
    ) -> None:
        self.max_workers = max(1, max_workers)
        self.thread_name_prefix = thread_name_prefix
        self._pool: ThreadPoolExecutor | None = None
        self._pool_lock = threading.Lock()

    def execute_tasks(
        self,
        tasks: Iterable[Task],
        *,
        names: Sequence[str] | None = None,
    ) -> BatchReport:
        batch = list(tasks)
        if not batch:
            return BatchReport()
        labels = _resolve_names(batch, names)

        started = time.monotonic()
        if _inside_task():
            # Nested batch: joining on the shared pool from one of its own
            # workers can starve it, so the batch gets its own threads.
            with ThreadPoolExecutor(
                max_workers=len(batch),
                thread_name_prefix=f"{self.thread_name_prefix}-nested",
            ) as nested_pool:
                outcomes = _drain(nested_pool, batch, labels)
        else:
            outcomes = _drain(self._shared_pool(), batch, labels)

        report = BatchReport(outcomes=tuple(outcomes))
        logger.info(
            "Task batch finished: total=%d succeeded=%d failed=%d elapsed=%.2fs",
            report.total,
            report.succeeded,
            report.failed,
            time.monotonic() - started,
        )
        return report

    def shutdown(self, wait: bool = True) -> None:
        with self._pool_lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            pool.shutdown(wait=wait)

    def __enter__(self) -> TaskExecutor:
        return self

    def __exit__(self, *_: object) -> None:
        self.shutdown()

    def _shared_pool(self) -> ThreadPoolExecutor:
        with self._pool_lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix=self.thread_name_prefix,
                )
            return self._pool


_default_executor: TaskExecutor | None = None
_default_executor_lock = threading.Lock()


def get_default_executor() -> TaskExecutor:
    """Process-wide executor used by the module-level ``execute_tasks``."""

    global _default_executor  # noqa: PLW0603
    with _default_executor_lock:
        if _default_executor is None:
            _default_executor = TaskExecutor()
        return _default_executor


def execute_tasks(tasks: Iterable[Task], *, names: Sequence[str] | None = None) -> BatchReport:
    return get_default_executor().execute_tasks(tasks, names=names)


def run_task(task: Task, *, name: str, index: int = 0) -> TaskOutcome:
    """Run one task on the calling thread with the same failure isolation as a batch."""

    return _run_one(index, name, task)


def _drain(
    pool: ThreadPoolExecutor,
    batch: list[Task],
    labels: list[str],
) -> list[TaskOutcome]:
    futures: list[Future[TaskOutcome]] = [
        pool.submit(_run_one, index, labels[index], task) for index, task in enumerate(batch)
    ]
    wait(futures, return_when=ALL_COMPLETED)

    outcomes: list[TaskOutcome] = []
    for index, future in enumerate(futures):
        error = future.exception()
        if error is None:
            outcomes.append(future.result())
            continue
        # Only non-Exception errors (SystemExit and friends) get here.
        logger.error("Task %s aborted: %r", labels[index], error)
        outcomes.append(
            TaskOutcome(
                index=index,
                name=labels[index],
                status=TaskStatus.FAILED,
                duration_seconds=0.0,
                error=str(error) or type(error).__name__,
                error_type=type(error).__name__,
            ),
        )
    return outcomes


def _run_one(index: int, name: str, task: Task) -> TaskOutcome:
    depth = getattr(_task_context, "depth", 0)
    _task_context.depth = depth + 1
    started = time.monotonic()
    try:
        task()
    except Exception as error:  # noqa: BLE001
        logger.exception("Task %s failed", name)
        return TaskOutcome(
            index=index,
            name=name,
            status=TaskStatus.FAILED,
            duration_seconds=time.monotonic() - started,
            error=str(error) or type(error).__name__,
            error_type=type(error).__name__,
        )
    finally:
        _task_context.depth = depth
    return TaskOutcome(
        index=index,
        name=name,
        status=TaskStatus.SUCCEEDED,
        duration_seconds=time.monotonic() - started,
    )


def _inside_task() -> bool:
    return getattr(_task_context, "depth", 0) > 0


def _resolve_names(batch: list[Task], names: Sequence[str] | None) -> list[str]:
    if names is not None:
        if len(names) != len(batch):
            raise ValueError(f"Expected {len(batch)} task names, got {len(names)}.")
        return list(names)

    labels: list[str] = []
    for index, task in enumerate(batch):
        name = getattr(task, "__name__", "")
        labels.append(name if name and not name.startswith("<") else f"task-{index}")
    return labels
