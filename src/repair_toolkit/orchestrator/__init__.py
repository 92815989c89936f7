"""Concurrent task orchestration for maintenance runs.

A maintenance pass is dozens of independent, slow, possibly failing operations
(registry writes, shell commands, scans). They are fanned out on a thread pool
and joined before the caller moves on. One failing operation never stops the
pass: every failure is logged and returned in a ``BatchReport``.
"""

from repair_toolkit.orchestrator.executor import (
    TaskExecutor,
    execute_tasks,
    get_default_executor,
    run_task,
)
from repair_toolkit.orchestrator.models import BatchReport, Task, TaskOutcome, TaskStatus

__all__ = [
    "BatchReport",
    "Task",
    "TaskExecutor",
    "TaskOutcome",
    "TaskStatus",
    "execute_tasks",
    "get_default_executor",
    "run_task",
]
