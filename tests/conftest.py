"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest

from repair_toolkit.orchestrator.executor import TaskExecutor

from .fakes import RecordingNotifier


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def executor():
    """TaskExecutor with its own pool, shut down after the test."""
    with TaskExecutor(max_workers=8) as task_executor:
        yield task_executor


@pytest.fixture()
def clean_env(monkeypatch):
    """Drop every REPAIR_TOOLKIT_* variable inherited from the shell."""
    for name in list(os.environ):
        if name.startswith("REPAIR_TOOLKIT_"):
            monkeypatch.delenv(name, raising=False)
