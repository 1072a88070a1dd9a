"""Lightweight concurrent task execution for I/O-bound work.

`unitask` runs many short, mostly-blocked tasks on a single carrier event loop
instead of one OS thread per task, waits for all of them, and reports one
outcome per task (success, failure, or interrupted). See
:class:`unitask.runner.TaskRunner` for the thread-facing API and
:class:`unitask.engine.AsyncTaskRunner` for coroutine callers.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .api import arun_tasks, capabilities, configure, reset, run_tasks, start_task
from .capabilities import RuntimeCapabilities, detect_capabilities
from .config import RunnerConfig
from .engine import AsyncTaskRunner
from .errors import ClosedRunnerError, TaskFailure, TaskInterrupted, UnitaskError
from .interrupt import InterruptToken, checkpoint, current_token, sleep
from .runner import TaskRunner
from .scheduler import (
    RunnerEvent,
    add_event_listener,
    observe_events,
    remove_event_listener,
)
from .task import OutcomeStatus, RunnerState, Task, TaskOutcome

__all__ = [
    "AsyncTaskRunner",
    "ClosedRunnerError",
    "InterruptToken",
    "OutcomeStatus",
    "RunnerConfig",
    "RunnerEvent",
    "RunnerState",
    "RuntimeCapabilities",
    "Task",
    "TaskFailure",
    "TaskInterrupted",
    "TaskOutcome",
    "TaskRunner",
    "UnitaskError",
    "add_event_listener",
    "arun_tasks",
    "capabilities",
    "checkpoint",
    "configure",
    "current_token",
    "detect_capabilities",
    "observe_events",
    "remove_event_listener",
    "reset",
    "run_tasks",
    "sleep",
    "start_task",
]

try:
    __version__ = version("unitask")
except PackageNotFoundError:  # pragma: no cover - during local dev
    __version__ = "0.0.0"
