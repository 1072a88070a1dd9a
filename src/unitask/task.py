from __future__ import annotations

import enum
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import TaskFailure, TaskInterrupted

TaskId = int | str


class OutcomeStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    INTERRUPTED = "interrupted"


class RunnerState(str, enum.Enum):
    """Lifecycle of a runner; transitions only move forward."""

    CREATED = "created"
    ACCEPTING = "accepting"
    DRAINING = "draining"
    TERMINATED = "terminated"


@dataclass(frozen=True, slots=True)
class Task:
    """An independent unit of work submitted to a runner.

    Attributes:
        task_id: Identifier reported back in the matching outcome.
        body: Plain callable (run on the carrier thread pool) or coroutine
            function (run on the carrier event loop).
        args: Positional arguments passed to ``body``.
        kwargs: Keyword arguments passed to ``body``.
        name: Human-readable label; runners fill in ``<prefix><task_id>``.
        timeout: Seconds after which the task is recorded as failed.
    """

    task_id: TaskId
    body: Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)
    name: str | None = None
    timeout: float | None = None

    @property
    def is_coroutine(self) -> bool:
        return inspect.iscoroutinefunction(self.body)

    def label(self, prefix: str = "worker-") -> str:
        return self.name if self.name is not None else f"{prefix}{self.task_id}"


@dataclass(frozen=True, slots=True)
class TaskOutcome:
    """Recorded result of a single task."""

    task_id: TaskId
    name: str
    status: OutcomeStatus
    result: Any = None
    error: BaseException | None = None
    started_at: float | None = None
    finished_at: float | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    @property
    def duration(self) -> float | None:
        """Seconds between the body starting and finishing, if it started."""

        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    def unwrap(self) -> Any:
        """Return the task result or raise the error matching the status.

        >>> TaskOutcome(1, "worker-1", OutcomeStatus.SUCCESS, result=3).unwrap()
        3
        """

        if self.status is OutcomeStatus.SUCCESS:
            return self.result
        if self.status is OutcomeStatus.INTERRUPTED:
            raise TaskInterrupted(self.task_id) from self.error
        raise TaskFailure(self.task_id, self.error) from self.error

    def as_dict(self) -> dict[str, Any]:
        """Represent the outcome as plain data for logging or testing."""

        return {
            "task_id": self.task_id,
            "name": self.name,
            "status": self.status.value,
            "result": self.result,
            "error": repr(self.error) if self.error is not None else None,
            "duration": self.duration,
        }


__all__ = ["OutcomeStatus", "RunnerState", "Task", "TaskId", "TaskOutcome"]
