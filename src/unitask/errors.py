"""Exceptions raised by unitask runners and task helpers."""

from __future__ import annotations


class UnitaskError(Exception):
    """Base class for every error raised by ``unitask``."""


class ClosedRunnerError(UnitaskError, RuntimeError):
    """Raised when ``submit`` is called after the runner started draining."""

    def __init__(self, state: str) -> None:
        super().__init__(f"cannot submit tasks to a runner that is {state}")
        self.state = state


class TaskFailure(UnitaskError):
    """A task body raised; the original exception is chained as the cause."""

    def __init__(self, task_id: int | str, cause: BaseException | None) -> None:
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(f"task {task_id!r} failed{detail}")
        self.task_id = task_id
        self.cause = cause


class TaskInterrupted(UnitaskError):
    """The running task observed its interrupt signal.

    Task bodies receive this from :func:`unitask.interrupt.sleep` and
    :func:`unitask.interrupt.checkpoint`; letting it propagate marks the task
    as interrupted rather than failed.
    """

    def __init__(self, task_id: int | str | None = None) -> None:
        message = "task interrupted" if task_id is None else f"task {task_id!r} interrupted"
        super().__init__(message)
        self.task_id = task_id


__all__ = [
    "UnitaskError",
    "ClosedRunnerError",
    "TaskFailure",
    "TaskInterrupted",
]
