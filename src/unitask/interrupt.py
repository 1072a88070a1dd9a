"""Cooperative interruption for running task bodies.

Every task runs with its own :class:`InterruptToken` bound to a context
variable. Coroutine bodies are interrupted through ordinary ``asyncio``
cancellation; blocking bodies cannot be cancelled from the outside, so they
are expected to block through :func:`sleep` (or poll :func:`checkpoint`) and
exit by letting :class:`~unitask.errors.TaskInterrupted` propagate.
"""

from __future__ import annotations

import threading
from contextvars import ContextVar, Token

from .errors import TaskInterrupted


class InterruptToken:
    """Thread-safe one-shot interrupt flag shared by a task and its runner."""

    __slots__ = ("_event", "task_id")

    def __init__(self, task_id: int | str | None = None) -> None:
        self._event = threading.Event()
        self.task_id = task_id

    @property
    def interrupted(self) -> bool:
        return self._event.is_set()

    def interrupt(self) -> None:
        self._event.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block up to ``timeout`` seconds; return ``True`` if interrupted."""

        return self._event.wait(timeout)

    def raise_if_interrupted(self) -> None:
        if self._event.is_set():
            raise TaskInterrupted(self.task_id)

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"InterruptToken(task_id={self.task_id!r}, interrupted={self.interrupted})"


_CURRENT_TOKEN: ContextVar[InterruptToken | None] = ContextVar(
    "unitask_interrupt_token", default=None
)


def current_token() -> InterruptToken | None:
    """Return the token of the task running in this context, if any."""

    return _CURRENT_TOKEN.get()


def bind_token(token: InterruptToken) -> Token[InterruptToken | None]:
    return _CURRENT_TOKEN.set(token)


def checkpoint() -> None:
    """Raise :class:`TaskInterrupted` if the current task was interrupted.

    Outside a task this is a no-op so helpers stay usable from plain code.
    """

    token = _CURRENT_TOKEN.get()
    if token is not None:
        token.raise_if_interrupted()


def sleep(duration: float) -> None:
    """Block for ``duration`` seconds, waking early when interrupted.

    >>> sleep(0.0)
    """

    token = _CURRENT_TOKEN.get()
    if token is None:
        threading.Event().wait(duration)
        return
    if token.wait(duration):
        raise TaskInterrupted(token.task_id)


__all__ = [
    "InterruptToken",
    "bind_token",
    "checkpoint",
    "current_token",
    "sleep",
]
