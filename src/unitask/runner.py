from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from typing import Any

from .config import RunnerConfig
from .engine import AsyncTaskRunner
from .errors import ClosedRunnerError
from .executors.carrier import carrier_thread
from .scheduler import get_scheduler
from .task import RunnerState, Task, TaskId, TaskOutcome


class TaskRunner:
    """Thread-facing runner that multiplexes tasks onto the carrier loop.

    Use it like an executor scope; leaving the block waits for every task::

        with TaskRunner() as runner:
            for index in range(100):
                runner.submit(simulate_blocking_io, 0.1, task_id=index)
        outcomes = runner.outcomes

    ``submit`` only enqueues and is safe to call from any thread. Failures in
    task bodies are recorded per task and never propagate to the caller.
    """

    def __init__(
        self,
        *,
        max_concurrency: int | None = None,
        timeout: float | None = None,
        name: str | None = None,
        config: RunnerConfig | None = None,
    ) -> None:
        scheduler = get_scheduler()
        self._loop = scheduler.carrier_loop()
        self._engine = AsyncTaskRunner(
            max_concurrency=max_concurrency,
            timeout=timeout,
            name=name,
            config=config,
            scheduler=scheduler,
            loop=self._loop,
        )

    @property
    def name(self) -> str:
        return self._engine.name

    @property
    def state(self) -> RunnerState:
        return self._engine.state

    @property
    def outcomes(self) -> tuple[TaskOutcome, ...]:
        return self._engine.outcomes

    @property
    def pending_count(self) -> int:
        return self._engine.pending_count

    def submit(
        self,
        task: Task | Callable[..., Any],
        /,
        *args: Any,
        task_id: TaskId | None = None,
        name: str | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> Task:
        """Schedule ``task`` without waiting for it to run.

        ``task`` is either a prebuilt :class:`~unitask.task.Task` or a callable
        invoked with ``args``/``kwargs``. Raises
        :class:`~unitask.errors.ClosedRunnerError` once :meth:`await_all` or
        :meth:`cancel` has started draining the runner, or once
        :func:`unitask.reset` has closed the carrier loop it was built on.
        """

        engine = self._engine
        engine.start()
        record = engine.reserve(task, args, kwargs, task_id=task_id, name=name, timeout=timeout)
        try:
            engine.emit("submitted", record)
        finally:
            self._schedule(record)
        return record.task

    def _schedule(self, record: Any) -> None:
        try:
            self._loop.call_soon_threadsafe(self._engine.spawn, record)
        except RuntimeError as exc:
            # The carrier was reset underneath this runner.
            self._engine.release(record)
            raise ClosedRunnerError("closed") from exc

    def await_all(self) -> tuple[TaskOutcome, ...]:
        """Block until every submitted task finished and return the outcomes.

        The runner stops accepting submissions immediately. A
        ``KeyboardInterrupt`` while waiting interrupts the in-flight tasks,
        waits for them to report, then propagates.
        """

        if self._engine.state is RunnerState.TERMINATED:
            return self._engine.outcomes
        if carrier_thread() is threading.current_thread():
            raise RuntimeError("await_all() would deadlock on the carrier loop; use AsyncTaskRunner")
        self._engine.begin_drain()
        future = asyncio.run_coroutine_threadsafe(self._engine.await_all(), self._loop)
        try:
            return future.result()
        except KeyboardInterrupt:
            self.cancel()
            future.result()
            raise

    def cancel(self) -> None:
        """Stop accepting tasks and interrupt every in-flight task.

        Safe to call from any thread; pair it with :meth:`await_all` to collect
        the interrupted outcomes.
        """

        self._engine.interrupt_all()
        self._loop.call_soon_threadsafe(self._engine.cancel)

    def __enter__(self) -> TaskRunner:
        self._engine.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.cancel()
        self.await_all()
        return False

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"TaskRunner(name={self.name!r}, state={self.state.value!r})"


__all__ = ["TaskRunner"]
