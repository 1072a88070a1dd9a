"""Asyncio-native task runner.

:class:`AsyncTaskRunner` is the engine behind :class:`unitask.TaskRunner` and
can be used directly from coroutine code::

    async with AsyncTaskRunner() as runner:
        for index in range(100):
            runner.submit(simulate_async_io, 0.1, task_id=index)
    outcomes = runner.outcomes

Every task becomes an :class:`asyncio.Task` on a single event loop. Coroutine
bodies yield at each ``await``; plain callables are offloaded to the shared
blocking pool so they never occupy the loop, though each holds one pool
thread until it returns.
"""

from __future__ import annotations

import asyncio
import contextlib
import contextvars
import functools
import inspect
import itertools
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .config import RunnerConfig
from .errors import ClosedRunnerError, TaskInterrupted
from .interrupt import InterruptToken, bind_token
from .scheduler import RunnerEvent, Scheduler, get_scheduler
from .task import OutcomeStatus, RunnerState, Task, TaskId, TaskOutcome

logger = logging.getLogger(__name__)

_RUNNER_IDS = itertools.count()

_STATE_ORDER = {
    RunnerState.CREATED: 0,
    RunnerState.ACCEPTING: 1,
    RunnerState.DRAINING: 2,
    RunnerState.TERMINATED: 3,
}


@dataclass(slots=True)
class _Record:
    task: Task
    name: str
    token: InterruptToken
    handle: asyncio.Task[None] | None = None
    started_at: float | None = None


class _BodyExit(Exception):
    """Carries a ``SystemExit``/``KeyboardInterrupt`` raised by a task body.

    asyncio re-raises those out of the event loop, which would stop the
    shared carrier for every runner.
    """

    def __init__(self, cause: BaseException) -> None:
        super().__init__(cause)
        self.cause = cause


class AsyncTaskRunner:
    """Runs submitted tasks concurrently and collects one outcome per task.

    ``submit`` must be called from the event loop the runner is bound to (the
    first running loop it sees, or the ``loop`` given at construction).
    Bookkeeping is guarded by a lock so read-only properties and
    :meth:`interrupt_all` are safe from any thread.
    """

    def __init__(
        self,
        *,
        max_concurrency: int | None = None,
        timeout: float | None = None,
        name: str | None = None,
        config: RunnerConfig | None = None,
        scheduler: Scheduler | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._scheduler = scheduler or get_scheduler()
        self._config = config or self._scheduler.config
        limit = max_concurrency if max_concurrency is not None else self._config.max_concurrency
        if limit is not None and limit < 1:
            raise ValueError(f"max_concurrency must be positive, got {limit}")
        self._timeout = timeout if timeout is not None else self._config.task_timeout
        self.name = name or f"runner-{next(_RUNNER_IDS)}"

        self._lock = threading.Lock()
        self._state = RunnerState.CREATED
        self._records: dict[TaskId, _Record] = {}
        self._outcomes: list[TaskOutcome] = []
        self._auto_ids = itertools.count()
        self._loop = loop
        self._changed = asyncio.Event()
        self._semaphore = asyncio.Semaphore(limit) if limit is not None else None

    # ------------------------------------------------------------------
    # Public API

    @property
    def state(self) -> RunnerState:
        with self._lock:
            return self._state

    @property
    def outcomes(self) -> tuple[TaskOutcome, ...]:
        """Outcomes recorded so far, in completion order."""

        with self._lock:
            return tuple(self._outcomes)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._records) - len(self._outcomes)

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        return self._loop

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
        """Schedule ``task`` for concurrent execution and return it.

        Raises :class:`~unitask.errors.ClosedRunnerError` once the runner is
        draining or terminated.
        """

        self._bind_loop(asyncio.get_running_loop())
        self.start()
        record = self.reserve(task, args, kwargs, task_id=task_id, name=name, timeout=timeout)
        try:
            self.emit("submitted", record)
        finally:
            self.spawn(record)
        return record.task

    async def await_all(self) -> tuple[TaskOutcome, ...]:
        """Stop accepting tasks and wait until every submitted task finished.

        Calling it again after termination returns the same outcomes. If the
        awaiting coroutine is cancelled, in-flight tasks are interrupted and
        awaited before the cancellation propagates.
        """

        self._bind_loop(asyncio.get_running_loop())
        if self.state is RunnerState.TERMINATED:
            return self.outcomes
        self.begin_drain()
        try:
            await self._wait_drained()
        except asyncio.CancelledError:
            logger.debug("%s: cancelled while draining", self.name)
            self.cancel()
            await self._wait_drained()
            self._advance(RunnerState.TERMINATED)
            raise
        self._advance(RunnerState.TERMINATED)
        return self.outcomes

    def cancel(self) -> None:
        """Interrupt every in-flight task; must run on the runner's loop."""

        records = self.interrupt_all()
        for record in records:
            if record.handle is not None and not record.handle.done():
                record.handle.cancel()

    def interrupt_all(self) -> list[_Record]:
        """Begin draining and deliver the interrupt signal to every task.

        Safe to call from any thread; tasks that are not spawned yet finish as
        interrupted without running their body.
        """

        self.begin_drain()
        with self._lock:
            records = list(self._records.values())
        for record in records:
            record.token.interrupt()
        return records

    async def __aenter__(self) -> AsyncTaskRunner:
        self._bind_loop(asyncio.get_running_loop())
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.cancel()
        await self.await_all()
        return False

    # ------------------------------------------------------------------
    # Lifecycle shared with the thread-facing TaskRunner

    def start(self) -> None:
        self._advance(RunnerState.ACCEPTING)

    def begin_drain(self) -> None:
        self._advance(RunnerState.DRAINING)

    def reserve(
        self,
        task: Task | Callable[..., Any],
        args: tuple[Any, ...] = (),
        kwargs: dict[str, Any] | None = None,
        *,
        task_id: TaskId | None = None,
        name: str | None = None,
        timeout: float | None = None,
    ) -> _Record:
        """Register a task so draining waits for it; thread-safe."""

        with self._lock:
            if _STATE_ORDER[self._state] >= _STATE_ORDER[RunnerState.DRAINING]:
                raise ClosedRunnerError(self._state.value)
            if isinstance(task, Task):
                if args or kwargs or task_id is not None or name is not None or timeout is not None:
                    raise TypeError("arguments cannot be combined with a prebuilt Task")
                built = task
            elif callable(task):
                built = Task(
                    task_id=self._allocate_id() if task_id is None else task_id,
                    body=task,
                    args=tuple(args),
                    kwargs=dict(kwargs or {}),
                    name=name,
                    timeout=timeout,
                )
            else:
                raise TypeError(f"expected a Task or callable, got {type(task).__name__}")
            if built.task_id in self._records:
                raise ValueError(f"duplicate task id {built.task_id!r}")
            record = _Record(
                task=built,
                name=built.label(self._config.name_prefix),
                token=InterruptToken(built.task_id),
            )
            self._records[built.task_id] = record
        return record

    def release(self, record: _Record) -> None:
        """Drop a reservation that could not be scheduled; thread-safe.

        Only called when the runner's loop is gone, so no drain is waiting.
        """

        with self._lock:
            if self._records.get(record.task.task_id) is record:
                del self._records[record.task.task_id]

    def spawn(self, record: _Record) -> None:
        """Create the asyncio task for ``record``; must run on the runner's loop."""

        record.handle = asyncio.get_running_loop().create_task(
            self._execute(record), name=record.name
        )

    # ------------------------------------------------------------------
    # Execution

    async def _execute(self, record: _Record) -> None:
        bind_token(record.token)
        status = OutcomeStatus.FAILURE
        result: Any = None
        error: BaseException | None = None
        try:
            async with self._slot():
                record.token.raise_if_interrupted()
                record.started_at = time.monotonic()
                self.emit("started", record)
                result = await self._call(record)
            status = OutcomeStatus.SUCCESS
        except (asyncio.CancelledError, TaskInterrupted) as exc:
            status, error = OutcomeStatus.INTERRUPTED, exc
        except _BodyExit as exc:
            error = exc.cause
            logger.warning("%s: task %s raised %r", self.name, record.name, exc.cause)
        except Exception as exc:
            error = exc
            logger.debug("%s: task %s failed: %r", self.name, record.name, exc)
        finally:
            self._finish(
                record,
                TaskOutcome(
                    task_id=record.task.task_id,
                    name=record.name,
                    status=status,
                    result=result,
                    error=error,
                    started_at=record.started_at,
                    finished_at=time.monotonic(),
                ),
            )

    async def _call(self, record: _Record) -> Any:
        timeout = record.task.timeout if record.task.timeout is not None else self._timeout
        if timeout is None:
            return await self._invoke(record)
        return await asyncio.wait_for(self._invoke(record), timeout)

    async def _invoke(self, record: _Record) -> Any:
        task = record.task
        try:
            if task.is_coroutine:
                return await task.body(*task.args, **task.kwargs)
            result = await self._run_blocking(record)
            if inspect.isawaitable(result):
                result = await result
            return result
        except (Exception, asyncio.CancelledError, GeneratorExit):
            raise
        except BaseException as exc:
            raise _BodyExit(exc) from exc

    async def _run_blocking(self, record: _Record) -> Any:
        task = record.task
        pool = self._scheduler.blocking_pool(self._config)
        call = functools.partial(task.body, *task.args, **task.kwargs)
        context = contextvars.copy_context()
        pending = pool.submit(context.run, call)
        future = asyncio.wrap_future(pending)
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError as cancelled:
            # The worker thread cannot be cancelled; signal it and wait.
            record.token.interrupt()
            if pending.cancel():
                raise
            try:
                return await future
            except TaskInterrupted:
                raise cancelled from None

    def _slot(self) -> contextlib.AbstractAsyncContextManager[Any]:
        if self._semaphore is None:
            return contextlib.nullcontext()
        return self._semaphore

    # ------------------------------------------------------------------
    # Bookkeeping

    def _allocate_id(self) -> int:
        candidate = next(self._auto_ids)
        while candidate in self._records:
            candidate = next(self._auto_ids)
        return candidate

    def _finish(self, record: _Record, outcome: TaskOutcome) -> None:
        with self._lock:
            self._outcomes.append(outcome)
        self._changed.set()
        try:
            self.emit("finished", record, status=outcome.status)
        except Exception:
            logger.exception("%s: event listener failed for %s", self.name, record.name)

    async def _wait_drained(self) -> None:
        while self.pending_count:
            self._changed.clear()
            await self._changed.wait()

    def _advance(self, target: RunnerState) -> bool:
        with self._lock:
            previous = self._state
            if _STATE_ORDER[target] <= _STATE_ORDER[previous]:
                return False
            self._state = target
        logger.debug("%s: %s -> %s", self.name, previous.value, target.value)
        self._scheduler.notify(RunnerEvent(kind="state", runner=self.name, state=target))
        return True

    def _bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._loop is None:
            self._loop = loop
        elif self._loop is not loop:
            raise RuntimeError(f"{self.name} is bound to a different event loop")

    def emit(
        self,
        kind: str,
        record: _Record,
        *,
        status: OutcomeStatus | None = None,
    ) -> None:
        self._scheduler.notify(
            RunnerEvent(
                kind=kind,
                runner=self.name,
                task_id=record.task.task_id,
                name=record.name,
                status=status,
            )
        )

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"{type(self).__name__}(name={self.name!r}, state={self.state.value!r})"


__all__ = ["AsyncTaskRunner"]
