from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from concurrent.futures import Future
from typing import Any

from . import scheduler
from .capabilities import RuntimeCapabilities
from .config import RunnerConfig
from .engine import AsyncTaskRunner
from .runner import TaskRunner
from .task import Task, TaskOutcome


def run_tasks(
    tasks: Iterable[Task | Callable[[], Any]],
    /,
    *,
    max_concurrency: int | None = None,
    timeout: float | None = None,
) -> tuple[TaskOutcome, ...]:
    """Run every task concurrently and return one outcome per task.

    Callables get sequential integer ids in submission order.

    >>> from unitask.workloads import simulate_blocking_io
    >>> outcomes = run_tasks([lambda: simulate_blocking_io(0.01)] * 3)
    >>> len(outcomes), all(outcome.ok for outcome in outcomes)
    (3, True)
    >>> sorted(outcome.task_id for outcome in outcomes)
    [0, 1, 2]
    >>> reset()
    """

    with TaskRunner(max_concurrency=max_concurrency, timeout=timeout) as runner:
        for task in tasks:
            runner.submit(task)
    return runner.outcomes


async def arun_tasks(
    tasks: Iterable[Task | Callable[[], Any]],
    /,
    *,
    max_concurrency: int | None = None,
    timeout: float | None = None,
) -> tuple[TaskOutcome, ...]:
    """Coroutine counterpart of :func:`run_tasks` for the running event loop.

    >>> from unitask.workloads import simulate_async_io
    >>> async def main():
    ...     return await arun_tasks([lambda: simulate_async_io(0.01)] * 2)
    >>> [outcome.result for outcome in asyncio.run(main())]
    [0.01, 0.01]
    """

    async with AsyncTaskRunner(max_concurrency=max_concurrency, timeout=timeout) as runner:
        for task in tasks:
            runner.submit(task)
    return runner.outcomes


def start_task(
    body: Callable[..., Any],
    /,
    *args: Any,
    name: str | None = None,
    **kwargs: Any,
) -> Future[TaskOutcome]:
    """Start a single task on the carrier loop and return its future outcome.

    >>> future = start_task(pow, 2, 5, name="worker-pow")
    >>> outcome = future.result()
    >>> outcome.name, outcome.result
    ('worker-pow', 32)
    >>> reset()
    """

    async def _run_single() -> TaskOutcome:
        runner = AsyncTaskRunner()
        runner.submit(body, *args, name=name, **kwargs)
        outcomes = await runner.await_all()
        return outcomes[0]

    return asyncio.run_coroutine_threadsafe(
        _run_single(), scheduler.get_scheduler().carrier_loop()
    )


def configure(config: RunnerConfig) -> None:
    """Replace the global scheduler configuration.

    New runners pick up the configuration; running ones keep theirs.

    >>> configure(RunnerConfig(max_workers=2))
    >>> capabilities().cpu_count >= 1
    True
    >>> configure(RunnerConfig())
    >>> reset()
    """

    scheduler.configure(config)


def capabilities() -> RuntimeCapabilities:
    """Return the runtime snapshot used to size the carrier pool."""

    return scheduler.get_scheduler().capabilities


def reset(*, cancel_futures: bool = False) -> None:
    """Stop the carrier loop and tear down the shared blocking pool.

    Use this helper in tests or long-lived processes when you need to ensure
    the carrier is recreated with fresh configuration.

    >>> reset()
    """

    scheduler.reset(cancel_futures=cancel_futures)
