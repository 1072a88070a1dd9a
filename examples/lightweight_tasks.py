"""Scenarios running many I/O-bound tasks on the shared carrier loop.

Each function drives a :class:`unitask.TaskRunner` or
:class:`unitask.AsyncTaskRunner` the way an application would: submit a burst
of short blocking jobs, wait for all of them, and inspect the outcomes.
"""

from __future__ import annotations

import contextvars
import threading
import time
from collections import Counter
from typing import Any

from unitask import AsyncTaskRunner, OutcomeStatus, TaskRunner, run_tasks, start_task
from unitask.workloads import simulate_async_io, simulate_blocking_io

from ._structures import ExampleResult, ExampleScenario, format_result

__all__ = [
    "burst_of_io_waits",
    "named_single_task",
    "shared_counter_under_contention",
    "request_user_inheritance",
    "fetch_user_and_order",
    "cancel_stuck_downloads",
    "SCENARIOS",
    "run_all",
]

REQUEST_USER: contextvars.ContextVar[str] = contextvars.ContextVar("request_user", default="anonymous")


def burst_of_io_waits(count: int, duration: float) -> dict[str, Any]:
    """Submit ``count`` tasks that each wait on I/O for ``duration`` seconds.

    The waits are awaited on the carrier loop, so every task progresses at
    once regardless of the blocking pool size.

    Returns:
        dict[str, Any]: Number of successful tasks and wall-clock seconds.
    """

    start = time.perf_counter()
    with TaskRunner() as runner:
        for task_id in range(count):
            runner.submit(simulate_async_io, duration, task_id=task_id)
    elapsed = time.perf_counter() - start
    completed = sum(outcome.ok for outcome in runner.outcomes)
    return {"completed": completed, "elapsed": round(elapsed, 2)}


def named_single_task(name: str) -> str:
    """Start one named task and report which thread served it."""

    outcome = start_task(lambda: threading.current_thread().name, name=name).result()
    return f"{outcome.name} ran on {outcome.result}"


def shared_counter_under_contention(count: int) -> int:
    """Increment one counter from ``count`` tasks guarded by a lock."""

    lock = threading.Lock()
    total = 0

    def increment() -> None:
        nonlocal total
        with lock:
            total += 1

    run_tasks([increment] * count)
    return total


def request_user_inheritance(user: str) -> list[str]:
    """Show that context variables set by the submitter reach every task."""

    def read_user() -> str:
        return REQUEST_USER.get()

    def submit_all() -> tuple:
        REQUEST_USER.set(user)
        return run_tasks([read_user, read_user])

    outcomes = contextvars.copy_context().run(submit_all)
    return [outcome.result for outcome in outcomes]


async def fetch_user_and_order(user_id: str, order_id: str) -> dict[str, str]:
    """Fetch two related records concurrently and unwrap both results."""

    async def fetch(kind: str, key: str) -> str:
        await simulate_async_io(0.02)
        return f"{kind}-{key}"

    async with AsyncTaskRunner() as runner:
        runner.submit(fetch, "user", user_id, task_id="user")
        runner.submit(fetch, "order", order_id, task_id="order")
    return {str(outcome.task_id): outcome.unwrap() for outcome in runner.outcomes}


def cancel_stuck_downloads(count: int) -> dict[str, int]:
    """Cancel downloads that would block far longer than the caller waits."""

    runner = TaskRunner()
    for task_id in range(count):
        runner.submit(simulate_blocking_io, 60.0, task_id=task_id)
    time.sleep(0.05)
    runner.cancel()
    statuses = Counter(outcome.status for outcome in runner.await_all())
    return {status.value: statuses[status] for status in OutcomeStatus}


SCENARIOS: list[ExampleScenario[Any]] = [
    ExampleScenario(
        name="I/O burst",
        summary="A hundred 100 ms waits finish in about the time of one.",
        entrypoint=burst_of_io_waits,
        args=(100, 0.1),
        tags=("io", "threads"),
    ),
    ExampleScenario(
        name="Named task",
        summary="A single task started with an explicit name.",
        entrypoint=named_single_task,
        args=("worker-0",),
        tags=("start",),
    ),
    ExampleScenario(
        name="Shared counter",
        summary="Many tasks synchronising on one lock.",
        entrypoint=shared_counter_under_contention,
        args=(100,),
        tags=("threads", "lock"),
    ),
    ExampleScenario(
        name="Request user inheritance",
        summary="Context variables flow from the submitter into tasks.",
        entrypoint=request_user_inheritance,
        args=("David",),
        tags=("contextvars",),
    ),
    ExampleScenario(
        name="Related fetches",
        summary="Two coroutine tasks awaited together from async code.",
        entrypoint=fetch_user_and_order,
        args=("123", "456"),
        tags=("asyncio",),
    ),
    ExampleScenario(
        name="Stuck downloads",
        summary="Cancellation reports blocked tasks as interrupted.",
        entrypoint=cancel_stuck_downloads,
        args=(5,),
        tags=("cancel",),
    ),
]


def run_all(verbose: bool = True) -> list[ExampleResult[Any]]:
    """Execute each scenario and optionally print formatted output."""

    results: list[ExampleResult[Any]] = []
    for scenario in SCENARIOS:
        result = scenario.execute()
        results.append(result)
        if verbose:
            print(format_result(result))
    return results


if __name__ == "__main__":
    run_all()
