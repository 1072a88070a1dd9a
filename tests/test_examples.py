from __future__ import annotations

import asyncio

from examples import lightweight_tasks
from examples._structures import ExampleResult, format_result
from unitask import RunnerConfig, configure


def test_burst_finishes_in_about_one_wait() -> None:
    configure(RunnerConfig(max_workers=2))
    summary = lightweight_tasks.burst_of_io_waits(40, 0.05)
    assert summary["completed"] == 40
    assert summary["elapsed"] < 0.05 * 8


def test_named_single_task_runs_on_worker_pool() -> None:
    message = lightweight_tasks.named_single_task("worker-0")
    assert message.startswith("worker-0 ran on unitask-worker")


def test_shared_counter_counts_every_task() -> None:
    assert lightweight_tasks.shared_counter_under_contention(50) == 50


def test_request_user_is_inherited() -> None:
    assert lightweight_tasks.request_user_inheritance("David") == ["David", "David"]


def test_fetch_user_and_order() -> None:
    result = asyncio.run(lightweight_tasks.fetch_user_and_order("1", "2"))
    assert result == {"user": "user-1", "order": "order-2"}


def test_cancel_stuck_downloads() -> None:
    assert lightweight_tasks.cancel_stuck_downloads(3) == {
        "success": 0,
        "failure": 0,
        "interrupted": 3,
    }


def test_format_result_includes_tags() -> None:
    result = ExampleResult(name="demo", output=1, tags=("io", "threads"))
    assert format_result(result) == "demo [io threads]: 1"


def test_scenarios_are_executable() -> None:
    names = [scenario.name for scenario in lightweight_tasks.SCENARIOS]
    assert len(names) == len(set(names))
    shared = next(s for s in lightweight_tasks.SCENARIOS if s.name == "Shared counter")
    assert shared.execute().output == 100
