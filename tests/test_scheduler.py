from __future__ import annotations

import logging
import threading

import pytest

import unitask.scheduler as scheduler
from unitask import (
    OutcomeStatus,
    RunnerConfig,
    RunnerEvent,
    RunnerState,
    TaskRunner,
    add_event_listener,
    observe_events,
    remove_event_listener,
)
from unitask.executors import carrier
from unitask.workloads import failing_io, simulate_blocking_io


def test_listener_receives_task_lifecycle() -> None:
    events: list[RunnerEvent] = []
    add_event_listener(events.append)
    try:
        runner = TaskRunner(name="lifecycle")
        runner.submit(simulate_blocking_io, 0.0, task_id="ok")
        runner.submit(failing_io, 0.0, task_id="bad")
        runner.await_all()
    finally:
        remove_event_listener(events.append)

    kinds = [(event.kind, event.task_id) for event in events if event.kind != "state"]
    for task_id in ("ok", "bad"):
        assert kinds.index(("submitted", task_id)) < kinds.index(("finished", task_id))
        assert ("started", task_id) in kinds
    finished = {event.task_id: event.status for event in events if event.kind == "finished"}
    assert finished == {"ok": OutcomeStatus.SUCCESS, "bad": OutcomeStatus.FAILURE}
    states = [event.state for event in events if event.kind == "state"]
    assert states == [RunnerState.ACCEPTING, RunnerState.DRAINING, RunnerState.TERMINATED]
    assert all(event.runner == "lifecycle" for event in events)


def test_observe_events_logs(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="unitask.events")
    with observe_events(level=logging.DEBUG):
        runner = TaskRunner()
        runner.submit(simulate_blocking_io, 0.0, task_id=5)
        runner.await_all()
    messages = [record.getMessage() for record in caplog.records if record.name == "unitask.events"]
    assert any("event=finished task=5" in message and "status=success" in message for message in messages)

    caplog.clear()
    runner = TaskRunner()
    runner.submit(simulate_blocking_io, 0.0)
    runner.await_all()
    assert not [record for record in caplog.records if record.name == "unitask.events"]


def test_failing_finished_listener_does_not_lose_outcomes(caplog: pytest.LogCaptureFixture) -> None:
    def listener(event: RunnerEvent) -> None:
        if event.kind == "finished":
            raise RuntimeError("listener broke")

    add_event_listener(listener)
    try:
        runner = TaskRunner()
        runner.submit(simulate_blocking_io, 0.0)
        outcomes = runner.await_all()
    finally:
        remove_event_listener(listener)
    assert len(outcomes) == 1
    assert outcomes[0].ok
    assert any("event listener failed" in record.getMessage() for record in caplog.records)


def test_event_as_dict() -> None:
    event = RunnerEvent(kind="finished", runner="r", task_id=1, status=OutcomeStatus.FAILURE)
    assert event.as_dict() == {
        "kind": "finished",
        "runner": "r",
        "task_id": 1,
        "name": None,
        "status": "failure",
        "state": None,
    }


def test_pool_size_prefers_config() -> None:
    local = scheduler.Scheduler(config=RunnerConfig(max_workers=3))
    assert local.pool_size() == 3
    default = scheduler.Scheduler(config=RunnerConfig())
    assert default.pool_size() == default.capabilities.suggested_io_workers
    assert local.blocking_pool()._max_workers == 3  # type: ignore[attr-defined]


def test_carrier_loop_is_shared_and_resettable() -> None:
    first = carrier.get_carrier_loop()
    assert carrier.get_carrier_loop() is first
    thread = carrier.carrier_thread()
    assert thread is not None and thread.is_alive()
    assert thread.name == "unitask-carrier"
    carrier.reset_carrier()
    assert first.is_closed()
    assert not thread.is_alive()
    assert carrier.get_carrier_loop() is not first


def test_blocking_pool_is_kept_per_size() -> None:
    small = carrier.get_blocking_pool(max_workers=2)
    assert carrier.get_blocking_pool(max_workers=2) is small
    large = carrier.get_blocking_pool(max_workers=4)
    assert large is not small
    assert large._max_workers == 4  # type: ignore[attr-defined]
    assert carrier.get_blocking_pool(max_workers=2) is small
    assert small.submit(lambda: "alive").result() == "alive"


def test_runners_with_different_pool_sizes_keep_their_bounds() -> None:
    lock = threading.Lock()
    active = {2: 0, 3: 0}
    peaks = {2: 0, 3: 0}

    def body(size: int) -> None:
        with lock:
            active[size] += 1
            peaks[size] = max(peaks[size], active[size])
        try:
            simulate_blocking_io(0.05)
        finally:
            with lock:
                active[size] -= 1

    small = TaskRunner(config=RunnerConfig(max_workers=2))
    large = TaskRunner(config=RunnerConfig(max_workers=3))
    for index in range(10):
        small.submit(body, 2, task_id=index)
        large.submit(body, 3, task_id=index)
    assert all(outcome.ok for outcome in small.await_all())
    assert all(outcome.ok for outcome in large.await_all())
    assert peaks[2] <= 2
    assert peaks[3] <= 3


def test_configured_pool_size_limits_worker_threads() -> None:
    scheduler.configure(RunnerConfig(max_workers=2))
    names: set[str] = set()
    lock = threading.Lock()

    def body() -> None:
        with lock:
            names.add(threading.current_thread().name)
        simulate_blocking_io(0.01)

    runner = TaskRunner()
    for _ in range(10):
        runner.submit(body)
    runner.await_all()
    assert 1 <= len(names) <= 2
    assert all(name.startswith("unitask-worker") for name in names)
