from __future__ import annotations

import asyncio
import functools

import pytest

from unitask import OutcomeStatus, Task, TaskFailure, TaskInterrupted, TaskOutcome


async def _coroutine_body() -> None:
    await asyncio.sleep(0)


def test_task_label_defaults_to_prefix_and_id() -> None:
    assert Task(task_id=7, body=print).label() == "worker-7"
    assert Task(task_id="io", body=print).label("vt-") == "vt-io"
    assert Task(task_id=7, body=print, name="custom").label("vt-") == "custom"


def test_task_detects_coroutine_bodies() -> None:
    assert Task(task_id=1, body=_coroutine_body).is_coroutine is True
    assert Task(task_id=1, body=functools.partial(_coroutine_body)).is_coroutine is True
    assert Task(task_id=1, body=print).is_coroutine is False


def test_outcome_unwrap_success() -> None:
    outcome = TaskOutcome(1, "worker-1", OutcomeStatus.SUCCESS, result="done")
    assert outcome.ok is True
    assert outcome.unwrap() == "done"


def test_outcome_unwrap_failure_chains_cause() -> None:
    cause = ValueError("boom")
    outcome = TaskOutcome(2, "worker-2", OutcomeStatus.FAILURE, error=cause)
    assert outcome.ok is False
    with pytest.raises(TaskFailure) as excinfo:
        outcome.unwrap()
    assert excinfo.value.__cause__ is cause
    assert excinfo.value.task_id == 2


def test_outcome_unwrap_interrupted() -> None:
    outcome = TaskOutcome(3, "worker-3", OutcomeStatus.INTERRUPTED)
    with pytest.raises(TaskInterrupted):
        outcome.unwrap()


def test_outcome_duration_and_as_dict() -> None:
    outcome = TaskOutcome(
        4,
        "worker-4",
        OutcomeStatus.FAILURE,
        error=OSError("disk"),
        started_at=10.0,
        finished_at=10.25,
    )
    assert outcome.duration == pytest.approx(0.25)
    payload = outcome.as_dict()
    assert payload["status"] == "failure"
    assert payload["error"] == "OSError('disk')"
    assert TaskOutcome(5, "worker-5", OutcomeStatus.INTERRUPTED).duration is None
