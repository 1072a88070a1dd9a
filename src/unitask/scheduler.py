from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from threading import Lock
from typing import Any

from .capabilities import RuntimeCapabilities, detect_capabilities
from .config import RunnerConfig
from .executors.carrier import get_blocking_pool, get_carrier_loop, reset_carrier
from .task import OutcomeStatus, RunnerState, TaskId

EventListener = Callable[["RunnerEvent"], None]


@dataclass(slots=True)
class RunnerEvent:
    kind: str
    runner: str
    task_id: TaskId | None = None
    name: str | None = None
    status: OutcomeStatus | None = None
    state: RunnerState | None = None

    def as_dict(self) -> dict[str, Any]:
        """Represent the event as plain data for logging or testing."""

        return {
            "kind": self.kind,
            "runner": self.runner,
            "task_id": self.task_id,
            "name": self.name,
            "status": self.status.value if self.status is not None else None,
            "state": self.state.value if self.state is not None else None,
        }


class Scheduler:
    """Sizes the shared carrier and fans runner events out to listeners."""

    def __init__(self, *, config: RunnerConfig | None = None) -> None:
        self._config = config or RunnerConfig.from_env()
        self._capabilities: RuntimeCapabilities = detect_capabilities()
        self._listeners: list[EventListener] = []
        self._listeners_lock = Lock()

    @property
    def capabilities(self) -> RuntimeCapabilities:
        return self._capabilities

    @property
    def config(self) -> RunnerConfig:
        return self._config

    def refresh_capabilities(self) -> None:
        self._capabilities = detect_capabilities()

    def configure(self, config: RunnerConfig) -> None:
        """Replace the scheduler configuration and refresh capabilities."""

        self._config = config
        self.refresh_capabilities()

    def pool_size(self, config: RunnerConfig | None = None) -> int:
        active = config or self._config
        return active.max_workers or self._capabilities.suggested_io_workers

    def carrier_loop(self) -> asyncio.AbstractEventLoop:
        return get_carrier_loop(name=self._config.loop_name)

    def blocking_pool(self, config: RunnerConfig | None = None) -> ThreadPoolExecutor:
        return get_blocking_pool(max_workers=self.pool_size(config))

    def reset(self, *, cancel_futures: bool = False) -> None:
        reset_carrier(cancel_futures=cancel_futures)
        self.refresh_capabilities()

    def add_listener(self, listener: EventListener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        with self._listeners_lock:
            try:
                self._listeners.remove(listener)
            except ValueError:  # pragma: no cover - listener not registered
                pass

    def notify(self, event: RunnerEvent) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(event)


_GLOBAL_SCHEDULER = Scheduler()


def get_scheduler() -> Scheduler:
    return _GLOBAL_SCHEDULER


def configure(config: RunnerConfig) -> None:
    _GLOBAL_SCHEDULER.configure(config)


def reset(*, cancel_futures: bool = False) -> None:
    _GLOBAL_SCHEDULER.reset(cancel_futures=cancel_futures)


def add_event_listener(listener: EventListener) -> None:
    """Register a callback invoked for every runner event."""

    _GLOBAL_SCHEDULER.add_listener(listener)


def remove_event_listener(listener: EventListener) -> None:
    """Remove a previously registered event listener."""

    _GLOBAL_SCHEDULER.remove_listener(listener)


@contextmanager
def observe_events(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.INFO,
) -> Iterator[None]:
    """Context manager that logs runner events during its scope."""

    active_logger = logger or logging.getLogger("unitask.events")

    def _listener(event: RunnerEvent) -> None:
        active_logger.log(
            level,
            "runner=%s event=%s task=%s name=%s status=%s state=%s",
            event.runner,
            event.kind,
            event.task_id,
            event.name,
            event.status.value if event.status is not None else None,
            event.state.value if event.state is not None else None,
        )

    add_event_listener(_listener)
    try:
        yield
    finally:
        remove_event_listener(_listener)
