from __future__ import annotations

import asyncio

from .interrupt import sleep


def simulate_blocking_io(duration: float) -> float:
    """Block for ``duration`` seconds like a slow I/O call.

    The wait honours the current task's interrupt signal and raises
    :class:`~unitask.errors.TaskInterrupted` when the runner is cancelled.
    """

    sleep(duration)
    return duration


async def simulate_async_io(duration: float) -> float:
    """Asyncio-friendly sleep that yields the carrier loop while waiting."""

    await asyncio.sleep(duration)
    return duration


def failing_io(duration: float, message: str = "simulated I/O failure") -> float:
    """Wait like :func:`simulate_blocking_io`, then raise :class:`OSError`."""

    sleep(duration)
    raise OSError(message)


__all__ = [
    "failing_io",
    "simulate_async_io",
    "simulate_blocking_io",
]
