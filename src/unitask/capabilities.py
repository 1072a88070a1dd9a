from __future__ import annotations

import os
import platform
import sys
import sysconfig
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RuntimeCapabilities:
    """Snapshot of the runtime features that decide carrier pool sizing."""

    python_version: tuple[int, int, int]
    implementation: str
    gil_enabled: bool
    free_threading_build: bool
    cpu_count: int
    suggested_io_workers: int

    @property
    def python_release(self) -> str:
        major, minor, micro = self.python_version
        return f"{major}.{minor}.{micro}"


def detect_capabilities() -> RuntimeCapabilities:
    version = sys.version_info
    cpu_count = os.cpu_count() or 1
    free_threading_build = bool(sysconfig.get_config_var("Py_GIL_DISABLED"))
    gil_enabled = _is_gil_enabled()

    # Blocking bodies mostly wait, so oversubscribe the cores.
    suggested_io_workers = max(4, min(32, cpu_count * 5))

    return RuntimeCapabilities(
        python_version=(version.major, version.minor, version.micro),
        implementation=platform.python_implementation(),
        gil_enabled=gil_enabled,
        free_threading_build=free_threading_build,
        cpu_count=cpu_count,
        suggested_io_workers=suggested_io_workers,
    )


def _gil_checker() -> Callable[[], bool] | None:
    """Return ``sys._is_gil_enabled`` when the interpreter provides it."""

    return getattr(sys, "_is_gil_enabled", None)


def _is_gil_enabled() -> bool:
    checker = _gil_checker()
    if checker is None:
        return True
    try:
        return bool(checker())
    except RuntimeError:
        # Some implementations may raise if called from a non-main thread.
        return True
