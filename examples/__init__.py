"""Runnable scenarios that showcase unitask runners.

Each module exposes a ``SCENARIOS`` list and a ``run_all()`` helper so you can
render structured demonstrations without wiring additional infrastructure.
"""

from __future__ import annotations

from . import lightweight_tasks

__all__ = ["lightweight_tasks"]
