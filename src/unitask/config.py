from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(slots=True)
class RunnerConfig:
    """User-tunable settings that shape how runners schedule tasks.

    The defaults let the scheduler size the carrier pool from runtime
    capabilities while still allowing call sites to pin limits.
    """

    max_workers: int | None = None
    max_concurrency: int | None = None
    task_timeout: float | None = None
    name_prefix: str = "worker-"
    loop_name: str = "unitask-carrier"

    @classmethod
    def from_env(cls) -> RunnerConfig:
        """Load overrides from environment variables.

        Supported variables (all optional):

        ``UNITASK_MAX_WORKERS``
            Integer size of the thread pool blocking task bodies run on.
        ``UNITASK_MAX_CONCURRENCY``
            Integer cap on task bodies running at the same time per runner.
        ``UNITASK_TASK_TIMEOUT``
            Float default timeout (seconds) applied to every task.
        ``UNITASK_NAME_PREFIX``
            Prefix for generated task names.
        ``UNITASK_LOOP_NAME``
            Name given to the carrier event loop thread.
        """

        def _parse_int(value: str | None) -> int | None:
            if value is None:
                return None
            try:
                parsed = int(value)
            except ValueError:
                return None
            return parsed if parsed > 0 else None

        def _parse_float(value: str | None) -> float | None:
            if value is None:
                return None
            try:
                parsed = float(value)
            except ValueError:
                return None
            return parsed if parsed > 0 else None

        env = os.environ

        name_prefix = env.get("UNITASK_NAME_PREFIX", "").strip() or "worker-"
        loop_name = env.get("UNITASK_LOOP_NAME", "").strip() or "unitask-carrier"

        return cls(
            max_workers=_parse_int(env.get("UNITASK_MAX_WORKERS")),
            max_concurrency=_parse_int(env.get("UNITASK_MAX_CONCURRENCY")),
            task_timeout=_parse_float(env.get("UNITASK_TASK_TIMEOUT")),
            name_prefix=name_prefix,
            loop_name=loop_name,
        )
