from __future__ import annotations

from collections.abc import Iterator

import pytest

from unitask import RunnerConfig, configure, reset


@pytest.fixture(autouse=True)
def restore_runtime() -> Iterator[None]:
    reset()
    configure(RunnerConfig())
    yield
    configure(RunnerConfig())
    reset()
