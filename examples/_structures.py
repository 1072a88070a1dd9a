"""Shared data structures for runnable example scenarios."""
from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T_co = TypeVar("T_co", covariant=True)


@dataclass(frozen=True)
class ExampleResult(Generic[T_co]):  # noqa: UP046
    """Output of one scenario run.

    Attributes:
        name: Title of the scenario that produced the output.
        output: Payload returned by the scenario entrypoint.
        tags: Labels copied from the scenario.
    """

    name: str
    output: T_co
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExampleScenario(Generic[T_co]):  # noqa: UP046
    """A runnable demonstration of one runner feature.

    Attributes:
        name: Title rendered in reports.
        summary: One-line description of what the scenario shows.
        entrypoint: Callable (or coroutine function) driving the runner.
        args: Positional arguments for ``entrypoint``.
        kwargs: Keyword arguments for ``entrypoint``.
        tags: Topic labels such as ``("threads", "cancel")``.
    """

    name: str
    summary: str
    entrypoint: Callable[..., T_co]
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)
    tags: tuple[str, ...] = ()

    def execute(self) -> ExampleResult[T_co]:
        result = self.entrypoint(*self.args, **self.kwargs)
        if inspect.isawaitable(result):
            result = asyncio.run(result)
        return ExampleResult(name=self.name, output=result, tags=self.tags)


def format_result(result: ExampleResult[Any]) -> str:
    tag_suffix = f" [{' '.join(result.tags)}]" if result.tags else ""
    return f"{result.name}{tag_suffix}: {result.output}"
