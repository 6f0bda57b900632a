"""Fire-and-forget follow-ups dispatched after a primary transaction commits.

Statistics and snapshot refreshes are best-effort: they run after the client's
response, and a failure is logged without touching the state change that
triggered it. Stats may therefore lag the queue briefly.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)

FollowUp = Callable[..., Awaitable[Any]]


class TaskSink(Protocol):
    """Anything that accepts deferred callables; FastAPI's BackgroundTasks fits."""

    def add_task(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        ...


async def guarded(label: str, func: FollowUp, *args: Any, **kwargs: Any) -> None:
    """Await ``func`` and log, rather than raise, any failure."""
    try:
        await func(*args, **kwargs)
    except Exception:  # noqa: BLE001 - follow-ups must never fail the request
        logger.warning("Background follow-up %s failed", label, exc_info=True)


def dispatch(sink: TaskSink, label: str, func: FollowUp, *args: Any, **kwargs: Any) -> None:
    """Queue ``func`` on ``sink`` wrapped in :func:`guarded`."""
    sink.add_task(guarded, label, func, *args, **kwargs)


class DeferredTasks:
    """In-process sink that runs collected follow-ups when awaited.

    Used where no web framework is around to run them, such as scripts and
    service-level tests.
    """

    def __init__(self) -> None:
        self._tasks: list[tuple[Callable[..., Any], tuple[Any, ...], dict[str, Any]]] = []

    def add_task(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._tasks.append((func, args, kwargs))

    def __len__(self) -> int:
        return len(self._tasks)

    async def run(self) -> int:
        """Run and drain every queued task in order; return how many ran."""
        ran = 0
        while self._tasks:
            func, args, kwargs = self._tasks.pop(0)
            result = func(*args, **kwargs)
            if isinstance(result, Awaitable):
                await result
            ran += 1
        return ran
