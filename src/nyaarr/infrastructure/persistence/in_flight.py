"""Process-wide registry of running conversions."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


class InFlightRegistry:
    """Implements ``InFlightPort`` with a dict of asyncio tasks.

    Add-before-start / remove-on-finish on a single event loop is enough
    to guarantee at most one running task per key. Tasks are owned by the
    registry, so a caller abandoning its wait does not cancel the work.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[Any]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, key: str) -> asyncio.Task[Any] | None:
        return self._tasks.get(key)

    def start(self, key: str, coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
        existing = self._tasks.get(key)
        if existing is not None:
            # Never run two conversions for one key.
            coro.close()
            return existing

        task = asyncio.create_task(coro, name=f"in-flight:{key}")
        self._tasks[key] = task
        task.add_done_callback(lambda t: self._release(key, t))
        log.debug("in_flight_started", key=key, in_flight=len(self._tasks))
        return task

    def _release(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        log.debug("in_flight_released", key=key, in_flight=len(self._tasks))

    async def aclose(self) -> None:
        """Cancel whatever is still running (shutdown only)."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
