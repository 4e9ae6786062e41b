"""Port for the in-progress conversion marker set."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class InFlightPort(Protocol):
    """Mutual exclusion for long-running conversions, keyed by string.

    While a key is in progress no second task is started for it; callers
    get the running task back and may await or abandon it.
    """

    def get(self, key: str) -> asyncio.Task[Any] | None:
        """Running task for *key*, or None when the key is idle."""
        ...

    def start(self, key: str, coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
        """Mark *key* in progress and schedule *coro*.

        The marker is cleared when the task finishes, whatever the outcome.
        """
        ...

    def __contains__(self, key: object) -> bool: ...
