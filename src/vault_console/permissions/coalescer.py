"""
vault_console.permissions.coalescer

In-flight request coalescing.

Responsibilities:
- Keep at most one outstanding remote check per cache key.
- Let concurrent callers for the same key await one shared task instead of polling.

The shared work runs as its own task: a caller that is cancelled stops waiting, but the
check itself runs to completion so its result still lands in the cache.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from vault_console.observability.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


class InFlightCoalescer(Generic[T]):
    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Task[T]] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._pending

    def keys(self) -> list[str]:
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Start `factory()` for `key` unless it is already running, then await the shared
        result. Every caller sees the same value (or the same exception).
        """

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._pending[key] = task
            task.add_done_callback(lambda t, key=key: self._release(key, t))
        return await asyncio.shield(task)

    async def wait(self, key: str) -> bool:
        """
        Await the in-flight work for `key`, if any. Returns False when it failed.
        The failure itself is reported to the caller that started it.
        """

        task = self._pending.get(key)
        if task is None:
            return True
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                return False
            raise
        except Exception:
            return False
        return True

    def forget(self, key: str) -> None:
        self._pending.pop(key, None)

    def forget_all(self) -> None:
        # Outstanding tasks keep running; later callers just stop joining them.
        self._pending.clear()

    def _release(self, key: str, task: asyncio.Task[T]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        if not task.cancelled() and task.exception() is not None:
            log.debug("in_flight_failed", key=key, error=repr(task.exception()))


# --- Module Notes -----------------------------------------------------------
# Replaces a fixed-delay polling loop on a "checking" flag: waiters resume as soon as the
# owner's task finishes, with no poll latency.
