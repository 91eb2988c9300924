"""Request coalescing so concurrent identical misses share one upstream call.

When several tasks miss the cache for the same key at the same time, the
first one starts the fetch and the rest await the same future. Every waiter
receives the same value, or the same exception.

Coalescing is opt-in (``cache.coalesce_requests``); without it, racing misses
each call the fetch function and the last write to the store wins.

Usage::

    coalescer = RequestCoalescer()
    value = await coalescer.run("markets:ab12...", lambda: fetch_and_store())
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _consume_result(task: asyncio.Future[Any]) -> None:
    # Retrieve the outcome so a failure nobody awaited is not reported as
    # "exception was never retrieved".
    if not task.cancelled():
        task.exception()


class RequestCoalescer:
    """Tracks one in-flight task per key within a single event loop."""

    def __init__(self) -> None:
        self._in_flight: dict[str, asyncio.Future[Any]] = {}

    def in_flight(self) -> int:
        """Number of keys with a fetch currently running."""
        return len(self._in_flight)

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Join the in-flight fetch for *key*, or start one with *factory*.

        Cancelling a waiter does not cancel the shared fetch; other waiters
        still receive its result.

        Args:
            key: Cache key identifying the request.
            factory: Zero-argument callable returning the awaitable to run
                when no fetch is in flight.

        Returns:
            The shared result.

        Raises:
            Exception: Whatever the shared fetch raised, re-raised in every
                waiter.
        """
        existing = self._in_flight.get(key)
        if existing is not None:
            logger.debug("Coalescing request for %s", key)
            return await asyncio.shield(existing)

        task = asyncio.ensure_future(factory())
        task.add_done_callback(_consume_result)
        self._in_flight[key] = task
        logger.debug("Initiating fetch for %s", key)
        try:
            return await asyncio.shield(task)
        finally:
            if task.done() and self._in_flight.get(key) is task:
                del self._in_flight[key]
            elif not task.done():
                task.add_done_callback(lambda _: self._release(key, task))

    def _release(self, key: str, task: asyncio.Future[Any]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
