"""Cache-first repository -- serve fresh cached data, fetch on miss.

:class:`CacheFirstRepository` sits between use cases and the network. For
every call it derives a cache key from the
:class:`~coinboard.repository.descriptor.ResourceDescriptor`, asks the
:class:`~coinboard.cache.ExpiringStore` for a fresh value, and only on a miss
awaits the supplied fetch function. A successful fetch is written back with
the caller's TTL before it is returned.

Policy:

* A hit never calls the fetch function.
* Fetch failures propagate unchanged. They are not cached and not retried.
* An empty result (``[]``) is a value like any other and is cached.
* Write-back is best effort: if the store cannot encode or persist the
  value, the failure is logged and the fetched value is still returned.
* No lock spans check -> fetch -> write. Racing misses for the same key may
  each fetch, and the last write wins, unless ``coalesce=True``.

Store calls run in a worker thread via :func:`asyncio.to_thread` so disk
I/O does not block the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from coinboard.cache import Codec, ExpiringStore
from coinboard.exceptions import CacheError
from coinboard.repository.coalescer import RequestCoalescer
from coinboard.repository.descriptor import ResourceDescriptor, derive_key

logger = logging.getLogger(__name__)

T = TypeVar("T")

FetchFn = Callable[[], Awaitable[T]]


@dataclass
class KindStats:
    """Per-resource-kind counters."""

    hits: int = 0
    misses: int = 0
    fetch_failures: int = 0
    write_failures: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class CacheFirstRepository:
    """Implements the cache-first policy on top of an :class:`ExpiringStore`.

    Args:
        store: The injected store. Repositories never create their own, so
            tests can hand each repository an isolated memory-only store.
        coalesce: Share one in-flight fetch between concurrent misses for
            the same key.

    Usage::

        repo = CacheFirstRepository(ExpiringStore(cache_dir))
        entries = await repo.fetch(
            ResourceDescriptor.of("markets", vs_currency="usd", page=1, per_page=5),
            ttl=24 * 3600,
            fetch_fn=lambda: client.get_json("/coins/markets", params, codec),
            codec=Codec(list[MarketEntry]),
        )
    """

    def __init__(self, store: ExpiringStore, coalesce: bool = False) -> None:
        self._store = store
        self._coalescer: Optional[RequestCoalescer] = RequestCoalescer() if coalesce else None
        self._stats: dict[str, KindStats] = defaultdict(KindStats)

    @property
    def store(self) -> ExpiringStore:
        return self._store

    async def fetch(
        self,
        descriptor: ResourceDescriptor,
        ttl: float,
        fetch_fn: FetchFn[T],
        codec: Codec[T],
    ) -> T:
        """Return the value for *descriptor*, from cache when fresh.

        Args:
            descriptor: Identity of the resource.
            ttl: Lifetime in seconds for a freshly fetched value.
            fetch_fn: Zero-argument coroutine function performing the
                network call.
            codec: Adapter for encoding and decoding the value.

        Returns:
            The cached value on a hit, otherwise the value *fetch_fn*
            produced.

        Raises:
            Exception: Whatever *fetch_fn* raised, unchanged.
        """
        key = derive_key(descriptor)
        stats = self._stats[descriptor.kind]

        cached = await asyncio.to_thread(self._store.get, key, codec)
        if cached is not None:
            stats.hits += 1
            logger.debug("Cache HIT for %s (%s)", descriptor.kind, key)
            return cached

        stats.misses += 1
        logger.debug("Cache MISS for %s (%s)", descriptor.kind, key)

        if self._coalescer is not None:
            return await self._coalescer.run(
                key, lambda: self._fetch_and_store(key, descriptor, ttl, fetch_fn, codec)
            )
        return await self._fetch_and_store(key, descriptor, ttl, fetch_fn, codec)

    async def invalidate(self, descriptor: ResourceDescriptor) -> None:
        """Drop any stored value for *descriptor* so the next fetch goes remote."""
        await asyncio.to_thread(self._store.invalidate, derive_key(descriptor))

    def stats(self) -> dict[str, Any]:
        """Return hit/miss counters grouped by resource kind."""
        return {
            kind: {
                "hits": s.hits,
                "misses": s.misses,
                "hit_rate": s.hit_rate,
                "fetch_failures": s.fetch_failures,
                "write_failures": s.write_failures,
            }
            for kind, s in self._stats.items()
        }

    async def _fetch_and_store(
        self,
        key: str,
        descriptor: ResourceDescriptor,
        ttl: float,
        fetch_fn: FetchFn[T],
        codec: Codec[T],
    ) -> T:
        stats = self._stats[descriptor.kind]
        try:
            value = await fetch_fn()
        except Exception:
            stats.fetch_failures += 1
            raise

        try:
            await asyncio.to_thread(self._store.put, key, value, ttl, codec)
        except CacheError as exc:
            stats.write_failures += 1
            logger.warning("Cache write-back failed for %s: %s", key, exc)
        return value
