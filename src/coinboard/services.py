"""Construction of the store, client, and repositories for one CLI run.

Commands never build these objects themselves; they enter
:func:`market_services` with the resolved
:class:`~coinboard.models.GlobalConfig` and receive a ready
:class:`~coinboard.market.MarketRepository`.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from coinboard.cache import ExpiringStore
from coinboard.client import AsyncClient
from coinboard.config import get_store_dir, resolve_api_key
from coinboard.market import MarketRepository
from coinboard.models import GlobalConfig
from coinboard.output import debug
from coinboard.repository import CacheFirstRepository


def open_store(config: GlobalConfig) -> ExpiringStore:
    """Open the expiring store described by *config*.

    A disabled cache gives a memory-only store, so every command run
    starts empty and nothing reaches disk.
    """
    if not config.cache.enabled:
        debug("Cache disabled, using memory-only store")
        return ExpiringStore()
    directory = get_store_dir()
    debug(f"Cache directory: {directory}")
    return ExpiringStore(directory)


@asynccontextmanager
async def market_services(
    config: GlobalConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[MarketRepository]:
    """Yield a :class:`MarketRepository` wired to a store and an HTTP client.

    The store and client are closed when the block exits.

    Args:
        config: Effective configuration.
        transport: Optional :mod:`httpx` transport passed to the client.
    """
    api_key = resolve_api_key(config)
    with open_store(config) as store:
        async with AsyncClient(config.api, api_key=api_key, transport=transport) as client:
            repository = CacheFirstRepository(
                store, coalesce=config.cache.coalesce_requests
            )
            yield MarketRepository(repository, client, config.cache)
