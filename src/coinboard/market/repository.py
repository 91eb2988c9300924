"""Market-data repository -- the app's two cached resource kinds.

:class:`MarketRepository` turns domain requests into
:class:`~coinboard.repository.ResourceDescriptor` objects, picks the TTL for
each resource kind from :class:`~coinboard.models.CacheConfig`, and hands a
fetch function built on :class:`~coinboard.client.AsyncClient` to the
:class:`~coinboard.repository.CacheFirstRepository`.

Resource kinds:

* ``markets`` -- one page of the ranked market list
  (``cache.markets_ttl_seconds``, default 24 h).
* ``chart`` -- price history for one asset over a day window
  (``cache.chart_ttl_seconds``, default 1 h).

Arguments are normalized before the descriptor is built, so ``" Bitcoin "`` and
``"bitcoin"`` share a cache entry. Tickers are not mapped to ids.
"""

from __future__ import annotations

from typing import Optional

from coinboard.cache import Codec
from coinboard.client import AsyncClient, market_chart_endpoint, markets_endpoint
from coinboard.exceptions import InvalidUsageError
from coinboard.models import CacheConfig, ChartResponse, MarketEntry, PricePoint
from coinboard.repository import CacheFirstRepository, ResourceDescriptor

MARKETS_KIND = "markets"
CHART_KIND = "chart"

MAX_PER_PAGE = 250

MARKETS_CODEC: Codec[list[MarketEntry]] = Codec(list[MarketEntry])
CHART_RESPONSE_CODEC: Codec[ChartResponse] = Codec(ChartResponse)
PRICE_POINTS_CODEC: Codec[list[PricePoint]] = Codec(list[PricePoint])


def _normalize_token(value: str, name: str) -> str:
    token = value.strip().lower()
    if not token:
        raise InvalidUsageError(f"{name} must not be empty")
    return token


def markets_descriptor(
    vs_currency: str,
    page: int,
    per_page: int,
    order: str = "market_cap_desc",
) -> ResourceDescriptor:
    """Descriptor for one page of the ranked market list."""
    return ResourceDescriptor.of(
        MARKETS_KIND,
        vs_currency=_normalize_token(vs_currency, "vs_currency"),
        page=page,
        per_page=per_page,
        order=_normalize_token(order, "order"),
    )


def chart_descriptor(
    coin_id: str,
    days: int,
    vs_currency: str,
    interval: Optional[str] = None,
) -> ResourceDescriptor:
    """Descriptor for the price history of *coin_id* over *days* days."""
    return ResourceDescriptor.of(
        CHART_KIND,
        id=_normalize_token(coin_id, "coin id"),
        days=days,
        vs_currency=_normalize_token(vs_currency, "vs_currency"),
        interval=_normalize_token(interval, "interval") if interval is not None else None,
    )


class MarketRepository:
    """Cache-first access to market lists and price histories.

    Args:
        repository: The shared cache-first repository.
        client: An entered :class:`AsyncClient`.
        cache_config: Supplies the per-kind TTLs.
    """

    def __init__(
        self,
        repository: CacheFirstRepository,
        client: AsyncClient,
        cache_config: Optional[CacheConfig] = None,
    ) -> None:
        self._repository = repository
        self._client = client
        self._config = cache_config or CacheConfig()

    async def top_markets(
        self,
        vs_currency: str = "usd",
        page: int = 1,
        per_page: int = 5,
        order: str = "market_cap_desc",
        refresh: bool = False,
    ) -> list[MarketEntry]:
        """Return one page of assets ranked by *order*.

        Args:
            vs_currency: Quote currency (``usd``, ``eur``, ...).
            page: 1-based page number.
            per_page: Page size, 1 to 250.
            order: CoinGecko sort order.
            refresh: Drop any cached copy first.

        Raises:
            InvalidUsageError: For out-of-range arguments.
            FetchError: Propagated from the transport on a miss.
        """
        if page < 1:
            raise InvalidUsageError(f"page must be >= 1, got {page}")
        if not 1 <= per_page <= MAX_PER_PAGE:
            raise InvalidUsageError(f"per_page must be between 1 and {MAX_PER_PAGE}, got {per_page}")

        descriptor = markets_descriptor(vs_currency, page, per_page, order)
        endpoint = markets_endpoint(
            descriptor.get("vs_currency"),
            page=page,
            per_page=per_page,
            order=descriptor.get("order"),
        )
        if refresh:
            await self._repository.invalidate(descriptor)

        async def fetch() -> list[MarketEntry]:
            return await self._client.get_json(endpoint.path, endpoint.params, MARKETS_CODEC)

        return await self._repository.fetch(
            descriptor,
            ttl=self._config.markets_ttl_seconds,
            fetch_fn=fetch,
            codec=MARKETS_CODEC,
        )

    async def price_history(
        self,
        coin_id: str,
        days: int = 7,
        vs_currency: str = "usd",
        interval: Optional[str] = None,
        refresh: bool = False,
    ) -> list[PricePoint]:
        """Return the price history of *coin_id* over the last *days* days.

        Args:
            coin_id: CoinGecko asset id (``bitcoin``, ``ethereum``, ...).
            days: Size of the window in days, at least 1.
            vs_currency: Quote currency.
            interval: Optional sampling interval (``daily``).
            refresh: Drop any cached copy first.

        Raises:
            InvalidUsageError: For an empty id or ``days < 1``.
            FetchError: Propagated from the transport on a miss.
        """
        if days < 1:
            raise InvalidUsageError(f"days must be >= 1, got {days}")

        descriptor = chart_descriptor(coin_id, days, vs_currency, interval)
        endpoint = market_chart_endpoint(
            descriptor.get("id"),
            vs_currency=descriptor.get("vs_currency"),
            days=days,
            interval=descriptor.get("interval"),
        )
        if refresh:
            await self._repository.invalidate(descriptor)

        async def fetch() -> list[PricePoint]:
            chart = await self._client.get_json(endpoint.path, endpoint.params, CHART_RESPONSE_CODEC)
            return chart.price_points()

        return await self._repository.fetch(
            descriptor,
            ttl=self._config.chart_ttl_seconds,
            fetch_fn=fetch,
            codec=PRICE_POINTS_CODEC,
        )
