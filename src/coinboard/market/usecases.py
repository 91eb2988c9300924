"""Use cases consumed by the view models.

Each use case depends on a repository protocol rather than on
:class:`~coinboard.market.repository.MarketRepository` directly, so view
models and use cases can be tested against simple fakes.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from coinboard.models import MarketEntry, PricePoint


class MarketListSource(Protocol):
    """Anything that can return a page of ranked market entries."""

    async def top_markets(
        self,
        vs_currency: str = "usd",
        page: int = 1,
        per_page: int = 5,
        order: str = "market_cap_desc",
        refresh: bool = False,
    ) -> list[MarketEntry]:
        ...


class PriceHistorySource(Protocol):
    """Anything that can return an asset's price history."""

    async def price_history(
        self,
        coin_id: str,
        days: int = 7,
        vs_currency: str = "usd",
        interval: Optional[str] = None,
        refresh: bool = False,
    ) -> list[PricePoint]:
        ...


def total_value(entries: Iterable[MarketEntry]) -> float:
    """Sum of ``current_price`` over *entries*; missing prices count as 0."""
    return sum(entry.current_price or 0.0 for entry in entries)


class FetchTopMarketsUseCase:
    """Fetch the top *count* assets by market capitalisation."""

    def __init__(self, repository: MarketListSource) -> None:
        self._repository = repository

    async def execute(
        self,
        count: int = 5,
        vs_currency: str = "usd",
        page: int = 1,
        refresh: bool = False,
    ) -> list[MarketEntry]:
        return await self._repository.top_markets(
            vs_currency=vs_currency,
            page=page,
            per_page=count,
            refresh=refresh,
        )


class FetchChartUseCase:
    """Fetch the closing prices of one asset, oldest first."""

    def __init__(self, repository: PriceHistorySource) -> None:
        self._repository = repository

    async def execute(
        self,
        coin_id: str,
        days: int = 7,
        vs_currency: str = "usd",
        refresh: bool = False,
    ) -> list[float]:
        points = await self.history(coin_id, days, vs_currency, refresh)
        return [point.price for point in points]

    async def history(
        self,
        coin_id: str,
        days: int = 7,
        vs_currency: str = "usd",
        refresh: bool = False,
        interval: Optional[str] = None,
    ) -> list[PricePoint]:
        """Like :meth:`execute` but keeps the timestamps."""
        return await self._repository.price_history(
            coin_id,
            days=days,
            vs_currency=vs_currency,
            interval=interval,
            refresh=refresh,
        )
