"""Market-data access built on the cache-first repository.

* :class:`MarketRepository` -- ranked market lists and price histories,
  each with its own TTL.
* :class:`FetchTopMarketsUseCase`, :class:`FetchChartUseCase`, and
  :func:`total_value` -- the operations the views need.
"""

from coinboard.market.repository import (
    CHART_KIND,
    MARKETS_KIND,
    MarketRepository,
    chart_descriptor,
    markets_descriptor,
)
from coinboard.market.usecases import FetchChartUseCase, FetchTopMarketsUseCase, total_value

__all__ = [
    "CHART_KIND",
    "FetchChartUseCase",
    "FetchTopMarketsUseCase",
    "MARKETS_KIND",
    "MarketRepository",
    "chart_descriptor",
    "markets_descriptor",
    "total_value",
]
