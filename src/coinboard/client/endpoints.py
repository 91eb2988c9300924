"""Endpoint construction for the CoinGecko v3 API.

Each builder returns an :class:`Endpoint` -- a path relative to the
configured ``base_url`` plus its query parameters -- ready to hand to
:meth:`~coinboard.client.AsyncClient.get_json`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import quote


@dataclass(frozen=True)
class Endpoint:
    """A GET request target."""

    path: str
    params: dict[str, Any] = field(default_factory=dict)


def markets_endpoint(
    vs_currency: str,
    page: int = 1,
    per_page: int = 5,
    order: str = "market_cap_desc",
) -> Endpoint:
    """``/coins/markets`` -- assets ranked by *order*, one page at a time."""
    return Endpoint(
        path="/coins/markets",
        params={
            "vs_currency": vs_currency,
            "order": order,
            "per_page": per_page,
            "page": page,
            "sparkline": "false",
        },
    )


def market_chart_endpoint(
    coin_id: str,
    vs_currency: str,
    days: int,
    interval: Optional[str] = None,
) -> Endpoint:
    """``/coins/{id}/market_chart`` -- price history over the last *days* days."""
    params: dict[str, Any] = {"vs_currency": vs_currency, "days": days}
    if interval is not None:
        params["interval"] = interval
    return Endpoint(path=f"/coins/{quote(coin_id, safe='')}/market_chart", params=params)
