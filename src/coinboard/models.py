"""Canonical Pydantic models shared across all coinboard modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`ApiConfig`, :class:`CacheConfig`,
    :class:`OutputConfig`, and :class:`GlobalConfig`.

**Market data models** -- decoded from CoinGecko responses and stored in the
cache:
    :class:`Roi`, :class:`MarketEntry`, :class:`ChartResponse`, and
    :class:`PricePoint`.

All models use Pydantic v2. Market models ignore unknown fields so that new
keys added by the API never break decoding.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(
        default=2, description="Retries on 5xx and connection errors"
    )


class ApiConfig(BaseModel):
    """Where and how to reach the market-data API.

    Example::

        ApiConfig(
            base_url="https://pro-api.coingecko.com/api/v3",
            api_key_source="env:COINGECKO_API_KEY",
            api_key_header="x-cg-pro-api-key",
        )
    """

    base_url: str = Field(
        default="https://api.coingecko.com/api/v3",
        description="API root; endpoint paths are appended to it",
    )
    api_key_source: Optional[str] = Field(
        default=None, description="Credential source: env:VAR or file:/path"
    )
    api_key_header: str = Field(
        default="x-cg-demo-api-key", description="Header carrying the API key"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)


class CacheConfig(BaseModel):
    """Local cache settings stored in :class:`GlobalConfig`.

    When ``enabled`` is false the store runs memory-only, so nothing
    survives the process.
    """

    enabled: bool = Field(default=True, description="Persist cached data to disk")
    markets_ttl_seconds: int = Field(
        default=24 * 60 * 60, description="TTL for the ranked market list"
    )
    chart_ttl_seconds: int = Field(
        default=60 * 60, description="TTL for per-asset price history"
    )
    coalesce_requests: bool = Field(
        default=False,
        description="Share one in-flight fetch between concurrent identical misses",
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/coinboard/config.json``.

    Loaded and saved by :func:`~coinboard.config.load_global_config` and
    :func:`~coinboard.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~coinboard.config.resolve_config`
    for the full precedence chain.
    """

    default_vs_currency: str = Field(
        default="usd", description="Quote currency for prices"
    )
    top_count: int = Field(default=5, description="Entries shown by `markets`")
    api: ApiConfig = Field(default_factory=ApiConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Market data ---


class Roi(BaseModel):
    """Return-on-investment block attached to some market entries."""

    model_config = ConfigDict(extra="ignore")

    times: Optional[float] = None
    currency: Optional[str] = None
    percentage: Optional[float] = None


class MarketEntry(BaseModel):
    """One row of the ``/coins/markets`` response.

    Only ``id``, ``symbol`` and ``name`` are guaranteed; every numeric field
    may be ``null`` for thinly traded assets.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    symbol: str
    name: str
    image: Optional[str] = None
    current_price: Optional[float] = None
    market_cap: Optional[float] = None
    market_cap_rank: Optional[int] = None
    fully_diluted_valuation: Optional[float] = None
    total_volume: Optional[float] = None
    high_24h: Optional[float] = None
    low_24h: Optional[float] = None
    price_change_24h: Optional[float] = None
    price_change_percentage_24h: Optional[float] = None
    market_cap_change_24h: Optional[float] = None
    market_cap_change_percentage_24h: Optional[float] = None
    circulating_supply: Optional[float] = None
    total_supply: Optional[float] = None
    max_supply: Optional[float] = None
    ath: Optional[float] = None
    ath_change_percentage: Optional[float] = None
    ath_date: Optional[str] = None
    atl: Optional[float] = None
    atl_change_percentage: Optional[float] = None
    atl_date: Optional[str] = None
    roi: Optional[Roi] = None
    last_updated: Optional[str] = None


class ChartResponse(BaseModel):
    """Body of ``/coins/{id}/market_chart``.

    Each series is a list of ``[timestamp_ms, value]`` pairs.
    """

    model_config = ConfigDict(extra="ignore")

    prices: list[list[float]] = Field(default_factory=list)
    market_caps: list[list[float]] = Field(default_factory=list)
    total_volumes: list[list[float]] = Field(default_factory=list)

    def price_points(self) -> list[PricePoint]:
        """Convert the ``prices`` series into :class:`PricePoint` objects.

        Pairs with fewer than two values are skipped.
        """
        return [
            PricePoint(
                timestamp=datetime.fromtimestamp(pair[0] / 1000, tz=timezone.utc),
                price=pair[1],
            )
            for pair in self.prices
            if len(pair) >= 2
        ]


class PricePoint(BaseModel):
    """A single sample of an asset's price history."""

    timestamp: datetime
    price: float
