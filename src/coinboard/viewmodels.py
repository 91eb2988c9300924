"""View models publishing loading / error / data state to the CLI views.

Views never talk to repositories. They call a view model's ``load_*``
coroutine and then render whatever state it publishes: the data, a
user-facing error message, or nothing while loading.

Errors are converted to text here and nowhere else:
:class:`~coinboard.exceptions.FetchError` subclasses supply their own
``user_message``; anything else becomes ``"Unexpected error: ..."``.
"""

from __future__ import annotations

from typing import Optional

from coinboard.exceptions import CoinboardError, FetchError
from coinboard.market.usecases import FetchChartUseCase, FetchTopMarketsUseCase, total_value
from coinboard.models import MarketEntry, PricePoint


def describe_error(exc: Exception) -> str:
    """Return the message a view should show for *exc*."""
    if isinstance(exc, FetchError):
        return exc.user_message
    if isinstance(exc, CoinboardError):
        return str(exc)
    return f"Unexpected error: {exc}"


class HomeViewModel:
    """State for the ranked market list."""

    def __init__(self, use_case: FetchTopMarketsUseCase) -> None:
        self._use_case = use_case
        self.markets: list[MarketEntry] = []
        self.error: Optional[Exception] = None
        self.error_message: Optional[str] = None
        self.is_loading = False
        self.total_value = 0.0

    async def load_top_markets(
        self,
        count: int = 5,
        vs_currency: str = "usd",
        page: int = 1,
        refresh: bool = False,
    ) -> None:
        self.is_loading = True
        self.error = None
        self.error_message = None
        try:
            self.markets = await self._use_case.execute(
                count, vs_currency, page=page, refresh=refresh
            )
            self.total_value = total_value(self.markets)
        except Exception as exc:
            self.error = exc
            self.error_message = describe_error(exc)
        finally:
            self.is_loading = False


class DetailViewModel:
    """State for one asset's price chart.

    A failed load leaves :attr:`points` empty; a new load clears the previous
    error before it starts.
    """

    def __init__(self, use_case: FetchChartUseCase) -> None:
        self._use_case = use_case
        self.points: list[PricePoint] = []
        self.error: Optional[Exception] = None
        self.error_message: Optional[str] = None
        self.is_loading = False

    @property
    def prices(self) -> list[float]:
        return [point.price for point in self.points]

    async def load_chart(
        self,
        coin_id: str,
        days: int = 7,
        vs_currency: str = "usd",
        interval: Optional[str] = None,
        refresh: bool = False,
    ) -> None:
        self.is_loading = True
        self.error = None
        self.error_message = None
        try:
            self.points = await self._use_case.history(
                coin_id,
                days=days,
                vs_currency=vs_currency,
                refresh=refresh,
                interval=interval,
            )
        except Exception as exc:
            self.points = []
            self.error = exc
            self.error_message = describe_error(exc)
        finally:
            self.is_loading = False
