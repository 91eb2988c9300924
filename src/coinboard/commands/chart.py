"""Chart command -- price history of one asset."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from coinboard.commands._shared import effective_config, fail, format_amount, format_percent
from coinboard.market import FetchChartUseCase
from coinboard.models import PricePoint
from coinboard.output import OutputFormat, format_response, get_output, info, print_table, warning
from coinboard.services import market_services
from coinboard.viewmodels import DetailViewModel


def chart_command(
    ctx: typer.Context,
    coin_id: str = typer.Argument(help="Asset id, e.g. 'bitcoin' or 'ethereum'."),
    days: int = typer.Option(7, "--days", "-d", help="Size of the window in days."),
    interval: Optional[str] = typer.Option(
        None, "--interval", "-i", help="Sampling interval, e.g. 'daily'."
    ),
    refresh: bool = typer.Option(
        False, "--refresh", "-r", help="Ignore the cached history and refetch."
    ),
) -> None:
    """Show the price history of COIN_ID over the last --days days.

    Example::

        coinboard chart bitcoin
        coinboard chart ethereum --days 30 --interval daily
    """
    config = effective_config(ctx)
    vs_currency = config.default_vs_currency

    async def load() -> DetailViewModel:
        async with market_services(config) as repository:
            vm = DetailViewModel(FetchChartUseCase(repository))
            await vm.load_chart(
                coin_id, days=days, vs_currency=vs_currency, interval=interval, refresh=refresh
            )
            return vm

    vm = asyncio.run(load())
    if vm.error is not None:
        fail(vm.error_message, vm.error)

    if get_output().format == OutputFormat.JSON:
        format_response(
            {
                "id": coin_id,
                "vs_currency": vs_currency,
                "days": days,
                "prices": [point.model_dump(mode="json") for point in vm.points],
            }
        )
        return

    if not vm.points:
        warning(f"No price data for '{coin_id}' over the last {days} day(s).")
        return

    currency = vs_currency.upper()
    rows = [
        [point.timestamp.strftime("%Y-%m-%d %H:%M"), format_amount(point.price)]
        for point in vm.points
    ]
    print_table(
        ["Time (UTC)", f"Price ({currency})"],
        rows,
        title=f"{coin_id} -- last {days} day(s)",
    )
    info(_summary(vm.points, currency))


def _summary(points: list[PricePoint], currency: str) -> str:
    first, last = points[0].price, points[-1].price
    prices = [point.price for point in points]
    change = (last - first) / first * 100 if first else None
    return (
        f"Open {format_amount(first)}  Close {format_amount(last)}  "
        f"Low {format_amount(min(prices))}  High {format_amount(max(prices))} {currency}  "
        f"Change {format_percent(change)}"
    )
