"""Markets command -- the ranked list of top assets by market cap.

Reads through the cache-first repository: a fresh cached page is shown
without any network call, a missing or expired page is fetched and
written back. ``--refresh`` drops the cached page first.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from coinboard.commands._shared import effective_config, fail, format_amount, format_percent
from coinboard.market import FetchTopMarketsUseCase
from coinboard.models import MarketEntry
from coinboard.output import OutputFormat, debug, format_response, get_output, print_table
from coinboard.services import market_services
from coinboard.viewmodels import HomeViewModel


def markets_command(
    ctx: typer.Context,
    count: Optional[int] = typer.Option(
        None, "--count", "-c", help="Number of assets to show (default: top_count)."
    ),
    page: int = typer.Option(1, "--page", help="Page of the ranked list."),
    refresh: bool = typer.Option(
        False, "--refresh", "-r", help="Ignore the cached list and refetch."
    ),
) -> None:
    """Show the top assets ranked by market capitalisation.

    Example::

        coinboard markets
        coinboard markets --count 20 --currency eur
        coinboard --json markets --refresh
    """
    config = effective_config(ctx)
    size = count if count is not None else config.top_count
    vs_currency = config.default_vs_currency

    async def load() -> HomeViewModel:
        async with market_services(config) as repository:
            vm = HomeViewModel(FetchTopMarketsUseCase(repository))
            await vm.load_top_markets(size, vs_currency, page=page, refresh=refresh)
            return vm

    vm = asyncio.run(load())
    if vm.error is not None:
        fail(vm.error_message, vm.error)

    debug(f"Loaded {len(vm.markets)} market entries")
    _render(vm.markets, vm.total_value, vs_currency)


def _render(entries: list[MarketEntry], total: float, vs_currency: str) -> None:
    if get_output().format == OutputFormat.JSON:
        format_response([entry.model_dump(mode="json") for entry in entries])
        return

    currency = vs_currency.upper()
    rows = [
        [
            str(entry.market_cap_rank) if entry.market_cap_rank is not None else "-",
            entry.name,
            entry.symbol.upper(),
            format_amount(entry.current_price),
            format_percent(entry.price_change_percentage_24h),
            format_amount(entry.market_cap),
        ]
        for entry in entries
    ]
    print_table(
        ["#", "Name", "Symbol", f"Price ({currency})", "24h", f"Market cap ({currency})"],
        rows,
        title="Top markets",
        caption=f"Total value: {format_amount(total)} {currency}",
    )
