"""Helpers shared by the data commands."""

from __future__ import annotations

from typing import Optional

import typer

from coinboard.config import resolve_config
from coinboard.exceptions import CoinboardError
from coinboard.exit_codes import EXIT_GENERIC_FAILURE
from coinboard.models import GlobalConfig
from coinboard.output import error


def effective_config(ctx: typer.Context) -> GlobalConfig:
    """Resolve the configuration using the global flags stored in ``ctx.obj``."""
    obj = ctx.obj or {}
    return resolve_config(
        cli_base_url=obj.get("base_url"),
        cli_vs_currency=obj.get("vs_currency"),
        cli_format=obj.get("format"),
        cli_no_cache=obj.get("no_cache", False),
    )


def fail(message: Optional[str], exc: Optional[Exception]) -> None:
    """Report a view model's published error and exit with its code.

    Raises:
        typer.Exit: Always.
    """
    error(message or "Unknown error")
    code = exc.exit_code if isinstance(exc, CoinboardError) else EXIT_GENERIC_FAILURE
    raise typer.Exit(code=code)


def format_amount(value: Optional[float]) -> str:
    if value is None:
        return "-"
    if abs(value) >= 1:
        return f"{value:,.2f}"
    return f"{value:.6g}"


def format_percent(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return f"{value:+.2f}%"
