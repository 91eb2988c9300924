"""Cache commands -- inspect and maintain the local market-data store.

The store lives under the cache directory (see
:func:`~coinboard.config.get_store_dir`). Everything in it can be thrown
away; the next ``markets`` or ``chart`` run simply refetches.
"""

from __future__ import annotations

import typer

from coinboard.cache import ExpiringStore
from coinboard.commands._shared import fail
from coinboard.config import get_store_dir
from coinboard.exceptions import StorageError
from coinboard.output import format_response, info, success


cache_app = typer.Typer(no_args_is_help=True)


def _open() -> ExpiringStore:
    return ExpiringStore(get_store_dir())


@cache_app.command("stats")
def cache_stats() -> None:
    """Show how many entries the store holds and how many have expired.

    Example::

        coinboard cache stats
        coinboard --json cache stats
    """
    with _open() as store:
        format_response(store.stats())


@cache_app.command("clear")
def cache_clear() -> None:
    """Delete every cached entry."""
    with _open() as store:
        try:
            store.clear()
        except StorageError as exc:
            fail(str(exc), exc)
    success("Cache cleared.")


@cache_app.command("prune")
def cache_prune() -> None:
    """Delete expired entries and keep fresh ones."""
    with _open() as store:
        try:
            removed = store.prune()
        except StorageError as exc:
            fail(str(exc), exc)
    if removed:
        success(f"Removed {removed} expired entr{'y' if removed == 1 else 'ies'}.")
    else:
        info("No expired entries.")
