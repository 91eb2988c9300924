"""Typer application and ``coinboard`` console-script entry point.

Sub-commands live in :mod:`coinboard.commands`; this module registers them,
owns the global flags, and turns escaped errors into exit codes.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from coinboard import __version__
from coinboard.commands.cache import cache_app
from coinboard.commands.chart import chart_command
from coinboard.commands.config import config_app
from coinboard.commands.markets import markets_command
from coinboard.config import get_data_dir, resolve_config
from coinboard.exceptions import CoinboardError, ConfigError
from coinboard.exit_codes import EXIT_GENERIC_FAILURE
from coinboard.output import OutputFormat, OutputManager, configure_logging, error, set_output


app = typer.Typer(
    name="coinboard",
    help="Cryptocurrency market data with a local cache-first store.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("markets")(markets_command)
app.command("chart")(chart_command)
app.add_typer(cache_app, name="cache", help="Inspect and maintain the local cache.")
app.add_typer(config_app, name="config", help="Show and edit configuration.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"coinboard {__version__}")
        raise typer.Exit()


def _output_format(json_output: bool, plain_output: bool) -> Optional[str]:
    if json_output:
        return OutputFormat.JSON.value
    if plain_output:
        return OutputFormat.PLAIN.value
    return None


def _configured_format() -> OutputFormat:
    """``output.format`` from the config files, ``auto`` when they can't be read.

    A broken config is reported by the command that resolves it.
    """
    try:
        return OutputFormat(resolve_config().output.format)
    except (ConfigError, ValueError):
        return OutputFormat.AUTO


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="Emit JSON on stdout."),
    plain_output: bool = typer.Option(False, "--plain", help="Emit tab-separated text."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Hide status messages."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show cache and HTTP debug output."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the API base URL."
    ),
    currency: Optional[str] = typer.Option(
        None, "--currency", help="Quote currency, e.g. usd or eur."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Do not read or write the on-disk cache."
    ),
) -> None:
    """Set up output and logging, and stash config overrides in ``ctx.obj``."""
    cli_format = _output_format(json_output, plain_output)
    fmt = OutputFormat(cli_format) if cli_format else _configured_format()

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj.update(
        format=cli_format,
        base_url=base_url,
        vs_currency=currency,
        no_cache=no_cache,
        verbose=verbose,
    )


def _setup_signal_handlers() -> None:
    def _handler(signum: int, frame: Any) -> None:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: BaseException) -> Path:
    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text("".join(traceback.format_exception(exc)), encoding="utf-8")
    return log_path


def main() -> None:
    """Console-script entry point.

    A :class:`~coinboard.exceptions.CoinboardError` that escapes a command
    is printed and becomes its ``exit_code``. Anything else is written to
    ``<data dir>/logs/crash-*.log`` and exits with ``EXIT_GENERIC_FAILURE``.
    """
    _setup_signal_handlers()
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except CoinboardError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
