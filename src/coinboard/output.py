"""Terminal output for coinboard.

Market tables, price history and JSON documents are the only things written
to **stdout**, so ``coinboard --json markets | jq`` always sees a clean
stream. Status lines, warnings, errors and log records go to **stderr**.

Rich styling is used when stdout is an interactive terminal and colour is
allowed (``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` all turn it off);
otherwise output degrades to tab-separated plain text.

:class:`OutputManager` holds the preferences and the two consoles. The CLI
callback builds one and installs it with :func:`set_output`; the module-level
functions (:func:`info`, :func:`warning`, :func:`print_table`, ...) forward to
that global instance. :func:`configure_logging` sends ``coinboard.*`` log
records to the same stderr console.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, NamedTuple, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table


class OutputFormat(str, Enum):
    """Supported output formats.

    ``AUTO`` becomes ``RICH`` on a colour-capable TTY and ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class _Level(NamedTuple):
    prefix: str
    style: str
    quiet_hides: bool
    verbose_only: bool = False
    whole_line: bool = False


_LEVELS: dict[str, _Level] = {
    "info": _Level("", "", quiet_hides=True),
    "success": _Level("", "green", quiet_hides=True, whole_line=True),
    "warning": _Level("Warning: ", "yellow", quiet_hides=False),
    "error": _Level("Error: ", "bold red", quiet_hides=False),
    "debug": _Level("[debug] ", "dim", quiet_hides=False, verbose_only=True, whole_line=True),
}


class OutputManager:
    """Routes data to stdout and diagnostics to stderr in the active format.

    Args:
        format: Desired output format. ``AUTO`` resolves from the terminal.
        no_color: Disable colour and Rich markup.
        quiet: Hide info and success messages. Warnings and errors still show.
        verbose: Show debug messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            rich_ok = _is_tty() and not self._no_color
            self._format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def stderr_console(self) -> Console:
        """The stderr console, shared with the log handler."""
        return self._stderr

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def format_response(self, data: Any) -> None:
        """Write a dict or list document to stdout.

        JSON mode dumps it as is. Plain mode prints a dict as ``key<TAB>value``
        lines and a list of dicts as one tab-separated row per record. Rich
        mode renders both shapes as tables.
        """
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        elif self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self.print_data(line)
        elif isinstance(data, dict):
            table = Table(show_header=False, box=None, pad_edge=False)
            table.add_column(style="bold")
            table.add_column()
            for key, value in data.items():
                table.add_row(str(key), _cell(value))
            self._stdout.print(table)
        elif isinstance(data, list) and data and all(isinstance(d, dict) for d in data):
            headers = list(data[0].keys())
            self._rich_table(headers, [[_cell(d.get(h)) for h in headers] for d in data])
        else:
            self._stdout.print(data if isinstance(data, str) else _cell(data))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
        caption: Optional[str] = None,
    ) -> None:
        """Write rows to stdout.

        JSON mode emits an array of objects keyed by header. Plain mode emits
        a header line plus one line per row, tab-separated, with no title or
        caption.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
        else:
            self._rich_table(headers, rows, title=title, caption=caption)

    def _rich_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
        caption: Optional[str] = None,
    ) -> None:
        table = Table(title=title, caption=caption, header_style="bold cyan")
        for header in headers:
            justify = "left" if header in ("Name", "Symbol", "Time (UTC)") else "right"
            table.add_column(header, justify=justify)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def _emit(self, level: str, message: str) -> None:
        spec = _LEVELS[level]
        if spec.verbose_only and not self._verbose:
            return
        if spec.quiet_hides and self._quiet:
            return
        if self._no_color:
            print(f"{spec.prefix}{message}", file=sys.stderr, flush=True)
        elif not spec.style:
            self._stderr.print(escape(message))
        elif spec.whole_line:
            self._stderr.print(f"[{spec.style}]{escape(spec.prefix + message)}[/{spec.style}]")
        else:
            label = escape(spec.prefix.rstrip())
            self._stderr.print(f"[{spec.style}]{label}[/{spec.style}] {escape(message)}")

    def info(self, message: str) -> None:
        self._emit("info", message)

    def success(self, message: str) -> None:
        self._emit("success", message)

    def warning(self, message: str) -> None:
        self._emit("warning", message)

    def error(self, message: str) -> None:
        self._emit("error", message)

    def debug(self, message: str) -> None:
        self._emit("debug", message)


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def _plain_lines(data: Any) -> list[str]:
    if isinstance(data, dict):
        return [f"{key}\t{value}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to any value or ``TERM`` is ``dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


def configure_logging(output: OutputManager) -> None:
    """Send ``coinboard.*`` log records to the stderr console of *output*.

    The level is DEBUG when the manager is verbose and WARNING otherwise.
    Calling it again replaces the previously installed handler.
    """
    logger = logging.getLogger("coinboard")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=output.stderr_console,
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if output.is_verbose else logging.WARNING)
    logger.propagate = False


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the global instance; the next :func:`get_output` builds a fresh one."""
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
    caption: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title, caption)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
