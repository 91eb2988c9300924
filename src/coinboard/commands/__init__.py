"""Built-in CLI sub-commands for coinboard.

This package groups the Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~coinboard.commands.markets` -- ranked market list.
* :mod:`~coinboard.commands.chart` -- price history of one asset.
* :mod:`~coinboard.commands.cache` -- inspect and maintain the local store.
* :mod:`~coinboard.commands.config` -- view and modify global settings.

Single commands (``markets``, ``chart``) export a plain callback function
registered directly on the root app; multi-command groups (``cache``,
``config``) export a :class:`typer.Typer` sub-application.
"""
