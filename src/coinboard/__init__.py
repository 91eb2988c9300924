"""coinboard -- Cache-first terminal client for cryptocurrency market data.

This package shows a ranked list of cryptocurrencies and per-asset price
history from the public CoinGecko API. Every read goes through a
cache-first repository: fresh data is served from a local expiring store,
and the network is only contacted on a miss or after the entry's TTL has
elapsed.

Typical usage::

    coinboard markets --count 10      # top 10 by market cap
    coinboard chart bitcoin --days 7  # one week of bitcoin prices
    coinboard cache stats             # inspect the local cache

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for configuration and market data.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    cache: Expiring key-value store (memory + disk).
    repository: Resource descriptors and the cache-first repository.
    client: Async HTTP transport and endpoint construction.
    market: Market-data repository and use cases.
    viewmodels: Loading / error / data state for the CLI views.
"""

__version__ = "0.1.0"
