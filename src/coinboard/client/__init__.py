"""HTTP transport for coinboard.

Provides :class:`AsyncClient`, a non-blocking client backed by
:class:`httpx.AsyncClient` that decodes JSON responses into typed values and
maps every failure onto the :class:`~coinboard.exceptions.FetchError`
taxonomy, plus the endpoint builders in :mod:`coinboard.client.endpoints`.

Example::

    from coinboard.client import AsyncClient, markets_endpoint

    async with AsyncClient(config.api) as client:
        ep = markets_endpoint("usd", per_page=10)
        entries = await client.get_json(ep.path, ep.params, codec)
"""

from coinboard.client.async_client import AsyncClient
from coinboard.client.endpoints import Endpoint, market_chart_endpoint, markets_endpoint

__all__ = ["AsyncClient", "Endpoint", "market_chart_endpoint", "markets_endpoint"]
