"""Asynchronous HTTP transport for the market-data API.

This module provides :class:`AsyncClient`, which wraps
:class:`httpx.AsyncClient` with API-key injection, retry with exponential
backoff, and translation of every failure into the
:class:`~coinboard.exceptions.FetchError` taxonomy:

=======================================  ====================================
Transport outcome                        Raised
=======================================  ====================================
Invalid URL / unsupported scheme         :class:`BadRequestError`
Non-2xx status (after retries for 5xx)   :class:`HTTPStatusError`
2xx with an empty body                   :class:`EmptyResponseError`
Body that does not decode to the type    :class:`DecodeError`
Timeout (after retries)                  :class:`TimeoutError_`
Connect / network error (after retries)  :class:`NoConnectivityError`
Any other :class:`httpx.HTTPError`       :class:`OtherFetchError`
=======================================  ====================================

:meth:`AsyncClient.get_json` is the fetch function consumed by the
cache-first repository. Timeouts and cancellation belong here, not in the
repository.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, TypeVar

import httpx
from pydantic import ValidationError

from coinboard.cache.codec import Codec
from coinboard.exceptions import (
    BadRequestError,
    DecodeError,
    EmptyResponseError,
    HTTPStatusError,
    NoConnectivityError,
    OtherFetchError,
    TimeoutError_,
)
from coinboard.models import ApiConfig
from coinboard.output import get_output

T = TypeVar("T")


class AsyncClient:
    """Asynchronous client for the market-data API.

    Must be used as an async context manager.

    Args:
        api: Base URL, API-key settings, and request settings (timeout,
            retries, SSL verify).
        api_key: Resolved API key, sent in ``api.api_key_header`` when set.
        transport: Optional :mod:`httpx` transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        async with AsyncClient(config.api) as client:
            entries = await client.get_json(
                "/coins/markets", {"vs_currency": "usd"}, Codec(list[MarketEntry])
            )
    """

    def __init__(
        self,
        api: ApiConfig,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api = api
        self._api_key = api_key
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        config = self._api.request
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers[self._api.api_key_header] = self._api_key
        self._client = httpx.AsyncClient(
            base_url=self._api.base_url.rstrip("/"),
            headers=headers,
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def get_json(
        self,
        path: str,
        params: Optional[dict[str, Any]],
        codec: Codec[T],
    ) -> T:
        """GET *path* and decode the JSON body with *codec*.

        Args:
            path: URL path appended to the configured ``base_url``.
            params: Query parameters.
            codec: Adapter describing the expected body type.

        Returns:
            The decoded body.

        Raises:
            BadRequestError: The request could not be built.
            HTTPStatusError: Non-2xx status.
            EmptyResponseError: 2xx with no body.
            DecodeError: Body does not match *codec*'s type.
            TimeoutError_: Timed out after all retries.
            NoConnectivityError: Network failure after all retries.
            OtherFetchError: Any other transport failure.
        """
        response = await self._execute_with_retry(path, dict(params or {}))
        self._map_response_error(response)

        if not response.content or not response.content.strip():
            raise EmptyResponseError(f"Empty response body from {path}")

        try:
            return codec.decode(response.content)
        except ValidationError as exc:
            raise DecodeError(f"Unexpected response shape from {path}: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _execute_with_retry(self, path: str, params: dict[str, Any]) -> httpx.Response:
        """Send the GET with exponential-backoff retry.

        Retries on 5xx status codes and connection / timeout errors up to
        ``max_retries`` times using :func:`asyncio.sleep` between attempts.
        The delay doubles each attempt: 1 s, 2 s, 4 s, ...
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        max_retries = self._api.request.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            try:
                response = await self._client.get(path, params=params)
            except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
                raise BadRequestError(f"Invalid request for {path}: {exc}") from exc
            except httpx.TimeoutException as exc:
                if attempt < max_retries:
                    await self._backoff(attempt, max_retries, f"Timeout: {exc}")
                    continue
                raise TimeoutError_(
                    f"Request to {path} timed out after {max_retries + 1} attempts"
                ) from exc
            except (httpx.ConnectError, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    await self._backoff(attempt, max_retries, f"Connection error: {exc}")
                    continue
                raise NoConnectivityError(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc
            except httpx.HTTPError as exc:
                raise OtherFetchError(f"Request to {path} failed: {exc}", cause=exc) from exc

            if response.status_code >= 500 and attempt < max_retries:
                await self._backoff(attempt, max_retries, f"Server error {response.status_code}")
                continue

            output.debug(f"GET {path} -> {response.status_code}")
            return response

        raise OtherFetchError(f"Request to {path} failed after all retries")  # pragma: no cover

    async def _backoff(self, attempt: int, max_retries: int, reason: str) -> None:
        delay = 2 ** attempt
        get_output().debug(
            f"{reason}, retrying in {delay}s (attempt {attempt + 1}/{max_retries})"
        )
        await asyncio.sleep(delay)

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise :class:`HTTPStatusError` for any non-2xx status."""
        status = response.status_code
        if 200 <= status < 300:
            return

        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = detail.get("error") or detail.get("message") or detail.get("status") or ""
                if isinstance(msg, dict):
                    msg = msg.get("error_message") or ""
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        raise HTTPStatusError(status, str(msg))
