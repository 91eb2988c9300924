"""Tests for HomeViewModel and DetailViewModel state publication."""

from __future__ import annotations

import asyncio

import pytest

from coinboard.exceptions import (
    DecodeError,
    HTTPStatusError,
    InvalidUsageError,
    NoConnectivityError,
)
from coinboard.market import FetchChartUseCase, FetchTopMarketsUseCase
from coinboard.viewmodels import DetailViewModel, HomeViewModel, describe_error

from conftest import make_market_entries, make_price_points


class FakeTopMarkets(FetchTopMarketsUseCase):
    """Use case double with a settable outcome and call tracking."""

    def __init__(self) -> None:
        self.result = []
        self.error: Exception | None = None
        self.calls = 0
        self.release: asyncio.Event | None = None

    async def execute(self, count=5, vs_currency="usd", page=1, refresh=False):
        self.calls += 1
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result[:count]


class FakeChart(FetchChartUseCase):
    def __init__(self) -> None:
        self.result = []
        self.error: Exception | None = None
        self.calls = 0
        self.last_id: str | None = None
        self.release: asyncio.Event | None = None

    async def history(self, coin_id, days=7, vs_currency="usd", refresh=False, interval=None):
        self.calls += 1
        self.last_id = coin_id
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result


# ------------------------------------------------------------------ #
# describe_error
# ------------------------------------------------------------------ #


class TestDescribeError:
    def test_fetch_error_uses_user_message(self) -> None:
        assert describe_error(NoConnectivityError("x")) == (
            "No internet connection. Please check your network and try again."
        )

    def test_http_status_mentions_code(self) -> None:
        assert "404" in describe_error(HTTPStatusError(404))

    def test_other_coinboard_error_uses_str(self) -> None:
        assert describe_error(InvalidUsageError("days must be >= 1")) == "days must be >= 1"

    def test_unexpected_error(self) -> None:
        assert describe_error(RuntimeError("boom")) == "Unexpected error: boom"


# ------------------------------------------------------------------ #
# HomeViewModel
# ------------------------------------------------------------------ #


class TestHomeViewModel:
    def test_initial_state(self) -> None:
        vm = HomeViewModel(FakeTopMarkets())
        assert vm.markets == []
        assert vm.error_message is None
        assert vm.is_loading is False
        assert vm.total_value == 0.0

    @pytest.mark.asyncio
    async def test_success_publishes_markets_and_total(self) -> None:
        use_case = FakeTopMarkets()
        use_case.result = make_market_entries(5)
        vm = HomeViewModel(use_case)

        await vm.load_top_markets()

        assert vm.markets == use_case.result
        assert vm.total_value == sum(e.current_price for e in use_case.result)
        assert vm.error_message is None
        assert vm.is_loading is False
        assert use_case.calls == 1

    @pytest.mark.asyncio
    async def test_loading_state_during_fetch(self) -> None:
        use_case = FakeTopMarkets()
        use_case.result = make_market_entries(2)
        use_case.release = asyncio.Event()
        vm = HomeViewModel(use_case)

        task = asyncio.ensure_future(vm.load_top_markets())
        await asyncio.sleep(0)
        assert vm.is_loading is True
        assert vm.error_message is None

        use_case.release.set()
        await task
        assert vm.is_loading is False
        assert len(vm.markets) == 2

    @pytest.mark.asyncio
    async def test_network_error_publishes_message(self) -> None:
        use_case = FakeTopMarkets()
        use_case.error = NoConnectivityError("offline")
        vm = HomeViewModel(use_case)

        await vm.load_top_markets()

        assert vm.error_message == "No internet connection. Please check your network and try again."
        assert isinstance(vm.error, NoConnectivityError)
        assert vm.markets == []
        assert vm.is_loading is False

    @pytest.mark.asyncio
    async def test_error_cleared_on_new_request(self) -> None:
        use_case = FakeTopMarkets()
        use_case.error = HTTPStatusError(500)
        vm = HomeViewModel(use_case)
        await vm.load_top_markets()
        assert vm.error_message is not None

        use_case.error = None
        use_case.result = make_market_entries(3)
        await vm.load_top_markets()
        assert vm.error_message is None
        assert vm.error is None
        assert len(vm.markets) == 3

    @pytest.mark.asyncio
    async def test_empty_list_is_not_an_error(self) -> None:
        vm = HomeViewModel(FakeTopMarkets())
        await vm.load_top_markets()
        assert vm.markets == []
        assert vm.error_message is None


# ------------------------------------------------------------------ #
# DetailViewModel
# ------------------------------------------------------------------ #


class TestDetailViewModel:
    def test_initial_state(self) -> None:
        vm = DetailViewModel(FakeChart())
        assert vm.prices == []
        assert vm.is_loading is False
        assert vm.error_message is None

    @pytest.mark.asyncio
    async def test_success_updates_state(self) -> None:
        use_case = FakeChart()
        use_case.result = make_price_points([100.0, 200.0, 300.0])
        vm = DetailViewModel(use_case)

        await vm.load_chart("bitcoin")

        assert vm.prices == [100.0, 200.0, 300.0]
        assert vm.error_message is None
        assert vm.is_loading is False
        assert use_case.calls == 1
        assert use_case.last_id == "bitcoin"

    @pytest.mark.asyncio
    async def test_loading_state_during_fetch(self) -> None:
        use_case = FakeChart()
        use_case.result = make_price_points([1.0])
        use_case.release = asyncio.Event()
        vm = DetailViewModel(use_case)

        task = asyncio.ensure_future(vm.load_chart("bitcoin"))
        await asyncio.sleep(0)
        assert vm.is_loading is True

        use_case.release.set()
        await task
        assert vm.is_loading is False
        assert vm.prices == [1.0]

    @pytest.mark.asyncio
    async def test_different_ids_tracked(self) -> None:
        use_case = FakeChart()
        use_case.result = make_price_points([1.0, 2.0])
        vm = DetailViewModel(use_case)

        for index, coin_id in enumerate(["bitcoin", "ethereum", "solana"]):
            await vm.load_chart(coin_id)
            assert use_case.last_id == coin_id
            assert use_case.calls == index + 1
            assert vm.prices == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_server_error_mentions_status(self) -> None:
        use_case = FakeChart()
        use_case.error = HTTPStatusError(404)
        vm = DetailViewModel(use_case)

        await vm.load_chart("bitcoin")

        assert vm.prices == []
        assert "404" in vm.error_message
        assert vm.is_loading is False

    @pytest.mark.asyncio
    async def test_decode_error(self) -> None:
        use_case = FakeChart()
        use_case.error = DecodeError("bad body")
        vm = DetailViewModel(use_case)

        await vm.load_chart("bitcoin")

        assert vm.prices == []
        assert vm.error_message is not None

    @pytest.mark.asyncio
    async def test_error_empties_previous_prices(self) -> None:
        use_case = FakeChart()
        use_case.result = make_price_points([1.0, 2.0])
        vm = DetailViewModel(use_case)
        await vm.load_chart("bitcoin")

        use_case.error = NoConnectivityError("offline")
        await vm.load_chart("bitcoin")
        assert vm.prices == []

    @pytest.mark.asyncio
    async def test_error_cleared_on_new_request(self) -> None:
        use_case = FakeChart()
        use_case.error = NoConnectivityError("offline")
        vm = DetailViewModel(use_case)
        await vm.load_chart("bitcoin")
        assert vm.error_message is not None

        use_case.error = None
        use_case.result = make_price_points([5.0])
        await vm.load_chart("bitcoin")
        assert vm.error_message is None
        assert vm.prices == [5.0]

    @pytest.mark.asyncio
    async def test_large_dataset(self) -> None:
        use_case = FakeChart()
        use_case.result = make_price_points([50_000.0] * 1000)
        vm = DetailViewModel(use_case)

        await vm.load_chart("bitcoin")

        assert len(vm.prices) == 1000
        assert vm.error_message is None
