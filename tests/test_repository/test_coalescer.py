"""Tests for RequestCoalescer."""

from __future__ import annotations

import asyncio

import pytest

from coinboard.repository import RequestCoalescer


class TestRequestCoalescer:
    @pytest.mark.asyncio
    async def test_single_call_returns_result(self) -> None:
        coalescer = RequestCoalescer()

        async def work():
            return 42

        assert await coalescer.run("k", work) == 42
        assert coalescer.in_flight() == 0

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_execution(self) -> None:
        coalescer = RequestCoalescer()
        calls = 0
        release = asyncio.Event()

        async def work():
            nonlocal calls
            calls += 1
            await release.wait()
            return "shared"

        tasks = [asyncio.ensure_future(coalescer.run("k", work)) for _ in range(5)]
        await asyncio.sleep(0)
        assert coalescer.in_flight() == 1
        release.set()

        assert await asyncio.gather(*tasks) == ["shared"] * 5
        assert calls == 1
        assert coalescer.in_flight() == 0

    @pytest.mark.asyncio
    async def test_different_keys_run_independently(self) -> None:
        coalescer = RequestCoalescer()
        calls: list[str] = []

        def factory(key: str):
            async def work():
                calls.append(key)
                await asyncio.sleep(0)
                return key

            return work

        results = await asyncio.gather(
            coalescer.run("a", factory("a")),
            coalescer.run("b", factory("b")),
        )
        assert results == ["a", "b"]
        assert sorted(calls) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_error_is_shared_and_key_released(self) -> None:
        coalescer = RequestCoalescer()
        release = asyncio.Event()

        async def work():
            await release.wait()
            raise RuntimeError("boom")

        tasks = [asyncio.ensure_future(coalescer.run("k", work)) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()

        results = await asyncio.gather(*tasks, return_exceptions=True)
        assert all(isinstance(r, RuntimeError) for r in results)
        assert coalescer.in_flight() == 0

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_shared_fetch(self) -> None:
        coalescer = RequestCoalescer()
        release = asyncio.Event()

        async def work():
            await release.wait()
            return "done"

        first = asyncio.ensure_future(coalescer.run("k", work))
        second = asyncio.ensure_future(coalescer.run("k", work))
        await asyncio.sleep(0)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        release.set()
        assert await second == "done"
        await asyncio.sleep(0)
        assert coalescer.in_flight() == 0

    @pytest.mark.asyncio
    async def test_new_call_after_completion_runs_again(self) -> None:
        coalescer = RequestCoalescer()
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            return calls

        assert await coalescer.run("k", work) == 1
        assert await coalescer.run("k", work) == 2
