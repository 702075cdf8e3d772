"""
Tests for in-flight call de-duplication.
"""

import asyncio

import pytest

from user_search.infrastructure.single_flight import SingleFlight


class TestSingleFlight:
    """Test SingleFlight."""

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_result(self):
        group = SingleFlight(name="test")
        gate = asyncio.Event()
        calls = []

        async def work():
            calls.append(1)
            await gate.wait()
            return 42

        tasks = [asyncio.create_task(group.run("key", work)) for _ in range(4)]
        await asyncio.sleep(0)
        assert group.in_flight() == 1

        gate.set()
        results = await asyncio.gather(*tasks)

        assert results == [42, 42, 42, 42]
        assert len(calls) == 1
        assert group.in_flight() == 0

    @pytest.mark.asyncio
    async def test_sequential_calls_run_again(self):
        group = SingleFlight()
        calls = []

        async def work():
            calls.append(1)
            return len(calls)

        assert await group.run("key", work) == 1
        assert await group.run("key", work) == 2

    @pytest.mark.asyncio
    async def test_error_shared_and_forgotten(self):
        group = SingleFlight()

        async def fail():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await group.run("key", fail)

        assert group.in_flight() == 0

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_work(self):
        group = SingleFlight()
        gate = asyncio.Event()

        async def work():
            await gate.wait()
            return "done"

        first = asyncio.create_task(group.run("key", work))
        second = asyncio.create_task(group.run("key", work))
        await asyncio.sleep(0)

        first.cancel()
        gate.set()

        assert await second == "done"
        with pytest.raises(asyncio.CancelledError):
            await first
