"""
Unit tests for PeriodicTask.

Tests start/stop lifecycle, failure handling, and rescheduling.
"""

import asyncio

import pytest

from mev_dashboard.utils.scheduler import PeriodicTask


class TestPeriodicTask:
    """Tests for PeriodicTask."""

    def test_rejects_non_positive_interval(self) -> None:
        """Test that the interval must be positive."""

        async def noop() -> None:
            pass

        with pytest.raises(ValueError):
            PeriodicTask("bad", noop, 0)

    @pytest.mark.asyncio
    async def test_runs_immediately_and_repeats(self) -> None:
        """Test that the callback runs on start and then on the interval."""
        calls = 0

        async def tick() -> None:
            nonlocal calls
            calls += 1

        task = PeriodicTask("tick", tick, interval_ms=10)
        task.start()
        await asyncio.sleep(0.055)
        await task.stop()

        assert calls >= 3
        assert not task.is_running

    @pytest.mark.asyncio
    async def test_delayed_start(self) -> None:
        """Test that run_immediately=False waits one interval."""
        calls = 0

        async def tick() -> None:
            nonlocal calls
            calls += 1

        task = PeriodicTask("tick", tick, interval_ms=1000, run_immediately=False)
        task.start()
        await asyncio.sleep(0.02)

        assert calls == 0
        await task.stop()

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_schedule(self) -> None:
        """Test that a raising callback keeps being scheduled."""
        calls = 0

        async def flaky() -> None:
            nonlocal calls
            calls += 1
            raise RuntimeError("tick failed")

        task = PeriodicTask("flaky", flaky, interval_ms=10)
        task.start()
        await asyncio.sleep(0.045)

        assert task.is_running
        await task.stop()
        assert calls >= 2

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self) -> None:
        """Test that starting twice keeps one task."""

        async def noop() -> None:
            pass

        task = PeriodicTask("noop", noop, interval_ms=1000)
        first = task.start()
        second = task.start()

        assert first is second
        await task.stop()
        await task.stop()

    @pytest.mark.asyncio
    async def test_reschedule(self) -> None:
        """Test changing the interval of a running task."""

        async def noop() -> None:
            pass

        task = PeriodicTask("noop", noop, interval_ms=1000)
        task.start()

        await task.reschedule(500)

        assert task.interval_ms == 500
        assert task.is_running
        await task.stop()

        with pytest.raises(ValueError):
            await task.reschedule(-1)
