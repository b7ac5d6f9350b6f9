"""
Unit tests for EventBus.

Tests subscription handles, handler ordering, and error isolation.
"""

from typing import Any

import pytest

from mev_dashboard.core.event_bus import Event, EventBus, EventType


class TestEventBus:
    """Tests for EventBus."""

    @pytest.mark.asyncio
    async def test_emit_reaches_sync_and_async_handlers(self, event_bus: EventBus) -> None:
        """Test that both handler kinds receive the same payload."""
        received: list[tuple[str, Any]] = []

        def on_sync(event: Event[Any]) -> None:
            received.append(("sync", event.payload))

        async def on_async(event: Event[Any]) -> None:
            received.append(("async", event.payload))

        payload = {"SOL": 120.0}
        event_bus.subscribe(EventType.PRICES_UPDATED, on_async)
        event_bus.subscribe_sync(EventType.PRICES_UPDATED, on_sync)

        await event_bus.emit(EventType.PRICES_UPDATED, payload, source="test")

        # Sync handlers run first
        assert received == [("sync", payload), ("async", payload)]
        assert received[0][1] is received[1][1]
        assert event_bus.published_count == 1

    @pytest.mark.asyncio
    async def test_emit_stamps_event(self, event_bus: EventBus) -> None:
        """Test that emitted events carry source and timestamp."""
        events: list[Event[Any]] = []
        event_bus.subscribe_sync(EventType.GAS_UPDATED, events.append)

        await event_bus.emit(EventType.GAS_UPDATED, 25.0, source="gas_tracker")

        assert events[0].type is EventType.GAS_UPDATED
        assert events[0].source == "gas_tracker"
        assert events[0].timestamp_us > 0

    @pytest.mark.asyncio
    async def test_priority_ordering(self, event_bus: EventBus) -> None:
        """Test that higher priority handlers run first."""
        order: list[str] = []
        event_bus.subscribe_sync(EventType.TRADE_EXECUTED, lambda e: order.append("low"), priority=0)
        event_bus.subscribe_sync(EventType.TRADE_EXECUTED, lambda e: order.append("high"), priority=10)

        await event_bus.emit(EventType.TRADE_EXECUTED, None)

        assert order == ["high", "low"]

    @pytest.mark.asyncio
    async def test_subscription_cancel(self, event_bus: EventBus) -> None:
        """Test that a cancelled handler is no longer called."""
        calls: list[Event[Any]] = []
        subscription = event_bus.subscribe_sync(EventType.PRICES_UPDATED, calls.append)

        assert subscription.active
        assert subscription.cancel() is True
        assert subscription.cancel() is False
        assert not subscription.active

        await event_bus.emit(EventType.PRICES_UPDATED, None)

        assert calls == []
        assert event_bus.handler_count(EventType.PRICES_UPDATED) == 0

    @pytest.mark.asyncio
    async def test_handler_errors_are_isolated(self, event_bus: EventBus) -> None:
        """Test that a failing handler does not stop the others."""
        calls: list[str] = []

        def broken(event: Event[Any]) -> None:
            raise RuntimeError("boom")

        async def broken_async(event: Event[Any]) -> None:
            raise RuntimeError("boom")

        async def healthy(event: Event[Any]) -> None:
            calls.append("healthy")

        event_bus.subscribe_sync(EventType.OPPORTUNITIES_UPDATED, broken)
        event_bus.subscribe(EventType.OPPORTUNITIES_UPDATED, broken_async, priority=5)
        event_bus.subscribe(EventType.OPPORTUNITIES_UPDATED, healthy)

        await event_bus.emit(EventType.OPPORTUNITIES_UPDATED, None)

        assert calls == ["healthy"]

    @pytest.mark.asyncio
    async def test_handler_may_unsubscribe_itself(self, event_bus: EventBus) -> None:
        """Test that unsubscribing during dispatch is safe."""
        calls: list[int] = []
        subscriptions = []

        def once(event: Event[Any]) -> None:
            calls.append(1)
            subscriptions[0].cancel()

        subscriptions.append(event_bus.subscribe_sync(EventType.SETTINGS_CHANGED, once))

        await event_bus.emit(EventType.SETTINGS_CHANGED, None)
        await event_bus.emit(EventType.SETTINGS_CHANGED, None)

        assert calls == [1]

    def test_clear(self, event_bus: EventBus) -> None:
        """Test clearing handlers."""
        event_bus.subscribe_sync(EventType.ENGINE_STARTED, lambda e: None)
        event_bus.subscribe_sync(EventType.ENGINE_STOPPED, lambda e: None)

        event_bus.clear(EventType.ENGINE_STARTED)
        assert event_bus.handler_count(EventType.ENGINE_STARTED) == 0
        assert event_bus.handler_count(EventType.ENGINE_STOPPED) == 1

        event_bus.clear()
        assert event_bus.handler_count(EventType.ENGINE_STOPPED) == 0
