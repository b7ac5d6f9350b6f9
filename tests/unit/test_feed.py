"""
Unit tests for OpportunityFeed.

Tests publishing, bucket ordering, failure isolation, and scheduling.
"""

import asyncio
import random
from collections.abc import Mapping, Sequence
from typing import Any

import pytest

from mev_dashboard.core.event_bus import Event, EventBus, EventType
from mev_dashboard.core.types import (
    Opportunity,
    OpportunityKind,
    PriceQuote,
    SimpleOpportunity,
    Token,
    Venue,
    VenueRate,
)
from mev_dashboard.market.price_cache import PriceCache
from mev_dashboard.strategy.base import FinderConstraints
from mev_dashboard.strategy.feed import OpportunityFeed
from mev_dashboard.strategy.rates import RateSynthesizer
from mev_dashboard.telemetry.metrics import MetricsCollector
from mev_dashboard.utils.time import get_timestamp_ms


def _simple(profit_pct: float, notional: float = 0.0) -> SimpleOpportunity:
    return SimpleOpportunity(
        from_token="SOL",
        to_token="USDC",
        buy_venue="venue_a",
        sell_venue="venue_b",
        buy_price=120.0,
        sell_price=121.0,
        profit_pct=profit_pct,
        estimated_profit=profit_pct * 10,
        timestamp_ms=get_timestamp_ms(),
        notional=notional,
    )


class StaticFinder:
    """Finder returning fixed profits and remembering its constraints."""

    def __init__(self, profits: Sequence[float]) -> None:
        self.profits = list(profits)
        self.constraints: list[FinderConstraints] = []

    def find(
        self,
        quotes: Mapping[str, PriceQuote],
        venue_rates: Sequence[VenueRate],
        tokens: Sequence[Token],
        constraints: FinderConstraints,
    ) -> list[Opportunity]:
        self.constraints.append(constraints)
        return [_simple(p, constraints.trade_notional) for p in self.profits]


class BrokenFinder:
    """Finder that always raises."""

    def find(self, *args: Any) -> list[Opportunity]:
        raise RuntimeError("finder bug")


class TestOpportunityFeed:
    """Tests for OpportunityFeed."""

    @pytest.fixture
    def cache(self, tokens: list[Token], rng: random.Random) -> PriceCache:
        """Price cache over the test universe."""
        return PriceCache(tokens, rng=rng)

    def _feed(
        self,
        cache: PriceCache,
        finders: dict[OpportunityKind, Any],
        venues: list[Venue],
        **kwargs: Any,
    ) -> OpportunityFeed:
        return OpportunityFeed(
            price_cache=cache,
            synthesizer=RateSynthesizer(jitter=0.0),
            venues=venues,
            finders=finders,
            **kwargs,
        )

    @pytest.mark.asyncio
    async def test_buckets_sorted_and_truncated(
        self,
        cache: PriceCache,
        venue_a: Venue,
        venue_b: Venue,
    ) -> None:
        """Test that buckets are sorted by descending profit and capped."""
        finder = StaticFinder([0.6, 2.0, 1.1, 0.9, 3.5, 1.4])
        feed = self._feed(cache, {OpportunityKind.SIMPLE: finder}, [venue_a, venue_b], max_per_bucket=4)

        snapshot = await feed.tick()

        profits = [o.profit_pct for o in snapshot.simple]
        assert profits == [3.5, 2.0, 1.4, 1.1]
        assert snapshot.triangular == ()
        assert snapshot.complex == ()
        assert feed.latest is snapshot
        assert feed.tick_count == 1

    @pytest.mark.asyncio
    async def test_publishes_snapshot(
        self,
        cache: PriceCache,
        venue_a: Venue,
        event_bus: EventBus,
    ) -> None:
        """Test that each tick publishes one complete snapshot, even when empty."""
        events: list[Event[Any]] = []
        event_bus.subscribe_sync(EventType.OPPORTUNITIES_UPDATED, events.append)
        feed = self._feed(cache, {OpportunityKind.SIMPLE: StaticFinder([])}, [venue_a], event_bus=event_bus)

        snapshot = await feed.tick()

        assert len(events) == 1
        assert events[0].payload is snapshot
        assert events[0].payload.is_empty
        assert events[0].source == "opportunity_feed"

    @pytest.mark.asyncio
    async def test_failing_finder_is_isolated(self, cache: PriceCache, venue_a: Venue) -> None:
        """Test that one broken finder leaves the other buckets intact."""
        feed = self._feed(
            cache,
            {
                OpportunityKind.SIMPLE: StaticFinder([1.0]),
                OpportunityKind.TRIANGULAR: BrokenFinder(),
            },
            [venue_a],
        )

        snapshot = await feed.tick()

        assert len(snapshot.simple) == 1
        assert snapshot.triangular == ()

    @pytest.mark.asyncio
    async def test_notional_from_position_size(self, cache: PriceCache, venue_a: Venue) -> None:
        """Test that trade notional is position size times the SOL price."""
        finder = StaticFinder([1.0])
        feed = self._feed(cache, {OpportunityKind.SIMPLE: finder}, [venue_a], position_size=2.0)

        await feed.tick()

        sol = cache.get("SOL")
        assert sol is not None
        assert finder.constraints[0].trade_notional == pytest.approx(2.0 * sol.price)

    @pytest.mark.asyncio
    async def test_records_metrics(self, cache: PriceCache, venue_a: Venue) -> None:
        """Test that ticks and published opportunities are counted."""
        metrics = MetricsCollector()
        feed = self._feed(cache, {OpportunityKind.SIMPLE: StaticFinder([1.0, 2.5])}, [venue_a], metrics=metrics)

        await feed.tick()

        assert metrics.stats.ticks == 1
        assert metrics.stats.opportunities_by_kind["simple"] == 2
        assert metrics.stats.best_profit_pct == 2.5

    def test_rejects_invalid_arguments(self, cache: PriceCache, venue_a: Venue) -> None:
        """Test bucket size and position size validation."""
        with pytest.raises(ValueError):
            self._feed(cache, {}, [venue_a], max_per_bucket=0)

        feed = self._feed(cache, {}, [venue_a])
        with pytest.raises(ValueError):
            feed.position_size = 0.0

    @pytest.mark.asyncio
    async def test_start_stop_and_interval(self, cache: PriceCache, venue_a: Venue) -> None:
        """Test the periodic lifecycle and live interval changes."""
        feed = self._feed(cache, {OpportunityKind.SIMPLE: StaticFinder([1.0])}, [venue_a])

        feed.start(interval_ms=10)
        await asyncio.sleep(0.05)

        assert feed.is_running
        assert feed.tick_count >= 2

        await feed.set_interval(1000)
        assert feed.interval_ms == 1000
        assert feed.is_running

        await feed.stop()
        assert not feed.is_running
        assert feed.interval_ms is None

        with pytest.raises(ValueError):
            await feed.set_interval(0)
