"""
Opportunity feed.

Runs the detection cycle on a timer: refresh prices, synthesize venue
rates, run every finder and publish one immutable snapshot per tick.
"""

import logging
from collections.abc import Sequence

from mev_dashboard.config.constants import DEFAULT_MAX_PER_BUCKET, NATIVE_TOKEN
from mev_dashboard.core.event_bus import EventBus, EventType
from mev_dashboard.core.types import (
    ComplexOpportunity,
    Opportunity,
    OpportunityKind,
    OpportunitySnapshot,
    SimpleOpportunity,
    TriangularOpportunity,
    Venue,
    VenueRate,
)
from mev_dashboard.market.price_cache import PriceCache
from mev_dashboard.strategy.base import FinderConstraints, OpportunityFinder
from mev_dashboard.strategy.rates import RateSynthesizer
from mev_dashboard.telemetry.metrics import MetricsCollector
from mev_dashboard.utils.math import is_usable_price
from mev_dashboard.utils.scheduler import PeriodicTask
from mev_dashboard.utils.time import LatencyTimer, get_timestamp_ms


logger = logging.getLogger(__name__)


class OpportunityFeed:
    """
    Periodic opportunity detection.

    Features:
    - One finder per opportunity kind, failures isolated per finder
    - Buckets sorted by profit and truncated before publishing
    - Cancelable, reschedulable timer
    """

    def __init__(
        self,
        price_cache: PriceCache,
        synthesizer: RateSynthesizer,
        venues: Sequence[Venue],
        finders: dict[OpportunityKind, OpportunityFinder],
        event_bus: EventBus | None = None,
        constraints: FinderConstraints | None = None,
        position_size: float = 1.0,
        native_token: str = NATIVE_TOKEN,
        max_per_bucket: int = DEFAULT_MAX_PER_BUCKET,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize feed.

        Args:
            price_cache: Source of prices.
            synthesizer: Venue rate synthesizer.
            venues: Venues to quote.
            finders: Finder per opportunity kind.
            event_bus: Bus to publish OPPORTUNITIES_UPDATED on.
            constraints: Initial finder constraints.
            position_size: Trade size in native token units.
            native_token: Token the position size is denominated in.
            max_per_bucket: Opportunities kept per bucket.
            metrics: Optional metrics collector.
        """
        if max_per_bucket < 1:
            raise ValueError(f"max_per_bucket must be positive, got {max_per_bucket}")

        self._price_cache = price_cache
        self._synthesizer = synthesizer
        self._venues = list(venues)
        self._finders = dict(finders)
        self._event_bus = event_bus
        self._constraints = constraints or FinderConstraints()
        self._position_size = position_size
        self._native_token = native_token
        self._max_per_bucket = max_per_bucket
        self._metrics = metrics

        self._latest = OpportunitySnapshot()
        self._task: PeriodicTask | None = None
        self._tick_count = 0

    def _notional(self) -> float:
        """Position value in the reference currency."""
        quote = self._price_cache.get(self._native_token)
        if quote is None or not is_usable_price(quote.price):
            return self._position_size
        return self._position_size * quote.price

    def _run_finder(
        self,
        kind: OpportunityKind,
        rates: list[VenueRate],
        constraints: FinderConstraints,
    ) -> list[Opportunity]:
        """Run one finder; a failure yields an empty bucket."""
        finder = self._finders.get(kind)
        if finder is None:
            return []

        try:
            found = finder.find(
                self._price_cache.snapshot(),
                rates,
                self._price_cache.tokens,
                constraints,
            )
        except Exception:
            logger.exception(f"{kind.value} finder failed, publishing an empty bucket")
            return []

        found.sort(key=lambda o: o.profit_pct, reverse=True)
        return found[: self._max_per_bucket]

    async def tick(self) -> OpportunitySnapshot:
        """
        Run one detection cycle and publish the result.

        Never raises for market conditions; empty buckets are still
        published.

        Returns:
            Published snapshot.
        """
        with LatencyTimer() as timer:
            quotes = await self._price_cache.refresh_all()
            rates = self._synthesizer.synthesize(quotes, self._venues)

            constraints = self._constraints.with_notional(self._notional())

            simple = self._run_finder(OpportunityKind.SIMPLE, rates, constraints)
            triangular = self._run_finder(OpportunityKind.TRIANGULAR, rates, constraints)
            complex_ = self._run_finder(OpportunityKind.COMPLEX, rates, constraints)

            snapshot = OpportunitySnapshot(
                simple=tuple(o for o in simple if isinstance(o, SimpleOpportunity)),
                triangular=tuple(o for o in triangular if isinstance(o, TriangularOpportunity)),
                complex=tuple(o for o in complex_ if isinstance(o, ComplexOpportunity)),
                timestamp_ms=get_timestamp_ms(),
            )

        self._latest = snapshot
        self._tick_count += 1

        if self._metrics is not None:
            self._metrics.record_tick(timer.latency_us)
            for opportunity in snapshot.all():
                self._metrics.record_opportunity(opportunity.kind, opportunity.profit_pct)

        logger.debug(
            f"Tick {self._tick_count}: {len(snapshot.simple)} simple, "
            f"{len(snapshot.triangular)} triangular, {len(snapshot.complex)} complex "
            f"in {timer.latency_us}us"
        )

        if self._event_bus is not None:
            await self._event_bus.emit(
                EventType.OPPORTUNITIES_UPDATED,
                snapshot,
                source="opportunity_feed",
            )

        return snapshot

    def start(self, interval_ms: int, run_immediately: bool = True) -> None:
        """
        Start periodic ticking.

        Args:
            interval_ms: Milliseconds between ticks.
            run_immediately: Tick once before the first interval.
        """
        if self._task is not None and self._task.is_running:
            return
        self._task = PeriodicTask(
            "opportunity_feed", self.tick, interval_ms, run_immediately=run_immediately
        )
        self._task.start()
        logger.info(f"Opportunity feed started ({interval_ms}ms interval)")

    async def stop(self) -> None:
        """Stop periodic ticking."""
        if self._task is None:
            return
        await self._task.stop()
        self._task = None
        logger.info("Opportunity feed stopped")

    async def set_interval(self, interval_ms: int) -> None:
        """
        Change the tick interval.

        Takes effect immediately when the feed is running.
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        if self._task is not None:
            await self._task.reschedule(interval_ms)

    @property
    def latest(self) -> OpportunitySnapshot:
        """Most recently published snapshot."""
        return self._latest

    @property
    def constraints(self) -> FinderConstraints:
        """Constraints applied on the next tick."""
        return self._constraints

    @constraints.setter
    def constraints(self, value: FinderConstraints) -> None:
        self._constraints = value

    @property
    def position_size(self) -> float:
        """Trade size in native token units."""
        return self._position_size

    @position_size.setter
    def position_size(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"position_size must be positive, got {value}")
        self._position_size = value

    @property
    def is_running(self) -> bool:
        """Whether the timer is active."""
        return self._task is not None and self._task.is_running

    @property
    def interval_ms(self) -> int | None:
        """Current tick interval, None when stopped."""
        return self._task.interval_ms if self._task is not None else None

    @property
    def tick_count(self) -> int:
        """Number of completed ticks."""
        return self._tick_count
