"""
Main simulation engine orchestrator.

Owns every component of the simulation, wires them to one event bus
and manages the start/stop lifecycle and the recurring timers.
"""

import asyncio
import logging
import random
import signal
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any

from mev_dashboard.config.constants import SETTINGS_FILE_NAME
from mev_dashboard.config.settings import Settings
from mev_dashboard.core.event_bus import Event, EventBus, EventType, Subscription
from mev_dashboard.core.types import (
    Opportunity,
    OpportunityKind,
    OpportunitySnapshot,
    PriceSnapshot,
    RandomSource,
    Token,
    TradeOutcome,
    Venue,
)
from mev_dashboard.execution.history import TradeHistory
from mev_dashboard.execution.risk import RiskLimits, RiskManager
from mev_dashboard.execution.simulator import ExecutionSimulator, SimulatorConfig
from mev_dashboard.market.analytics import MarketAnalytics
from mev_dashboard.market.gas import GasTracker
from mev_dashboard.market.price_cache import PriceCache
from mev_dashboard.market.tokens import DEFAULT_TOKENS, DEFAULT_VENUES
from mev_dashboard.market.upstream import CoinGeckoClient, PriceSource
from mev_dashboard.persistence.settings_store import SettingsStore, UserSettings
from mev_dashboard.persistence.store import KeyValueStore
from mev_dashboard.persistence.trade_log import TradeLog
from mev_dashboard.strategy.base import FinderConstraints
from mev_dashboard.strategy.complex import ComplexFinder
from mev_dashboard.strategy.feed import OpportunityFeed
from mev_dashboard.strategy.rates import RateSynthesizer
from mev_dashboard.strategy.simple import SimpleFinder
from mev_dashboard.strategy.triangular import TriangularFinder
from mev_dashboard.telemetry.metrics import MetricsCollector
from mev_dashboard.utils.scheduler import PeriodicTask
from mev_dashboard.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


SleepFunc = Callable[[float], Awaitable[object]]


class SimulationEngine:
    """
    Simulation engine orchestrator.

    Manages the complete lifecycle of:
    - Price refresh, market analytics and gas tracking
    - Opportunity detection
    - Simulated execution, manual and automatic
    - User settings and trade log persistence
    - Telemetry
    """

    def __init__(
        self,
        settings: Settings,
        *,
        rng: RandomSource | None = None,
        event_bus: EventBus | None = None,
        price_source: PriceSource | None = None,
        store: KeyValueStore | None = None,
        metrics: MetricsCollector | None = None,
        tokens: Sequence[Token] = DEFAULT_TOKENS,
        venues: Sequence[Venue] = DEFAULT_VENUES,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], int] = get_timestamp_ms,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Application settings.
            rng: Shared random source (seeded from settings when omitted).
            event_bus: Event bus (created when omitted).
            price_source: Upstream prices; a CoinGecko client is created
                when omitted and upstream prices are enabled.
            store: Persistence store (file under data_dir, or memory).
            metrics: Metrics collector.
            tokens: Token universe.
            venues: Venues to simulate.
            sleep: Coroutine used for simulated execution latency.
            clock: Millisecond clock.
        """
        self._settings = settings
        self._rng: RandomSource = rng or random.Random(settings.random_seed)
        self._event_bus = event_bus or EventBus()
        self._metrics = metrics or MetricsCollector()
        self._tokens = list(tokens)
        self._venues = list(venues)
        self._clock = clock

        if price_source is None and settings.use_upstream_prices:
            price_source = CoinGeckoClient(
                base_url=settings.coingecko_url,
                timeout=settings.upstream_timeout,
            )
        self._price_source = price_source

        if store is None:
            path = settings.data_dir / SETTINGS_FILE_NAME if settings.data_dir else None
            store = KeyValueStore(path)
        self._store = store

        # Persistence
        self._settings_store = SettingsStore(self._store, UserSettings.from_settings(settings))
        self._trade_log = TradeLog(self._store, max_entries=settings.trade_log_size)
        self._user_settings = self._settings_store.load()

        # Market data
        self._price_cache = PriceCache(
            self._tokens,
            rng=self._rng,
            event_bus=self._event_bus,
            upstream=self._price_source,
            ttl_ms=settings.price_ttl_ms,
            clock=clock,
        )
        self._gas_tracker = GasTracker(rng=self._rng, event_bus=self._event_bus, clock=clock)
        self._analytics = MarketAnalytics()

        # Detection
        self._feed = OpportunityFeed(
            price_cache=self._price_cache,
            synthesizer=RateSynthesizer(self._rng, jitter=settings.rate_jitter),
            venues=self._venues,
            finders={
                OpportunityKind.SIMPLE: SimpleFinder(self._rng),
                OpportunityKind.TRIANGULAR: TriangularFinder(self._rng),
                OpportunityKind.COMPLEX: ComplexFinder(self._rng),
            },
            event_bus=self._event_bus,
            constraints=FinderConstraints(
                min_profit_pct=settings.min_profit_threshold,
                triangular_min_profit_pct=settings.triangular_profit_threshold,
                complex_min_profit_pct=settings.complex_profit_threshold,
                fee_per_trade=settings.fee_per_trade,
                venue_sample_size=settings.venue_sample_size,
                triangular_samples=settings.triangular_samples,
                complex_samples=settings.complex_samples,
            ),
            position_size=settings.max_transaction_size,
            max_per_bucket=settings.max_opportunities_per_bucket,
            metrics=self._metrics,
        )

        # Execution
        self._history = TradeHistory(max_entries=settings.history_size)
        self._simulator = ExecutionSimulator(
            config=SimulatorConfig(
                risk_profile=settings.risk_profile,
                min_profit_pct=settings.min_profit_threshold,
                max_opportunity_age_ms=settings.max_opportunity_age_ms,
                min_latency_ms=settings.min_latency_ms,
                max_latency_ms=settings.max_latency_ms,
                timeout_ms=settings.execution_timeout_ms,
                profit_variance=settings.profit_variance,
                failure_loss_pct=settings.failure_loss_pct,
            ),
            rng=self._rng,
            history=self._history,
            event_bus=self._event_bus,
            metrics=self._metrics,
            sleep=sleep,
            clock=clock,
        )
        self._risk_manager = RiskManager(
            limits=RiskLimits(
                max_concurrent_trades=settings.max_concurrent_trades,
                min_time_between_trades_ms=settings.min_time_between_trades_ms,
                stop_loss_pct=settings.stop_loss_pct,
            ),
            clock=clock,
        )
        self._trade_slots = asyncio.Semaphore(settings.max_concurrent_trades)

        # Lifecycle
        self._tick_interval_ms = settings.tick_interval_ms
        self._price_task: PeriodicTask | None = None
        self._gas_task: PeriodicTask | None = None
        self._trade_tasks: set[asyncio.Task[TradeOutcome]] = set()
        self._running = False
        self._shutdown_event = asyncio.Event()

        self._subscriptions: list[Subscription] = [
            self._event_bus.subscribe_sync(EventType.PRICES_UPDATED, self._on_prices_updated),
            self._event_bus.subscribe_sync(EventType.TRADE_EXECUTED, self._on_trade_executed),
            self._event_bus.subscribe(EventType.OPPORTUNITIES_UPDATED, self._on_opportunities),
        ]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """
        Start the simulation.

        Loads user settings, runs the first refresh and tick, then starts
        the price, feed and gas timers. Calling start() on a running
        engine does nothing.
        """
        if self._running:
            return

        logger.info("Starting simulation engine...")
        self._apply_user_settings(self._settings_store.load())
        self._running = True

        await self._price_cache.refresh_all(force=True)
        await self._gas_tracker.refresh()
        await self._feed.tick()

        self._price_task = PeriodicTask(
            "price_refresh",
            self._refresh_prices,
            self._settings.price_ttl_ms or self._tick_interval_ms,
            run_immediately=False,
        )
        self._gas_task = PeriodicTask(
            "gas_refresh",
            self._gas_tracker.refresh,
            self._settings.gas_refresh_interval_ms,
            run_immediately=False,
        )
        self._price_task.start()
        self._gas_task.start()
        self._feed.start(self._tick_interval_ms, run_immediately=False)

        logger.info(
            f"Simulation engine started: {len(self._tokens)} tokens, "
            f"{len(self._venues)} venues, {self._tick_interval_ms}ms tick"
        )
        await self._event_bus.emit(EventType.ENGINE_STARTED, self.status(), source="engine")

    async def stop(self) -> None:
        """
        Stop the simulation.

        Cancels the timers, waits for in-flight trades, closes the
        upstream client and flushes the store. Calling stop() on a
        stopped engine does nothing.
        """
        if not self._running:
            return

        logger.info("Stopping simulation engine...")
        self._running = False

        await self._feed.stop()
        for task in (self._price_task, self._gas_task):
            if task is not None:
                await task.stop()
        self._price_task = None
        self._gas_task = None

        if self._trade_tasks:
            logger.info(f"Waiting for {len(self._trade_tasks)} in-flight trades")
            await asyncio.gather(*self._trade_tasks, return_exceptions=True)

        if self._price_source is not None:
            await self._price_source.close()

        self._store.flush()

        logger.info("Simulation engine stopped")
        await self._event_bus.emit(EventType.ENGINE_STOPPED, self.status(), source="engine")

    async def run(self) -> None:
        """Start, then run until SIGINT/SIGTERM or request_shutdown()."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.request_shutdown)

        try:
            await self.start()
            await self._shutdown_event.wait()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
            await self.stop()

    def request_shutdown(self) -> None:
        """Ask run() to return."""
        logger.info("Shutdown requested")
        self._shutdown_event.set()

    async def _refresh_prices(self) -> None:
        await self._price_cache.refresh_all()

    # =========================================================================
    # Runtime Control
    # =========================================================================

    async def set_tick_interval(self, interval_ms: int) -> None:
        """
        Change the feed interval.

        Args:
            interval_ms: New interval in milliseconds.
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        self._tick_interval_ms = interval_ms
        await self._feed.set_interval(interval_ms)
        logger.info(f"Tick interval set to {interval_ms}ms")

    async def update_settings(self, **changes: Any) -> UserSettings:
        """
        Validate, persist and apply user settings changes.

        Raises:
            ValidationError: If a value is invalid; nothing is applied.

        Returns:
            Updated settings.
        """
        updated = self._settings_store.update(**changes)
        self._apply_user_settings(updated)
        await self._event_bus.emit(EventType.SETTINGS_CHANGED, updated, source="engine")
        return updated

    def _apply_user_settings(self, user: UserSettings) -> None:
        """Push user settings into the feed, simulator and risk manager."""
        self._user_settings = user
        self._feed.constraints = replace(
            self._feed.constraints,
            min_profit_pct=user.min_profit_threshold,
        )
        self._feed.position_size = user.max_transaction_size
        self._simulator.config = replace(
            self._simulator.config,
            risk_profile=user.risk_profile,
            min_profit_pct=user.min_profit_threshold,
        )
        self._risk_manager.update_limits(
            replace(self._risk_manager.limits, stop_loss_pct=user.stop_loss_pct)
        )

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute(
        self,
        opportunity: Opportunity,
        timeout_ms: int | None = None,
    ) -> TradeOutcome:
        """
        Simulate execution of an opportunity.

        At most max_concurrent_trades run at once; further calls wait
        for a free slot.

        Args:
            opportunity: Opportunity to execute.
            timeout_ms: Override of the configured timeout.

        Returns:
            Trade outcome.
        """
        async with self._trade_slots:
            self._risk_manager.record_trade_start()
            try:
                outcome = await self._simulator.execute(opportunity, timeout_ms)
            except BaseException:
                self._risk_manager.record_trade_failed()
                raise
            self._risk_manager.record_trade_complete(outcome.realized_pnl, opportunity.notional)
            return outcome

    def _spawn_trade(self, opportunity: Opportunity) -> asyncio.Task[TradeOutcome]:
        """Run execute() in the background, tracked until done."""
        task = asyncio.create_task(self.execute(opportunity), name="auto_execute")
        self._trade_tasks.add(task)
        task.add_done_callback(self._on_trade_task_done)
        return task

    def _on_trade_task_done(self, task: asyncio.Task[TradeOutcome]) -> None:
        self._trade_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Automatic execution failed: {task.exception()}")

    # =========================================================================
    # Event Handlers
    # =========================================================================

    def _on_prices_updated(self, event: Event[PriceSnapshot]) -> None:
        self._metrics.record_price_refresh()
        self._analytics.record(event.payload)

    def _on_trade_executed(self, event: Event[TradeOutcome]) -> None:
        self._trade_log.append(event.payload)

    async def _on_opportunities(self, event: Event[OpportunitySnapshot]) -> None:
        """Auto-execute the best opportunity when enabled and allowed."""
        if not self._running or not self._user_settings.auto_execute:
            return

        best = event.payload.best()
        if best is None:
            return

        check = self._risk_manager.check_trade(best)
        if not check:
            logger.debug(f"Skipping auto-execution of {best.label}: {check.reason}")
            return

        logger.info(f"Auto-executing {best.kind.value} opportunity {best.label}")
        self._spawn_trade(best)

    # =========================================================================
    # State
    # =========================================================================

    def status(self) -> dict[str, Any]:
        """
        Engine state for the dashboard and CLI.

        Returns:
            JSON-serializable status dict.
        """
        snapshot = self._feed.latest
        gas = self._gas_tracker.latest
        return {
            "running": self._running,
            "tick_interval_ms": self._tick_interval_ms,
            "tokens": len(self._tokens),
            "venues": len(self._venues),
            "prices_cached": self._price_cache.size,
            "upstream_enabled": self._price_source is not None,
            "opportunities": {
                "simple": len(snapshot.simple),
                "triangular": len(snapshot.triangular),
                "complex": len(snapshot.complex),
                "timestamp_ms": snapshot.timestamp_ms,
            },
            "gas_price": gas.price if gas is not None else None,
            "analytics": self._analytics.to_dict(),
            "in_flight_trades": len(self._trade_tasks),
            "settings": self._user_settings.model_dump(mode="json"),
            "trades": self._history.summary().to_dict(),
            "risk": self._risk_manager.to_dict(),
            "metrics": self._metrics.to_dict(),
        }

    @property
    def is_running(self) -> bool:
        """Check if engine is running."""
        return self._running

    @property
    def settings(self) -> Settings:
        """Application settings."""
        return self._settings

    @property
    def user_settings(self) -> UserSettings:
        """Effective user settings."""
        return self._user_settings

    @property
    def event_bus(self) -> EventBus:
        """Engine event bus."""
        return self._event_bus

    @property
    def metrics(self) -> MetricsCollector:
        """Get metrics collector."""
        return self._metrics

    @property
    def price_cache(self) -> PriceCache:
        """Price cache."""
        return self._price_cache

    @property
    def price_source(self) -> PriceSource | None:
        """Upstream price source, None when prices are synthetic only."""
        return self._price_source

    @property
    def gas_tracker(self) -> GasTracker:
        """Gas tracker."""
        return self._gas_tracker

    @property
    def analytics(self) -> MarketAnalytics:
        """Market analytics over sampled prices."""
        return self._analytics

    @property
    def feed(self) -> OpportunityFeed:
        """Opportunity feed."""
        return self._feed

    @property
    def simulator(self) -> ExecutionSimulator:
        """Execution simulator."""
        return self._simulator

    @property
    def history(self) -> TradeHistory:
        """In-memory outcome history."""
        return self._history

    @property
    def trade_log(self) -> TradeLog:
        """Persisted trade log."""
        return self._trade_log

    @property
    def risk_manager(self) -> RiskManager:
        """Auto-execution risk manager."""
        return self._risk_manager

    @property
    def tick_interval_ms(self) -> int:
        """Current feed interval."""
        return self._tick_interval_ms

    @property
    def tokens(self) -> list[Token]:
        """Token universe."""
        return list(self._tokens)

    @property
    def venues(self) -> list[Venue]:
        """Simulated venues."""
        return list(self._venues)


@asynccontextmanager
async def create_engine(settings: Settings, **kwargs: Any) -> AsyncIterator[SimulationEngine]:
    """
    Create and manage engine lifecycle.

    Usage:
        async with create_engine(settings) as engine:
            await engine.run()
    """
    engine = SimulationEngine(settings, **kwargs)

    try:
        await engine.start()
        yield engine
    finally:
        await engine.stop()
