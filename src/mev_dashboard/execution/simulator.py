"""
Simulated trade execution.

Turns an opportunity into a TradeOutcome without touching any chain:
validation first, then a simulated network delay and a weighted coin
flip whose odds depend on the risk profile.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from mev_dashboard.config.constants import (
    DEFAULT_EXECUTION_TIMEOUT_MS,
    DEFAULT_FAILURE_LOSS_PCT,
    DEFAULT_MAX_LATENCY_MS,
    DEFAULT_MAX_OPPORTUNITY_AGE_MS,
    DEFAULT_MIN_LATENCY_MS,
    DEFAULT_MIN_PROFIT_THRESHOLD,
    DEFAULT_PROFIT_VARIANCE,
    FAILURE_REASONS,
    REASON_BELOW_THRESHOLD,
    REASON_STALE,
    REASON_TIMEOUT,
    SUCCESS_PROBABILITY,
)
from mev_dashboard.core.event_bus import EventBus, EventType
from mev_dashboard.core.types import (
    Opportunity,
    OutcomeStatus,
    RandomSource,
    RiskProfile,
    TradeOutcome,
)
from mev_dashboard.execution.history import TradeHistory
from mev_dashboard.telemetry.metrics import MetricsCollector
from mev_dashboard.utils.time import age_ms, get_timestamp_ms


logger = logging.getLogger(__name__)


SleepFunc = Callable[[float], Awaitable[object]]


@dataclass
class SimulatorConfig:
    """Execution simulator configuration."""

    risk_profile: RiskProfile = RiskProfile.MODERATE
    min_profit_pct: float = DEFAULT_MIN_PROFIT_THRESHOLD
    max_opportunity_age_ms: int = DEFAULT_MAX_OPPORTUNITY_AGE_MS
    min_latency_ms: int = DEFAULT_MIN_LATENCY_MS
    max_latency_ms: int = DEFAULT_MAX_LATENCY_MS
    timeout_ms: int = DEFAULT_EXECUTION_TIMEOUT_MS
    profit_variance: float = DEFAULT_PROFIT_VARIANCE
    failure_loss_pct: float = DEFAULT_FAILURE_LOSS_PCT

    def __post_init__(self) -> None:
        if self.min_latency_ms > self.max_latency_ms:
            raise ValueError(
                f"min_latency_ms ({self.min_latency_ms}) exceeds max_latency_ms ({self.max_latency_ms})"
            )
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {self.timeout_ms}")

    @property
    def success_probability(self) -> float:
        """Success odds for the configured risk profile."""
        return SUCCESS_PROBABILITY[self.risk_profile]


class ExecutionSimulator:
    """
    Simulates execution of detected opportunities.

    Features:
    - Stale and below-threshold rejection before any random draw
    - Injectable sleep and clock for deterministic tests
    - Per-call timeout override
    - Every outcome recorded in history and published
    """

    def __init__(
        self,
        config: SimulatorConfig | None = None,
        rng: RandomSource | None = None,
        history: TradeHistory | None = None,
        event_bus: EventBus | None = None,
        metrics: MetricsCollector | None = None,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], int] = get_timestamp_ms,
    ) -> None:
        """
        Initialize simulator.

        Args:
            config: Simulator configuration.
            rng: Random source for latency and outcome draws.
            history: History to append outcomes to.
            event_bus: Bus to publish TRADE_EXECUTED on.
            metrics: Optional metrics collector.
            sleep: Coroutine used to wait out the simulated latency.
            clock: Millisecond clock.
        """
        self._config = config or SimulatorConfig()
        self._rng: RandomSource = rng or random.Random()
        self._history = history if history is not None else TradeHistory()
        self._event_bus = event_bus
        self._metrics = metrics
        self._sleep = sleep
        self._clock = clock

        self._total_executions = 0
        self._successful_executions = 0

    async def execute(
        self,
        opportunity: Opportunity,
        timeout_ms: int | None = None,
    ) -> TradeOutcome:
        """
        Simulate execution of an opportunity.

        Args:
            opportunity: Opportunity to execute.
            timeout_ms: Override of the configured timeout.

        Returns:
            Recorded outcome. Failures are outcomes, never exceptions.
        """
        self._total_executions += 1

        outcome = self._validate(opportunity)
        if outcome is None:
            limit_ms = timeout_ms if timeout_ms is not None else self._config.timeout_ms
            try:
                outcome = await asyncio.wait_for(
                    self._simulate(opportunity),
                    timeout=limit_ms / 1000,
                )
            except asyncio.TimeoutError:
                outcome = TradeOutcome(
                    opportunity=opportunity,
                    status=OutcomeStatus.TIMEOUT,
                    realized_pnl=0.0,
                    execution_time_ms=limit_ms,
                    timestamp_ms=self._clock(),
                    reason=REASON_TIMEOUT,
                )

        if outcome.success:
            self._successful_executions += 1

        await self._record(outcome)
        return outcome

    def _validate(self, opportunity: Opportunity) -> TradeOutcome | None:
        """Reject stale or unprofitable opportunities; uses no randomness."""
        now = self._clock()

        if age_ms(opportunity.timestamp_ms, now) > self._config.max_opportunity_age_ms:
            status, reason = OutcomeStatus.STALE_OPPORTUNITY, REASON_STALE
        elif opportunity.profit_pct < self._config.min_profit_pct:
            status, reason = OutcomeStatus.BELOW_THRESHOLD, REASON_BELOW_THRESHOLD
        else:
            return None

        return TradeOutcome(
            opportunity=opportunity,
            status=status,
            realized_pnl=0.0,
            execution_time_ms=0,
            timestamp_ms=now,
            reason=reason,
        )

    async def _simulate(self, opportunity: Opportunity) -> TradeOutcome:
        """Wait out a random latency, then flip the weighted coin."""
        config = self._config
        latency_ms = self._rng.uniform(config.min_latency_ms, config.max_latency_ms)
        await self._sleep(latency_ms / 1000)

        if self._rng.random() < config.success_probability:
            variance = self._rng.uniform(-config.profit_variance, config.profit_variance)
            return TradeOutcome(
                opportunity=opportunity,
                status=OutcomeStatus.SUCCESS,
                realized_pnl=opportunity.estimated_profit * (1.0 + variance),
                execution_time_ms=round(latency_ms),
                timestamp_ms=self._clock(),
            )

        return TradeOutcome(
            opportunity=opportunity,
            status=OutcomeStatus.SIMULATED_FAILURE,
            realized_pnl=-opportunity.notional * config.failure_loss_pct / 100.0,
            execution_time_ms=round(latency_ms),
            timestamp_ms=self._clock(),
            reason=self._rng.choice(FAILURE_REASONS),
        )

    async def _record(self, outcome: TradeOutcome) -> None:
        """Append to history, update metrics and publish."""
        self._history.append(outcome)

        if self._metrics is not None:
            self._metrics.record_outcome(outcome)

        if outcome.success:
            logger.info(
                f"Simulated trade succeeded: {outcome.opportunity.label} "
                f"PnL={outcome.realized_pnl:+.4f} in {outcome.execution_time_ms}ms"
            )
        else:
            logger.info(
                f"Simulated trade {outcome.status.value}: {outcome.opportunity.label} "
                f"({outcome.reason}) PnL={outcome.realized_pnl:+.4f}"
            )

        if self._event_bus is not None:
            await self._event_bus.emit(EventType.TRADE_EXECUTED, outcome, source="simulator")

    @property
    def config(self) -> SimulatorConfig:
        """Current configuration."""
        return self._config

    @config.setter
    def config(self, value: SimulatorConfig) -> None:
        self._config = value

    @property
    def history(self) -> TradeHistory:
        """Outcome history."""
        return self._history

    @property
    def stats(self) -> dict[str, int | float]:
        """Execution statistics."""
        return {
            "total_executions": self._total_executions,
            "successful_executions": self._successful_executions,
            "success_rate": (
                self._successful_executions / self._total_executions
                if self._total_executions > 0
                else 0.0
            ),
        }
