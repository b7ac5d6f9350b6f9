"""
Metrics collection for the simulation.

Tracks tick and execution latencies, counters, and opportunity and
trade statistics with in-memory storage.
"""

import time
from collections import deque
from dataclasses import dataclass, field

from mev_dashboard.core.types import OpportunityKind, OutcomeStatus, TradeOutcome


# Latency metric names
LATENCY_TICK = "feed_tick"
LATENCY_EXECUTION = "execution"


@dataclass
class LatencyStats:
    """Aggregated latency statistics."""

    min_us: int = 0
    max_us: int = 0
    avg_us: float = 0.0
    p50_us: int = 0
    p95_us: int = 0
    p99_us: int = 0
    count: int = 0


@dataclass
class SimulationStats:
    """Opportunity and simulated trade statistics."""

    ticks: int = 0
    price_refreshes: int = 0
    opportunities_found: int = 0
    opportunities_by_kind: dict[str, int] = field(
        default_factory=lambda: {kind.value: 0 for kind in OpportunityKind}
    )
    best_profit_pct: float = 0.0
    executions_by_status: dict[str, int] = field(
        default_factory=lambda: {status.value: 0 for status in OutcomeStatus}
    )
    total_pnl: float = 0.0
    total_notional: float = 0.0

    @property
    def executions(self) -> int:
        """Number of recorded executions, including rejected ones."""
        return sum(self.executions_by_status.values())

    @property
    def executions_successful(self) -> int:
        """Number of successful simulated trades."""
        return self.executions_by_status[OutcomeStatus.SUCCESS.value]

    @property
    def execution_success_rate(self) -> float:
        """Success rate over all recorded executions."""
        total = self.executions
        return self.executions_successful / total if total > 0 else 0.0

    @property
    def roi_pct(self) -> float:
        """Return on the notional that was put at risk."""
        return self.total_pnl / self.total_notional * 100.0 if self.total_notional > 0 else 0.0


class MetricsCollector:
    """
    Collects and aggregates simulation metrics.

    Features:
    - Rolling window latency tracking
    - Counter-based event tracking
    - Opportunity and P&L accumulation
    """

    def __init__(
        self,
        latency_window_size: int = 1000,
    ) -> None:
        """
        Initialize metrics collector.

        Args:
            latency_window_size: Number of samples to keep per latency metric.
        """
        self._window_size = latency_window_size
        self._latencies: dict[str, deque[int]] = {}
        self._counters: dict[str, int] = {}
        self._stats = SimulationStats()
        self._start_time = time.time()

    def record_latency(self, name: str, latency_us: int) -> None:
        """
        Record a latency measurement.

        Args:
            name: Metric name (e.g., "feed_tick", "execution").
            latency_us: Latency in microseconds.
        """
        if name not in self._latencies:
            self._latencies[name] = deque(maxlen=self._window_size)

        self._latencies[name].append(latency_us)

    def increment_counter(self, name: str, value: int = 1) -> None:
        """Increment a counter by value."""
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        return self._counters.get(name, 0)

    def record_tick(self, latency_us: int) -> None:
        """Record a completed feed tick."""
        self._stats.ticks += 1
        self.record_latency(LATENCY_TICK, latency_us)

    def record_price_refresh(self) -> None:
        """Record a price cache refresh."""
        self._stats.price_refreshes += 1

    def record_opportunity(self, kind: OpportunityKind, profit_pct: float) -> None:
        """
        Record a published opportunity.

        Args:
            kind: Opportunity variant.
            profit_pct: Profit percentage.
        """
        self._stats.opportunities_found += 1
        self._stats.opportunities_by_kind[kind.value] += 1

        if profit_pct > self._stats.best_profit_pct:
            self._stats.best_profit_pct = profit_pct

    def record_outcome(self, outcome: TradeOutcome) -> None:
        """
        Record a simulated execution result.

        Validation rejections are counted but add no P&L or notional.
        """
        self._stats.executions_by_status[outcome.status.value] += 1
        if outcome.status.is_validation_error:
            return

        self._stats.total_pnl += outcome.realized_pnl
        self._stats.total_notional += outcome.opportunity.notional
        self.record_latency(LATENCY_EXECUTION, outcome.execution_time_ms * 1000)

    def get_latency_stats(self, name: str) -> LatencyStats:
        """
        Get latency statistics for a metric.

        Args:
            name: Metric name.

        Returns:
            LatencyStats with aggregated values.
        """
        samples = self._latencies.get(name)
        if not samples:
            return LatencyStats()

        ordered = sorted(samples)
        n = len(ordered)

        return LatencyStats(
            min_us=ordered[0],
            max_us=ordered[-1],
            avg_us=sum(ordered) / n,
            p50_us=ordered[n // 2],
            p95_us=ordered[int(n * 0.95)],
            p99_us=ordered[int(n * 0.99)] if n > 1 else ordered[-1],
            count=n,
        )

    def get_all_latency_stats(self) -> dict[str, LatencyStats]:
        """Get latency stats for all metrics."""
        return {name: self.get_latency_stats(name) for name in self._latencies}

    @property
    def stats(self) -> SimulationStats:
        """Get simulation statistics."""
        return self._stats

    @property
    def uptime_seconds(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self._start_time

    def to_dict(self) -> dict[str, object]:
        """
        Export all metrics as a dict.

        Returns:
            JSON-serializable representation of all metrics.
        """
        stats = self._stats
        return {
            "uptime_seconds": self.uptime_seconds,
            "counters": dict(self._counters),
            "latencies": {
                name: {
                    "min": s.min_us,
                    "max": s.max_us,
                    "avg": s.avg_us,
                    "p50": s.p50_us,
                    "p99": s.p99_us,
                    "count": s.count,
                }
                for name, s in self.get_all_latency_stats().items()
            },
            "simulation": {
                "ticks": stats.ticks,
                "price_refreshes": stats.price_refreshes,
                "opportunities_found": stats.opportunities_found,
                "opportunities_by_kind": dict(stats.opportunities_by_kind),
                "best_profit_pct": stats.best_profit_pct,
                "executions": stats.executions,
                "executions_by_status": dict(stats.executions_by_status),
                "success_rate": stats.execution_success_rate,
                "total_pnl": stats.total_pnl,
                "roi_pct": stats.roi_pct,
            },
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._latencies.clear()
        self._counters.clear()
        self._stats = SimulationStats()
        self._start_time = time.time()
