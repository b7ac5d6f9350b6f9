"""
In-memory trade history.

Bounded, append-only record of simulated outcomes for the running
session.
"""

from collections import deque
from dataclasses import dataclass

from mev_dashboard.config.constants import DEFAULT_HISTORY_SIZE
from mev_dashboard.core.types import TradeOutcome


@dataclass(slots=True, frozen=True)
class TradeSummary:
    """Aggregate figures over the retained history."""

    count: int = 0
    successes: int = 0
    failures: int = 0
    rejected: int = 0
    success_rate: float = 0.0
    total_pnl: float = 0.0
    total_notional: float = 0.0
    roi_pct: float = 0.0

    def to_dict(self) -> dict[str, float | int]:
        """Convert to dict for status reporting."""
        return {
            "count": self.count,
            "successes": self.successes,
            "failures": self.failures,
            "rejected": self.rejected,
            "success_rate": self.success_rate,
            "total_pnl": self.total_pnl,
            "total_notional": self.total_notional,
            "roi_pct": self.roi_pct,
        }


class TradeHistory:
    """
    Bounded history of trade outcomes.

    Entries are never modified; once full, the oldest entry is evicted
    on append.
    """

    def __init__(self, max_entries: int = DEFAULT_HISTORY_SIZE) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self._entries: deque[TradeOutcome] = deque(maxlen=max_entries)

    def append(self, outcome: TradeOutcome) -> None:
        """Append an outcome, evicting the oldest when full."""
        self._entries.append(outcome)

    def entries(self, limit: int | None = None) -> list[TradeOutcome]:
        """
        Get outcomes, newest first.

        Args:
            limit: Maximum number of entries to return.
        """
        newest_first = list(reversed(self._entries))
        return newest_first if limit is None else newest_first[:limit]

    def summary(self) -> TradeSummary:
        """
        Summarize the retained outcomes.

        Validation rejections count toward count and rejected only; the
        success rate and ROI cover trades that were actually simulated.
        """
        successes = failures = rejected = 0
        total_pnl = total_notional = 0.0

        for outcome in self._entries:
            if outcome.status.is_validation_error:
                rejected += 1
                continue
            if outcome.success:
                successes += 1
            else:
                failures += 1
            total_pnl += outcome.realized_pnl
            total_notional += outcome.opportunity.notional

        simulated = successes + failures
        return TradeSummary(
            count=len(self._entries),
            successes=successes,
            failures=failures,
            rejected=rejected,
            success_rate=successes / simulated if simulated else 0.0,
            total_pnl=total_pnl,
            total_notional=total_notional,
            roi_pct=total_pnl / total_notional * 100.0 if total_notional > 0 else 0.0,
        )

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    @property
    def max_entries(self) -> int:
        """Capacity of the history."""
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)
