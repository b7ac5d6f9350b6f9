"""
Persisted trade log.

Keeps the most recent simulated outcomes as plain records so they can
be shown again after a restart.
"""

from typing import Any

from mev_dashboard.config.constants import DEFAULT_TRADE_LOG_SIZE, STORE_KEY_TRADE_LOG
from mev_dashboard.core.types import TradeOutcome
from mev_dashboard.persistence.store import KeyValueStore


def outcome_record(outcome: TradeOutcome) -> dict[str, Any]:
    """
    Flatten an outcome into a JSON-friendly record.

    Example:
        >>> record = outcome_record(outcome)
        >>> record["status"]
        'success'
    """
    opportunity = outcome.opportunity
    return {
        "kind": opportunity.kind.value,
        "route": opportunity.label,
        "status": outcome.status.value,
        "success": outcome.success,
        "reason": outcome.reason,
        "profit_pct": opportunity.profit_pct,
        "estimated_profit": opportunity.estimated_profit,
        "realized_pnl": outcome.realized_pnl,
        "notional": opportunity.notional,
        "execution_time_ms": outcome.execution_time_ms,
        "timestamp_ms": outcome.timestamp_ms,
    }


class TradeLog:
    """
    Bounded, append-only log of outcome records.

    Stored newest first; once full, the oldest record is evicted.
    """

    def __init__(
        self,
        store: KeyValueStore,
        max_entries: int = DEFAULT_TRADE_LOG_SIZE,
        key: str = STORE_KEY_TRADE_LOG,
    ) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self._store = store
        self._max_entries = max_entries
        self._key = key

    def append(self, outcome: TradeOutcome) -> dict[str, Any]:
        """Record an outcome and persist the log."""
        record = outcome_record(outcome)
        records = [record, *self.entries()][: self._max_entries]
        self._store.set(self._key, records)
        return record

    def entries(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Records, newest first."""
        stored = self._store.get(self._key, [])
        records = [r for r in stored if isinstance(r, dict)] if isinstance(stored, list) else []
        return records if limit is None else records[:limit]

    def clear(self) -> None:
        """Remove every record."""
        self._store.delete(self._key)

    @property
    def max_entries(self) -> int:
        """Capacity of the log."""
        return self._max_entries

    def __len__(self) -> int:
        return len(self.entries())
