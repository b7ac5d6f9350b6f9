"""
Risk management for automatic execution.

Provides pre-trade checks, concurrency and cooldown limits, and
session loss tracking against the user's stop-loss.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from mev_dashboard.config.constants import (
    DEFAULT_MAX_CONCURRENT_TRADES,
    DEFAULT_MIN_TIME_BETWEEN_TRADES_MS,
    DEFAULT_STOP_LOSS_PCT,
)
from mev_dashboard.core.types import Opportunity
from mev_dashboard.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)

HALT_STOP_LOSS = "Stop-loss reached"


@dataclass
class RiskState:
    """Current risk management state."""

    daily_pnl: float = 0.0
    daily_trades: int = 0
    open_trades: int = 0
    last_trade_time_ms: int = 0
    last_notional: float = 0.0
    current_date: date = field(default_factory=date.today)
    is_halted: bool = False
    halt_reason: str = ""

    def reset_daily(self) -> None:
        """Reset daily counters and lift a stop-loss halt."""
        self.daily_pnl = 0.0
        self.daily_trades = 0
        self.current_date = date.today()
        if self.halt_reason == HALT_STOP_LOSS:
            self.is_halted = False
            self.halt_reason = ""


@dataclass
class RiskLimits:
    """Risk limit configuration."""

    max_concurrent_trades: int = DEFAULT_MAX_CONCURRENT_TRADES
    min_time_between_trades_ms: int = DEFAULT_MIN_TIME_BETWEEN_TRADES_MS
    stop_loss_pct: float = DEFAULT_STOP_LOSS_PCT  # of position value, <= 0
    max_daily_trades: int = 10_000

    def loss_limit(self, notional: float) -> float:
        """Largest tolerated session loss for a position value."""
        return abs(self.stop_loss_pct) / 100.0 * notional


class RiskCheckResult:
    """Result of a risk check."""

    __slots__ = ("passed", "reason")

    def __init__(self, passed: bool, reason: str = "") -> None:
        self.passed = passed
        self.reason = reason

    def __bool__(self) -> bool:
        return self.passed

    def __repr__(self) -> str:
        return f"RiskCheckResult(passed={self.passed}, reason={self.reason!r})"


class RiskManager:
    """
    Gates automatic execution.

    Features:
    - Concurrent trade limit
    - Cooldown between trades
    - Session loss tracking against the stop-loss
    - Automatic halt on limit breach, manual resume
    """

    def __init__(
        self,
        limits: RiskLimits | None = None,
        clock: Callable[[], int] = get_timestamp_ms,
    ) -> None:
        """
        Initialize risk manager.

        Args:
            limits: Risk limit configuration.
            clock: Millisecond clock.
        """
        self._limits = limits or RiskLimits()
        self._state = RiskState()
        self._clock = clock

    def update_limits(self, limits: RiskLimits) -> None:
        """Replace the limits; state is kept."""
        self._limits = limits

    def _loss_limit_breached(self, notional: float) -> bool:
        limit = self._limits.loss_limit(notional)
        return limit > 0 and self._state.daily_pnl <= -limit

    def check_trade(self, opportunity: Opportunity) -> RiskCheckResult:
        """
        Perform pre-trade risk checks.

        Args:
            opportunity: Candidate opportunity.

        Returns:
            RiskCheckResult with pass/fail and reason.
        """
        if date.today() != self._state.current_date:
            self._state.reset_daily()

        if self._state.is_halted:
            return RiskCheckResult(False, f"Trading halted: {self._state.halt_reason}")

        if self._loss_limit_breached(opportunity.notional):
            self._halt(HALT_STOP_LOSS)
            return RiskCheckResult(False, HALT_STOP_LOSS)

        if self._state.daily_trades >= self._limits.max_daily_trades:
            return RiskCheckResult(False, "Daily trade limit reached")

        if self._state.open_trades >= self._limits.max_concurrent_trades:
            return RiskCheckResult(False, "Max concurrent trades reached")

        if self._state.last_trade_time_ms:
            since_last = self._clock() - self._state.last_trade_time_ms
            if since_last < self._limits.min_time_between_trades_ms:
                return RiskCheckResult(
                    False,
                    f"Cooldown: {self._limits.min_time_between_trades_ms - since_last}ms remaining",
                )

        if opportunity.estimated_profit < 0:
            return RiskCheckResult(False, "Negative expected profit")

        return RiskCheckResult(True)

    def record_trade_start(self) -> None:
        """Record that a trade has started."""
        self._state.open_trades += 1
        self._state.last_trade_time_ms = self._clock()

    def record_trade_complete(self, pnl: float, notional: float = 0.0) -> None:
        """
        Record trade completion.

        Args:
            pnl: Realized profit or loss.
            notional: Position value of the trade.
        """
        self._state.open_trades = max(0, self._state.open_trades - 1)
        self._state.daily_trades += 1
        self._state.daily_pnl += pnl
        if notional > 0:
            self._state.last_notional = notional

        if self._loss_limit_breached(self._state.last_notional):
            self._halt(HALT_STOP_LOSS)

        logger.debug(
            f"Trade complete: PnL={pnl:.4f}, Session PnL={self._state.daily_pnl:.4f}, "
            f"Trades today={self._state.daily_trades}"
        )

    def record_trade_failed(self) -> None:
        """Record a trade that ended without a result."""
        self._state.open_trades = max(0, self._state.open_trades - 1)

    def _halt(self, reason: str) -> None:
        """Halt trading with reason."""
        if self._state.is_halted and self._state.halt_reason == reason:
            return
        self._state.is_halted = True
        self._state.halt_reason = reason
        logger.warning(f"Auto-execution halted: {reason}")

    def resume(self) -> bool:
        """
        Resume trading if possible.

        Returns:
            True if trading resumed.
        """
        if self._loss_limit_breached(self._state.last_notional):
            logger.warning("Cannot resume: stop-loss still breached")
            return False

        self._state.is_halted = False
        self._state.halt_reason = ""
        logger.info("Auto-execution resumed")
        return True

    def force_halt(self, reason: str) -> None:
        """Force trading halt."""
        self._halt(f"Manual: {reason}")

    @property
    def state(self) -> RiskState:
        """Get current risk state."""
        return self._state

    @property
    def limits(self) -> RiskLimits:
        """Get risk limits."""
        return self._limits

    @property
    def is_trading_allowed(self) -> bool:
        """Check if trading is currently allowed."""
        return not self._state.is_halted

    @property
    def available_capacity(self) -> int:
        """Number of additional trades allowed right now."""
        return max(0, self._limits.max_concurrent_trades - self._state.open_trades)

    def to_dict(self) -> dict[str, float | int | bool | str]:
        """Convert state to dict for status reporting."""
        return {
            "daily_pnl": self._state.daily_pnl,
            "daily_trades": self._state.daily_trades,
            "open_trades": self._state.open_trades,
            "is_halted": self._state.is_halted,
            "halt_reason": self._state.halt_reason,
            "loss_limit": self._limits.loss_limit(self._state.last_notional),
        }
