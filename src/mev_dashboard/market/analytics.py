"""
Market analytics over recorded price history.

Samples published price snapshots into a bounded per-token history and
derives volatility, trend, support and resistance from it, plus a
market-wide volatility index.
"""

import logging
import math
import statistics
from collections import deque
from collections.abc import Sequence
from typing import Any

from mev_dashboard.config.constants import (
    ANALYTICS_SAMPLE_INTERVAL_MS,
    MIN_VOLATILITY_SAMPLES,
    PRICE_HISTORY_SIZE,
    RESISTANCE_PERCENTILE,
    SUPPORT_PERCENTILE,
    TREND_LONG_WINDOW,
    TREND_SHORT_WINDOW,
)
from mev_dashboard.core.types import PriceSnapshot, PriceTrend, TokenAnalysis
from mev_dashboard.utils.math import is_usable_price


logger = logging.getLogger(__name__)


def price_volatility(prices: Sequence[float]) -> float:
    """
    Population standard deviation of relative step changes.

    Args:
        prices: Price series, oldest first.

    Returns:
        Volatility as a fraction, 0 for fewer than MIN_VOLATILITY_SAMPLES prices.
    """
    if len(prices) < MIN_VOLATILITY_SAMPLES:
        return 0.0
    changes = [(curr - prev) / prev for prev, curr in zip(prices, prices[1:])]
    return statistics.pstdev(changes)


def price_trend(prices: Sequence[float]) -> PriceTrend:
    """
    Trend from the short moving average against the long one.

    Series shorter than the long window are FLAT.
    """
    if len(prices) < TREND_LONG_WINDOW:
        return PriceTrend.FLAT
    short_ma = statistics.fmean(prices[-TREND_SHORT_WINDOW:])
    long_ma = statistics.fmean(prices[-TREND_LONG_WINDOW:])
    if short_ma > long_ma:
        return PriceTrend.UP
    if short_ma < long_ma:
        return PriceTrend.DOWN
    return PriceTrend.FLAT


def price_percentile(prices: Sequence[float], fraction: float) -> float:
    """
    Nearest-rank percentile of a series.

    Example:
        >>> price_percentile([5.0, 1.0, 3.0, 2.0, 4.0], 0.9)
        5.0
    """
    if not prices:
        return 0.0
    ordered = sorted(prices)
    index = min(len(ordered) - 1, math.floor(len(ordered) * fraction))
    return ordered[index]


class MarketAnalytics:
    """
    Bounded per-token price history with derived statistics.

    Snapshots arriving less than sample_interval_ms after the last
    recorded one are ignored, so the window spans
    history_size * sample_interval_ms of market time.
    """

    def __init__(
        self,
        history_size: int = PRICE_HISTORY_SIZE,
        sample_interval_ms: int = ANALYTICS_SAMPLE_INTERVAL_MS,
    ) -> None:
        if history_size <= 0:
            raise ValueError(f"history_size must be positive, got {history_size}")
        if sample_interval_ms < 0:
            raise ValueError(f"sample_interval_ms must be non-negative, got {sample_interval_ms}")
        self._history_size = history_size
        self._sample_interval_ms = sample_interval_ms
        self._histories: dict[str, deque[float]] = {}
        self._last_sample_ms: int | None = None

    def record(self, snapshot: PriceSnapshot) -> bool:
        """
        Sample a price snapshot into the history.

        Args:
            snapshot: Published price set.

        Returns:
            True if the snapshot was recorded, False if it came too soon.
        """
        if (
            self._last_sample_ms is not None
            and snapshot.timestamp_ms - self._last_sample_ms < self._sample_interval_ms
        ):
            return False

        self._last_sample_ms = snapshot.timestamp_ms
        for symbol, quote in snapshot.quotes.items():
            if not is_usable_price(quote.price):
                continue
            history = self._histories.get(symbol)
            if history is None:
                history = self._histories[symbol] = deque(maxlen=self._history_size)
            history.append(quote.price)

        logger.debug(f"Recorded price sample for {len(snapshot.quotes)} tokens")
        return True

    def analyze(self, symbol: str) -> TokenAnalysis | None:
        """Statistics for one token, None if it was never sampled."""
        history = self._histories.get(symbol)
        if not history:
            return None

        prices = list(history)
        return TokenAnalysis(
            token=symbol,
            price=prices[-1],
            samples=len(prices),
            volatility=price_volatility(prices),
            trend=price_trend(prices),
            support=price_percentile(prices, SUPPORT_PERCENTILE),
            resistance=price_percentile(prices, RESISTANCE_PERCENTILE),
        )

    def analyze_all(self) -> dict[str, TokenAnalysis]:
        """Statistics for every sampled token."""
        analyses = {}
        for symbol in self._histories:
            analysis = self.analyze(symbol)
            if analysis is not None:
                analyses[symbol] = analysis
        return analyses

    def volatility_index(self) -> float:
        """Mean volatility across sampled tokens, 0 before any sample."""
        analyses = self.analyze_all()
        if not analyses:
            return 0.0
        return statistics.fmean(a.volatility for a in analyses.values())

    def history(self, symbol: str) -> list[float]:
        """Recorded prices of a token, oldest first."""
        return list(self._histories.get(symbol, ()))

    @property
    def last_sample_ms(self) -> int | None:
        """Timestamp of the last recorded snapshot."""
        return self._last_sample_ms

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for status reporting."""
        analyses = self.analyze_all()
        volatilities = [a.volatility for a in analyses.values()]
        return {
            "tokens": {symbol: a.to_dict() for symbol, a in analyses.items()},
            "volatility_index": statistics.fmean(volatilities) if volatilities else 0.0,
            "timestamp_ms": self._last_sample_ms,
        }
