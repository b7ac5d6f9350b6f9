"""
Simulated network fee tracker.

Produces a slowly oscillating gas price with noise, keeps a bounded
history and classifies congestion against the rolling average.
"""

import logging
import math
import random
from collections import deque
from collections.abc import Callable

from mev_dashboard.config.constants import (
    GAS_AMPLITUDE,
    GAS_BASE_PRICE,
    GAS_HIGH_RATIO,
    GAS_HISTORY_SIZE,
    GAS_LOW_RATIO,
    GAS_MIN_PRICE,
    GAS_NOISE,
)
from mev_dashboard.core.event_bus import EventBus, EventType
from mev_dashboard.core.types import CongestionLevel, GasStatus, RandomSource
from mev_dashboard.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)

# Recommended price multiplier per congestion level
RECOMMENDATION_FACTOR = {
    CongestionLevel.LOW: 0.9,
    CongestionLevel.NORMAL: 1.0,
    CongestionLevel.HIGH: 1.1,
}


def classify_congestion(price: float, average: float) -> CongestionLevel:
    """
    Classify congestion of a price against the rolling average.

    Args:
        price: Current gas price.
        average: Average over the history window.

    Returns:
        Congestion level.
    """
    if average <= 0:
        return CongestionLevel.NORMAL
    if price < average * GAS_LOW_RATIO:
        return CongestionLevel.LOW
    if price > average * GAS_HIGH_RATIO:
        return CongestionLevel.HIGH
    return CongestionLevel.NORMAL


class GasTracker:
    """Generates and tracks simulated gas prices."""

    def __init__(
        self,
        rng: RandomSource | None = None,
        event_bus: EventBus | None = None,
        base_price: float = GAS_BASE_PRICE,
        amplitude: float = GAS_AMPLITUDE,
        noise: float = GAS_NOISE,
        history_size: int = GAS_HISTORY_SIZE,
        clock: Callable[[], int] = get_timestamp_ms,
    ) -> None:
        self._rng: RandomSource = rng or random.Random()
        self._event_bus = event_bus
        self._base_price = base_price
        self._amplitude = amplitude
        self._noise = noise
        self._clock = clock
        self._history: deque[float] = deque(maxlen=history_size)
        self._latest: GasStatus | None = None

    def sample(self) -> GasStatus:
        """Generate the next gas price and record it."""
        now = self._clock()
        wave = math.sin(now / 1e7) * self._amplitude
        price = max(
            GAS_MIN_PRICE,
            self._base_price + wave + self._rng.uniform(-self._noise, self._noise),
        )

        self._history.append(price)
        average = sum(self._history) / len(self._history)
        congestion = classify_congestion(price, average)

        self._latest = GasStatus(
            price=price,
            average=average,
            congestion=congestion,
            recommended_price=price * RECOMMENDATION_FACTOR[congestion],
            timestamp_ms=now,
        )
        return self._latest

    async def refresh(self) -> GasStatus:
        """Sample a new gas price and publish GAS_UPDATED."""
        status = self.sample()

        if status.congestion is CongestionLevel.HIGH:
            logger.info(f"Network congestion high: gas {status.price:.2f} (avg {status.average:.2f})")

        if self._event_bus is not None:
            await self._event_bus.emit(EventType.GAS_UPDATED, status, source="gas_tracker")
        return status

    @property
    def latest(self) -> GasStatus | None:
        """Most recent status, None before the first sample."""
        return self._latest

    @property
    def history(self) -> list[float]:
        """Recorded gas prices, oldest first."""
        return list(self._history)
