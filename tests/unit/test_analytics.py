"""
Unit tests for market analytics.

Tests the volatility, trend and percentile helpers and the sampled
per-token history.
"""

import pytest

from mev_dashboard.core.types import PriceSnapshot, PriceTrend
from mev_dashboard.market.analytics import (
    MarketAnalytics,
    price_percentile,
    price_trend,
    price_volatility,
)
from tests.mocks import make_quote


# Alternating +10% / -10% steps
SWINGING = [100.0, 110.0, 99.0, 108.9, 98.01]


def _snapshot(timestamp_ms: int, **prices: float) -> PriceSnapshot:
    return PriceSnapshot(
        quotes={symbol: make_quote(symbol, price) for symbol, price in prices.items()},
        timestamp_ms=timestamp_ms,
    )


class TestPriceVolatility:
    """Tests for price_volatility."""

    def test_too_few_samples(self) -> None:
        """Test that short series report no volatility."""
        assert price_volatility([]) == 0.0
        assert price_volatility(SWINGING[:4]) == 0.0

    def test_constant_series(self) -> None:
        """Test that flat prices have zero volatility."""
        assert price_volatility([5.0] * 10) == 0.0

    def test_standard_deviation_of_changes(self) -> None:
        """Test volatility of alternating 10% moves."""
        assert price_volatility(SWINGING) == pytest.approx(0.1)


class TestPriceTrend:
    """Tests for price_trend."""

    def test_short_series_is_flat(self) -> None:
        """Test that fewer samples than the long window give no trend."""
        assert price_trend([float(i) for i in range(1, 20)]) is PriceTrend.FLAT

    @pytest.mark.parametrize(
        "prices,expected",
        [
            ([float(i) for i in range(1, 21)], PriceTrend.UP),
            ([float(i) for i in range(20, 0, -1)], PriceTrend.DOWN),
            ([3.0] * 20, PriceTrend.FLAT),
        ],
        ids=["rising", "falling", "constant"],
    )
    def test_direction(self, prices: list[float], expected: PriceTrend) -> None:
        """Test the moving-average comparison."""
        assert price_trend(prices) is expected


class TestPricePercentile:
    """Tests for price_percentile."""

    def test_nearest_rank(self) -> None:
        """Test the 10th and 90th percentiles of an unsorted series."""
        prices = [7.0, 3.0, 10.0, 1.0, 5.0, 2.0, 9.0, 4.0, 8.0, 6.0]

        assert price_percentile(prices, 0.1) == 2.0
        assert price_percentile(prices, 0.9) == 10.0

    def test_empty(self) -> None:
        """Test that an empty series has no level."""
        assert price_percentile([], 0.5) == 0.0


class TestMarketAnalytics:
    """Tests for MarketAnalytics."""

    def test_invalid_arguments(self) -> None:
        """Test constructor validation."""
        with pytest.raises(ValueError):
            MarketAnalytics(history_size=0)
        with pytest.raises(ValueError):
            MarketAnalytics(sample_interval_ms=-1)

    def test_samples_are_spaced(self) -> None:
        """Test that snapshots inside the sample interval are skipped."""
        analytics = MarketAnalytics(sample_interval_ms=30_000)

        assert analytics.record(_snapshot(1_000, SOL=100.0))
        assert not analytics.record(_snapshot(20_000, SOL=101.0))
        assert analytics.record(_snapshot(31_000, SOL=102.0))

        assert analytics.history("SOL") == [100.0, 102.0]
        assert analytics.last_sample_ms == 31_000

    def test_history_is_bounded(self) -> None:
        """Test that the oldest samples are evicted."""
        analytics = MarketAnalytics(history_size=3, sample_interval_ms=0)
        for ts, price in enumerate(SWINGING):
            analytics.record(_snapshot(ts, SOL=price))

        assert analytics.history("SOL") == SWINGING[-3:]

    def test_unusable_prices_skipped(self) -> None:
        """Test that non-positive prices never enter the history."""
        analytics = MarketAnalytics(sample_interval_ms=0)

        analytics.record(_snapshot(0, SOL=100.0, DEAD=0.0))

        assert analytics.history("DEAD") == []
        assert analytics.analyze("DEAD") is None

    def test_analyze(self) -> None:
        """Test the statistics of a sampled token."""
        analytics = MarketAnalytics(sample_interval_ms=0)
        for ts, price in enumerate(SWINGING):
            analytics.record(_snapshot(ts, SOL=price))

        analysis = analytics.analyze("SOL")

        assert analysis is not None
        assert analysis.price == 98.01
        assert analysis.samples == 5
        assert analysis.volatility == pytest.approx(0.1)
        assert analysis.trend is PriceTrend.FLAT
        assert analysis.support == 98.01
        assert analysis.resistance == 110.0

    def test_volatility_index(self) -> None:
        """Test that the index averages volatility over tokens."""
        analytics = MarketAnalytics(sample_interval_ms=0)
        assert analytics.volatility_index() == 0.0

        for ts, price in enumerate(SWINGING):
            analytics.record(_snapshot(ts, SOL=price, USDC=1.0))

        assert analytics.volatility_index() == pytest.approx(0.05)

    def test_to_dict(self) -> None:
        """Test the status representation."""
        analytics = MarketAnalytics(sample_interval_ms=0)
        analytics.record(_snapshot(42, SOL=100.0))

        data = analytics.to_dict()

        assert data["timestamp_ms"] == 42
        assert data["volatility_index"] == 0.0
        assert data["tokens"]["SOL"]["trend"] == "flat"
        assert data["tokens"]["SOL"]["samples"] == 1

