"""
Unit tests for math and time helpers.
"""

import pytest

from mev_dashboard.utils.math import (
    clamp,
    compound_fee_factor,
    format_profit,
    is_usable_price,
    profit_pct_from_factor,
    route_factor,
    safe_divide,
)
from mev_dashboard.utils.time import age_ms, format_duration_us, format_timestamp_ms


class TestMath:
    """Tests for rate and profit helpers."""

    def test_safe_divide(self) -> None:
        """Test division with a zero denominator."""
        assert safe_divide(10.0, 4.0) == 2.5
        assert safe_divide(10.0, 0.0) == 0.0
        assert safe_divide(10.0, 0.0, default=-1.0) == -1.0

    def test_clamp(self) -> None:
        """Test clamping into a range."""
        assert clamp(5.0, 0.0, 1.0) == 1.0
        assert clamp(-5.0, 0.0, 1.0) == 0.0
        assert clamp(0.5, 0.0, 1.0) == 0.5

    @pytest.mark.parametrize("value", [None, 0.0, -1.0, float("nan"), float("inf")])
    def test_unusable_prices(self, value: float | None) -> None:
        """Test that missing, zero and non-finite prices are rejected."""
        assert not is_usable_price(value)

    def test_route_factor_with_fees(self) -> None:
        """Test the compounded fee factor of a three-hop route."""
        factor = route_factor([1.01, 1.0, 1.0], fee_rate=0.0025)

        assert factor == pytest.approx(1.01 * (1 - 0.0025) ** 3)
        assert compound_fee_factor(0.0025, 3) == pytest.approx(0.9925187, rel=1e-6)

    def test_profit_pct_from_factor(self) -> None:
        """Test factor to percentage conversion."""
        assert profit_pct_from_factor(1.015) == pytest.approx(1.5)
        assert profit_pct_from_factor(0.99) == pytest.approx(-1.0)

    def test_format_profit(self) -> None:
        """Test signed profit formatting."""
        assert format_profit(1.5) == "+1.5000%"
        assert format_profit(-0.25) == "-0.2500%"


class TestTime:
    """Tests for time helpers."""

    def test_age_ms_never_negative(self) -> None:
        """Test that timestamps in the future have zero age."""
        assert age_ms(1_000, now_ms=1_500) == 500
        assert age_ms(2_000, now_ms=1_500) == 0

    def test_format_timestamp_ms(self) -> None:
        """Test timestamp formatting."""
        assert format_timestamp_ms(1704067200123) == "00:00:00.123"
        assert format_timestamp_ms(1704067200123, include_date=True) == "2024-01-01 00:00:00.123"

    def test_format_duration_us(self) -> None:
        """Test duration formatting."""
        assert format_duration_us(500) == "500μs"
        assert format_duration_us(1500) == "1.50ms"
        assert format_duration_us(1_500_000) == "1.50s"
