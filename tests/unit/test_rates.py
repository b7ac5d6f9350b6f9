"""
Unit tests for venue rate synthesis and the rate table.
"""

import random
from dataclasses import replace

import pytest

from mev_dashboard.config.constants import MAX_VENUE_OFFSET, MIN_SPREAD
from mev_dashboard.core.types import Venue
from mev_dashboard.market.tokens import DEFAULT_VENUES
from mev_dashboard.strategy.rates import RateSynthesizer, RateTable, spread_width, venue_offset
from tests.mocks import make_quote, make_rate


class TestVenueOffset:
    """Tests for the fixed venue offset."""

    def test_offset_is_stable(self) -> None:
        """Test that the offset depends only on the venue id."""
        assert venue_offset("raydium") == venue_offset("raydium")

    @pytest.mark.parametrize("venue", DEFAULT_VENUES, ids=lambda v: v.id)
    def test_offset_is_bounded(self, venue: Venue) -> None:
        """Test that offsets stay within the configured bound."""
        assert -MAX_VENUE_OFFSET <= venue_offset(venue.id) <= MAX_VENUE_OFFSET

    def test_higher_liquidity_narrows_spread(self) -> None:
        """Test that spread width falls as liquidity rises."""
        assert spread_width(5) < spread_width(3) < spread_width(1)
        assert spread_width(100) > 0

    def test_slippage_factor_scales_spread(self) -> None:
        """Test that the slippage factor multiplies the width above the floor."""
        assert spread_width(3, slippage_factor=2.0) == pytest.approx(2 * spread_width(3))
        assert spread_width(3, slippage_factor=0.5) == pytest.approx(0.5 * spread_width(3))
        assert spread_width(5, slippage_factor=0.1) == pytest.approx(MIN_SPREAD)


class TestRateSynthesizer:
    """Tests for RateSynthesizer."""

    def test_one_rate_per_token_and_venue(self, rng: random.Random) -> None:
        """Test that every (token, venue) pair is quoted."""
        quotes = {"SOL": make_quote("SOL", 120.0), "USDC": make_quote("USDC", 1.0)}

        rates = RateSynthesizer(rng).synthesize(quotes, DEFAULT_VENUES)

        assert len(rates) == 2 * len(DEFAULT_VENUES)
        for rate in rates:
            assert rate.bid < rate.mid < rate.ask
            assert rate.timestamp_ms > 0

    def test_unusable_quotes_skipped(self, rng: random.Random) -> None:
        """Test that tokens without a usable price are not quoted."""
        quotes = {"SOL": make_quote("SOL", 120.0), "DEAD": make_quote("DEAD", 0.0)}

        rates = RateSynthesizer(rng).synthesize(quotes, DEFAULT_VENUES)

        assert {r.token for r in rates} == {"SOL"}

    def test_zero_jitter_is_deterministic(self, venue_a: Venue) -> None:
        """Test that without jitter the mid is the offset price."""
        quotes = {"SOL": make_quote("SOL", 100.0)}

        rates = RateSynthesizer(jitter=0.0).synthesize(quotes, [venue_a])

        assert rates[0].mid == pytest.approx(100.0 * (1 + venue_offset(venue_a.id)))
        assert rates[0].spread_pct == pytest.approx(spread_width(venue_a.liquidity_rating) * 100)

    def test_slippage_factor_widens_quotes(self, venue_a: Venue) -> None:
        """Test that a venue with a higher slippage factor quotes a wider spread."""
        slippery = replace(venue_a, id="venue_slippery", slippage_factor=2.0)
        quotes = {"SOL": make_quote("SOL", 100.0)}

        rates = RateSynthesizer(jitter=0.0).synthesize(quotes, [venue_a, slippery])

        assert rates[1].spread_pct == pytest.approx(2 * rates[0].spread_pct, rel=1e-6)

    def test_negative_jitter_rejected(self) -> None:
        """Test jitter validation."""
        with pytest.raises(ValueError):
            RateSynthesizer(jitter=-0.1)


class TestRateTable:
    """Tests for RateTable lookups."""

    @pytest.fixture
    def table(self, venue_a: Venue, venue_b: Venue) -> RateTable:
        """SOL and USDC on two venues, ETH on venue A only."""
        return RateTable(
            [
                make_rate("SOL", venue_a, 119.9, 120.0),
                make_rate("USDC", venue_a, 1.0, 1.0),
                make_rate("SOL", venue_b, 121.8, 121.9),
                make_rate("USDC", venue_b, 1.0, 1.0),
                make_rate("ETH", venue_a, 3000.0, 3001.0),
            ]
        )

    def test_lookups(self, table: RateTable, venue_a: Venue) -> None:
        """Test token and venue lookups."""
        assert len(table) == 5
        assert table.has_token("SOL")
        assert not table.has_token("BONK")
        assert table.venue("venue_a") == venue_a
        assert table.venues_for("ETH") == ["venue_a"]
        assert table.common_venues("SOL", "ETH") == ["venue_a"]
        assert table.get("ETH", "venue_b") is None

    def test_conversion_rate(self, table: RateTable) -> None:
        """Test that conversion sells at the bid and buys at the ask."""
        assert table.conversion_rate("SOL", "USDC", "venue_b") == pytest.approx(121.8)
        assert table.conversion_rate("USDC", "SOL", "venue_a") == pytest.approx(1 / 120.0)
        assert table.conversion_rate("SOL", "ETH", "venue_b") is None

    def test_best_conversion(self, table: RateTable) -> None:
        """Test that the best venue is picked per direction."""
        assert table.best_conversion("SOL", "USDC") == ("venue_b", pytest.approx(121.8))
        assert table.best_conversion("USDC", "SOL") == ("venue_a", pytest.approx(1 / 120.0))
        assert table.best_conversion("SOL", "BONK") is None

    def test_best_conversion_tie_keeps_first_venue(self, venue_a: Venue, venue_b: Venue) -> None:
        """Test that equal rates keep the first venue."""
        table = RateTable(
            [
                make_rate("SOL", venue_a, 120.0, 120.0),
                make_rate("USDC", venue_a, 1.0, 1.0),
                make_rate("SOL", venue_b, 120.0, 120.0),
                make_rate("USDC", venue_b, 1.0, 1.0),
            ]
        )

        assert table.best_conversion("SOL", "USDC") == ("venue_a", 120.0)
