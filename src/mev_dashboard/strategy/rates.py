"""
Venue rate synthesis.

Derives per-venue bid/ask quotes from cached prices. Each venue gets a
fixed offset derived from its id plus bounded random jitter, so price
divergence between venues (and therefore arbitrage) can appear.
"""

import random
import zlib
from collections.abc import Iterable, Mapping, Sequence

from mev_dashboard.config.constants import (
    DEFAULT_RATE_JITTER,
    MAX_VENUE_OFFSET,
    MIN_SPREAD,
    SPREAD_CEILING,
    SPREAD_PER_LIQUIDITY,
)
from mev_dashboard.core.types import PriceQuote, RandomSource, Venue, VenueRate
from mev_dashboard.utils.math import is_usable_price
from mev_dashboard.utils.time import get_timestamp_ms


# Number of discrete offset buckets on each side of zero
_OFFSET_STEPS = 5


def venue_offset(venue_id: str) -> float:
    """
    Fixed relative price offset of a venue.

    Pure function of the id, stable across processes, in
    [-MAX_VENUE_OFFSET, +MAX_VENUE_OFFSET].

    Args:
        venue_id: Venue identifier.

    Returns:
        Relative offset (0.002 = +0.2%).
    """
    bucket = zlib.crc32(venue_id.encode()) % (2 * _OFFSET_STEPS + 1) - _OFFSET_STEPS
    return bucket * MAX_VENUE_OFFSET / _OFFSET_STEPS


def spread_width(liquidity_rating: int, slippage_factor: float = 1.0) -> float:
    """
    Relative bid-ask spread for a venue.

    Higher liquidity means a narrower spread; the slippage factor scales
    the liquidity-based width before the floor applies.

    Example:
        >>> round(spread_width(5), 4)
        0.001
        >>> round(spread_width(5, slippage_factor=1.5), 4)
        0.0015
    """
    base = SPREAD_CEILING - SPREAD_PER_LIQUIDITY * liquidity_rating
    return max(MIN_SPREAD, base * slippage_factor)


class RateSynthesizer:
    """Projects price quotes onto a list of venues."""

    def __init__(
        self,
        rng: RandomSource | None = None,
        jitter: float = DEFAULT_RATE_JITTER,
    ) -> None:
        """
        Initialize synthesizer.

        Args:
            rng: Random source for the jitter.
            jitter: Bound of the uniform jitter added to each offset.
        """
        if jitter < 0:
            raise ValueError(f"jitter must be non-negative, got {jitter}")
        self._rng: RandomSource = rng or random.Random()
        self._jitter = jitter

    def synthesize(
        self,
        quotes: Mapping[str, PriceQuote],
        venues: Sequence[Venue],
    ) -> list[VenueRate]:
        """
        Build a rate for every (token, venue) pair.

        Tokens without a usable price are skipped.

        Args:
            quotes: Current quotes keyed by token symbol.
            venues: Venues to quote on.

        Returns:
            Venue rates, grouped by token in quote order.
        """
        now = get_timestamp_ms()
        rates: list[VenueRate] = []

        for symbol, quote in quotes.items():
            if not is_usable_price(quote.price):
                continue

            for venue in venues:
                jitter = self._rng.uniform(-self._jitter, self._jitter) if self._jitter else 0.0
                mid = quote.price * (1.0 + venue_offset(venue.id) + jitter)
                half_spread = mid * spread_width(venue.liquidity_rating, venue.slippage_factor) / 2.0

                rates.append(
                    VenueRate(
                        token=symbol,
                        venue=venue,
                        mid=mid,
                        bid=mid - half_spread,
                        ask=mid + half_spread,
                        timestamp_ms=now,
                    )
                )

        return rates


class RateTable:
    """
    Index of venue rates by token and venue.

    Provides the cross-rate lookups the finders share.
    """

    def __init__(self, rates: Iterable[VenueRate]) -> None:
        self._rates: dict[str, dict[str, VenueRate]] = {}
        self._venues: dict[str, Venue] = {}

        for rate in rates:
            self._rates.setdefault(rate.token, {})[rate.venue.id] = rate
            self._venues.setdefault(rate.venue.id, rate.venue)

    def get(self, token: str, venue_id: str) -> VenueRate | None:
        """Get the rate for a token on a venue."""
        return self._rates.get(token, {}).get(venue_id)

    def has_token(self, token: str) -> bool:
        """Whether any venue quotes the token."""
        return bool(self._rates.get(token))

    def venue(self, venue_id: str) -> Venue | None:
        """Get a venue descriptor by id."""
        return self._venues.get(venue_id)

    def venues_for(self, token: str) -> list[str]:
        """Ids of the venues quoting a token, in insertion order."""
        return list(self._rates.get(token, {}))

    def common_venues(self, a: str, b: str) -> list[str]:
        """Ids of the venues quoting both tokens."""
        other = self._rates.get(b, {})
        return [venue_id for venue_id in self._rates.get(a, {}) if venue_id in other]

    def conversion_rate(self, from_token: str, to_token: str, venue_id: str) -> float | None:
        """
        Units of to_token received per unit of from_token on a venue.

        Sells from_token at its bid and buys to_token at its ask.

        Returns:
            Rate, or None when either side is missing or unusable.
        """
        sell = self.get(from_token, venue_id)
        buy = self.get(to_token, venue_id)
        if sell is None or buy is None:
            return None
        if not is_usable_price(sell.bid) or not is_usable_price(buy.ask):
            return None
        return sell.bid / buy.ask

    def best_conversion(self, from_token: str, to_token: str) -> tuple[str, float] | None:
        """
        Venue offering the best conversion rate.

        Ties keep the first venue in iteration order.

        Returns:
            (venue id, rate), or None when no venue can convert.
        """
        best: tuple[str, float] | None = None
        for venue_id in self.common_venues(from_token, to_token):
            rate = self.conversion_rate(from_token, to_token, venue_id)
            if rate is None:
                continue
            if best is None or rate > best[1]:
                best = (venue_id, rate)
        return best

    @property
    def tokens(self) -> list[str]:
        """Tokens with at least one rate."""
        return [token for token, rates in self._rates.items() if rates]

    def __len__(self) -> int:
        return sum(len(rates) for rates in self._rates.values())
