"""
Cross-venue (simple) arbitrage detection.

Buys a token pair on one venue and sells it on another when the
effective prices, after fees and gas, leave a profit.
"""

import itertools
import logging
import random
from collections.abc import Mapping, Sequence

from mev_dashboard.config.constants import CONFIDENCE_PROFIT_CAP
from mev_dashboard.core.types import (
    Opportunity,
    PriceQuote,
    RandomSource,
    SimpleOpportunity,
    Token,
    Venue,
    VenueRate,
)
from mev_dashboard.strategy.base import FinderConstraints, tradeable_symbols
from mev_dashboard.strategy.rates import RateTable
from mev_dashboard.utils.math import clamp, is_usable_price, safe_divide
from mev_dashboard.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


def confidence_score(buy_venue: Venue, sell_venue: Venue, profit_pct: float) -> float:
    """
    Confidence of a cross-venue opportunity on a 0..100 scale.

    Deeper venues and a larger margin both raise confidence.

    Args:
        buy_venue: Venue the pair is bought on.
        sell_venue: Venue the pair is sold on.
        profit_pct: Net profit percentage.

    Returns:
        Confidence score.
    """
    liquidity = (buy_venue.liquidity_rating + sell_venue.liquidity_rating) / 10.0
    margin = min(1.0, max(0.0, profit_pct) / CONFIDENCE_PROFIT_CAP)
    return clamp((liquidity * 0.4 + margin * 0.4 + 0.16) * 100.0, 0.0, 100.0)


class SimpleFinder:
    """
    Finds buy-low/sell-high opportunities across venues.

    Each unordered token pair (a, b) is quoted as a priced in b. At most
    one opportunity, the best venue combination, is reported per pair.
    """

    def __init__(self, rng: RandomSource | None = None) -> None:
        self._rng: RandomSource = rng or random.Random()

    def find(
        self,
        quotes: Mapping[str, PriceQuote],
        venue_rates: Sequence[VenueRate],
        tokens: Sequence[Token],
        constraints: FinderConstraints,
    ) -> list[Opportunity]:
        """
        Scan every token pair for a profitable venue combination.

        Args:
            quotes: Current quotes keyed by symbol.
            venue_rates: Synthesized rates for this cycle.
            tokens: Token universe in scan order.
            constraints: Thresholds and sizing.

        Returns:
            Opportunities at or above the simple threshold.
        """
        table = RateTable(venue_rates)
        symbols = [s for s in tradeable_symbols(quotes, tokens) if table.has_token(s)]
        now = get_timestamp_ms()

        opportunities: list[Opportunity] = []
        for a, b in itertools.combinations(symbols, 2):
            opportunity = self._evaluate_pair(table, a, b, constraints, now)
            if opportunity is not None:
                opportunities.append(opportunity)

        return opportunities

    def _sample_venues(self, table: RateTable, a: str, b: str, size: int) -> list[str]:
        """Venues quoting both tokens, sampled down to size."""
        venues = table.common_venues(a, b)
        if size > 0 and len(venues) > size:
            venues = self._rng.sample(venues, size)
        return venues

    def _evaluate_pair(
        self,
        table: RateTable,
        a: str,
        b: str,
        constraints: FinderConstraints,
        now: int,
    ) -> SimpleOpportunity | None:
        """Best opportunity for one pair, or None."""
        venue_ids = self._sample_venues(table, a, b, constraints.venue_sample_size)
        if len(venue_ids) < 2:
            return None

        # pair prices per venue: (ask, bid) of a priced in b
        pair_prices: dict[str, tuple[float, float]] = {}
        for venue_id in venue_ids:
            rate_a = table.get(a, venue_id)
            rate_b = table.get(b, venue_id)
            if rate_a is None or rate_b is None:
                continue
            if not all(is_usable_price(p) for p in (rate_a.bid, rate_a.ask, rate_b.bid, rate_b.ask)):
                continue
            pair_prices[venue_id] = (rate_a.ask / rate_b.bid, rate_a.bid / rate_b.ask)

        notional = constraints.trade_notional
        best: tuple[float, Venue, Venue] | None = None

        for buy_id, sell_id in itertools.permutations(pair_prices, 2):
            buy_venue = table.venue(buy_id)
            sell_venue = table.venue(sell_id)
            if buy_venue is None or sell_venue is None:
                continue

            ask = pair_prices[buy_id][0]
            bid = pair_prices[sell_id][1]
            effective_buy = ask * (1.0 + buy_venue.fee_pct + safe_divide(buy_venue.gas_cost, notional))
            effective_sell = bid * (1.0 - sell_venue.fee_pct - safe_divide(sell_venue.gas_cost, notional))
            if effective_buy <= 0:
                continue

            profit_pct = (effective_sell / effective_buy - 1.0) * 100.0
            if best is None or profit_pct > best[0]:
                best = (profit_pct, buy_venue, sell_venue)

        if best is None:
            return None

        profit_pct, buy_venue, sell_venue = best
        if profit_pct < constraints.min_profit_pct:
            return None

        return SimpleOpportunity(
            from_token=a,
            to_token=b,
            buy_venue=buy_venue.id,
            sell_venue=sell_venue.id,
            buy_price=pair_prices[buy_venue.id][0],
            sell_price=pair_prices[sell_venue.id][1],
            profit_pct=profit_pct,
            estimated_profit=constraints.estimated_profit(profit_pct),
            timestamp_ms=now,
            notional=notional,
            confidence=confidence_score(buy_venue, sell_venue, profit_pct),
        )
