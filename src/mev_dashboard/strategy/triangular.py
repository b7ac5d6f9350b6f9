"""
Triangular arbitrage detection.

Samples A -> B -> C -> A routes starting from a base token and keeps
those whose compounded conversion rate beats the fees.
"""

import logging
import random
from collections.abc import Mapping, Sequence

from mev_dashboard.core.types import (
    Hop,
    Opportunity,
    PriceQuote,
    RandomSource,
    Token,
    TriangularOpportunity,
    VenueRate,
)
from mev_dashboard.strategy.base import FinderConstraints, tradeable_symbols
from mev_dashboard.strategy.rates import RateTable
from mev_dashboard.utils.math import profit_pct_from_factor, route_factor
from mev_dashboard.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


def build_route(table: RateTable, tokens: Sequence[str]) -> tuple[Hop, ...] | None:
    """
    Build a closed route through tokens using the best venue per hop.

    Args:
        table: Current venue rates.
        tokens: Tokens to visit; the route returns to the first one.

    Returns:
        Hops of the route, or None when any hop cannot be converted.
    """
    hops: list[Hop] = []
    for i, from_token in enumerate(tokens):
        to_token = tokens[(i + 1) % len(tokens)]
        best = table.best_conversion(from_token, to_token)
        if best is None:
            return None
        venue_id, rate = best
        hops.append(Hop(from_token=from_token, to_token=to_token, venue=venue_id, rate=rate))
    return tuple(hops)


class TriangularFinder:
    """
    Randomly samples triangles anchored on the configured base tokens.

    Each triangle is evaluated once per pass.
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
        Sample triangular routes and keep the profitable ones.

        Args:
            quotes: Current quotes keyed by symbol.
            venue_rates: Synthesized rates for this cycle.
            tokens: Token universe.
            constraints: Thresholds, fees and sample count.

        Returns:
            Opportunities at or above the triangular threshold.
        """
        table = RateTable(venue_rates)
        symbols = [s for s in tradeable_symbols(quotes, tokens) if table.has_token(s)]
        bases = [s for s in constraints.base_tokens if s in symbols]
        if not bases or len(symbols) < 3:
            return []

        threshold = constraints.triangular_threshold
        now = get_timestamp_ms()
        seen: set[tuple[str, str, str]] = set()
        opportunities: list[Opportunity] = []

        for _ in range(constraints.triangular_samples):
            base = self._rng.choice(bases)
            others = [s for s in symbols if s != base]
            b, c = self._rng.sample(others, 2)

            key = (base, b, c)
            if key in seen:
                continue
            seen.add(key)

            route = build_route(table, key)
            if route is None:
                continue

            factor = route_factor((hop.rate for hop in route), constraints.fee_per_trade)
            profit_pct = profit_pct_from_factor(factor)
            if profit_pct < threshold:
                continue

            opportunities.append(
                TriangularOpportunity(
                    base_token=base,
                    route=(route[0], route[1], route[2]),
                    profit_pct=profit_pct,
                    estimated_profit=constraints.estimated_profit(profit_pct),
                    timestamp_ms=now,
                    notional=constraints.trade_notional,
                )
            )

        logger.debug(f"Triangular pass: {len(seen)} routes checked, {len(opportunities)} found")
        return opportunities
