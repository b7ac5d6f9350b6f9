"""
Multi-hop (complex) arbitrage detection.

Random walks over the token graph produce closed routes of four or
more distinct tokens.
"""

import logging
import random
from collections.abc import Mapping, Sequence

from mev_dashboard.config.constants import HIGH_COMPLEXITY_HOPS
from mev_dashboard.core.types import (
    Complexity,
    ComplexOpportunity,
    Opportunity,
    PriceQuote,
    RandomSource,
    Token,
    VenueRate,
)
from mev_dashboard.strategy.base import FinderConstraints, tradeable_symbols
from mev_dashboard.strategy.graph import TokenGraph
from mev_dashboard.strategy.rates import RateTable
from mev_dashboard.strategy.triangular import build_route
from mev_dashboard.utils.math import profit_pct_from_factor, route_factor
from mev_dashboard.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


def classify_complexity(hops: int) -> Complexity:
    """Label a route by its hop count."""
    return Complexity.HIGH if hops > HIGH_COMPLEXITY_HOPS else Complexity.MEDIUM


def _canonical(cycle: Sequence[str]) -> tuple[str, ...]:
    """Rotation-independent key of a directed cycle."""
    pivot = cycle.index(min(cycle))
    return tuple(cycle[pivot:]) + tuple(cycle[:pivot])


class ComplexFinder:
    """Samples long closed routes through the token graph."""

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
        Sample multi-hop routes and keep the profitable ones.

        Args:
            quotes: Current quotes keyed by symbol.
            venue_rates: Synthesized rates for this cycle.
            tokens: Token universe.
            constraints: Thresholds, fees, route lengths and sample count.

        Returns:
            Opportunities at or above the complex threshold.
        """
        table = RateTable(venue_rates)
        symbols = tradeable_symbols(quotes, tokens)
        graph = TokenGraph.from_table(table, symbols)

        if graph.node_count < constraints.complex_min_tokens:
            return []

        max_tokens = min(constraints.complex_max_tokens, graph.node_count)
        threshold = constraints.complex_threshold
        now = get_timestamp_ms()
        seen: set[tuple[str, ...]] = set()
        opportunities: list[Opportunity] = []

        for _ in range(constraints.complex_samples):
            length = self._rng.randint(constraints.complex_min_tokens, max_tokens)
            cycle = graph.random_cycle(self._rng, length)
            if cycle is None:
                continue

            key = _canonical(cycle)
            if key in seen:
                continue
            seen.add(key)

            path = build_route(table, cycle)
            if path is None:
                continue

            factor = route_factor((hop.rate for hop in path), constraints.fee_per_trade)
            profit_pct = profit_pct_from_factor(factor)
            if profit_pct < threshold:
                continue

            opportunities.append(
                ComplexOpportunity(
                    path=path,
                    profit_pct=profit_pct,
                    estimated_profit=constraints.estimated_profit(profit_pct),
                    complexity=classify_complexity(len(path)),
                    timestamp_ms=now,
                    notional=constraints.trade_notional,
                )
            )

        return opportunities
