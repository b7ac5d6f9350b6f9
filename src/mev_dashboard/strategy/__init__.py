"""Strategy module for venue rates and opportunity detection."""

from mev_dashboard.strategy.base import FinderConstraints, OpportunityFinder
from mev_dashboard.strategy.complex import ComplexFinder
from mev_dashboard.strategy.feed import OpportunityFeed
from mev_dashboard.strategy.graph import TokenGraph
from mev_dashboard.strategy.rates import RateSynthesizer, RateTable
from mev_dashboard.strategy.simple import SimpleFinder
from mev_dashboard.strategy.triangular import TriangularFinder


__all__ = [
    "ComplexFinder",
    "FinderConstraints",
    "OpportunityFeed",
    "OpportunityFinder",
    "RateSynthesizer",
    "RateTable",
    "SimpleFinder",
    "TokenGraph",
    "TriangularFinder",
]
