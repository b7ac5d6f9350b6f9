"""
Type definitions for the simulation engine.

This module contains the dataclasses, enums and Protocol definitions
used throughout the application. Value types are frozen and use
slots=True so that snapshots handed to subscribers can never be
mutated in place.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, TypeVar


T = TypeVar("T")


# =============================================================================
# Enums
# =============================================================================


class RiskProfile(str, Enum):
    """User risk appetite, drives simulated execution success rate."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class OpportunityKind(str, Enum):
    """Discriminator for the opportunity variants."""

    SIMPLE = "simple"
    TRIANGULAR = "triangular"
    COMPLEX = "complex"


class Complexity(str, Enum):
    """Complexity label of a multi-hop route."""

    MEDIUM = "medium"
    HIGH = "high"


class OutcomeStatus(str, Enum):
    """Result classification of a simulated execution."""

    SUCCESS = "success"
    STALE_OPPORTUNITY = "stale_opportunity"
    BELOW_THRESHOLD = "below_threshold"
    SIMULATED_FAILURE = "simulated_failure"
    TIMEOUT = "timeout"

    @property
    def is_validation_error(self) -> bool:
        """Whether the outcome was decided before any simulated trade."""
        return self in (OutcomeStatus.STALE_OPPORTUNITY, OutcomeStatus.BELOW_THRESHOLD)


class CongestionLevel(str, Enum):
    """Network congestion derived from the gas price history."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class PriceTrend(str, Enum):
    """Direction of a short moving average against a long one."""

    UP = "up"
    FLAT = "flat"
    DOWN = "down"


# =============================================================================
# Reference Data
# =============================================================================


@dataclass(slots=True, frozen=True)
class Token:
    """
    Tradeable token with its reference price.

    Loaded once at startup and never modified.
    """

    symbol: str
    base_price: float
    name: str = ""
    coingecko_id: str | None = None


@dataclass(slots=True, frozen=True)
class Venue:
    """
    Simulated decentralized exchange.

    Fee is a fraction per swap, gas cost is in the reference currency,
    a higher liquidity rating means a narrower synthesized spread, and
    the slippage factor widens (above 1) or tightens (below 1) it.
    """

    id: str
    name: str
    fee_pct: float
    gas_cost: float
    liquidity_rating: int
    slippage_factor: float = 1.0


# =============================================================================
# Market Data Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class PriceQuote:
    """Latest known price of a token in the reference currency."""

    token: str
    price: float
    change_24h: float
    last_updated_ms: int
    source: str = "synthetic"


@dataclass(slots=True, frozen=True)
class PriceSnapshot:
    """Complete price set published after a cache refresh."""

    quotes: Mapping[str, PriceQuote]
    timestamp_ms: int


@dataclass(slots=True, frozen=True)
class VenueRate:
    """Venue-specific bid/ask for a token, synthesized each cycle."""

    token: str
    venue: Venue
    mid: float
    bid: float
    ask: float
    timestamp_ms: int = 0

    @property
    def spread(self) -> float:
        """Absolute bid-ask spread."""
        return self.ask - self.bid

    @property
    def spread_pct(self) -> float:
        """Spread as a percentage of the mid price."""
        return self.spread / self.mid * 100.0 if self.mid > 0 else 0.0


@dataclass(slots=True, frozen=True)
class GasStatus:
    """Simulated network fee conditions."""

    price: float
    average: float
    congestion: CongestionLevel
    recommended_price: float
    timestamp_ms: int


@dataclass(slots=True, frozen=True)
class TokenAnalysis:
    """
    Statistics derived from the recorded price history of one token.

    Volatility is the population standard deviation of step-to-step
    relative price changes (0.01 = 1%). Support and resistance are the
    10th and 90th percentile prices of the window.
    """

    token: str
    price: float
    samples: int
    volatility: float
    trend: PriceTrend
    support: float
    resistance: float

    def to_dict(self) -> dict[str, float | int | str]:
        """Convert to dict for status reporting."""
        return {
            "price": self.price,
            "samples": self.samples,
            "volatility": self.volatility,
            "trend": self.trend.value,
            "support": self.support,
            "resistance": self.resistance,
        }


# =============================================================================
# Opportunity Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class Hop:
    """Single conversion step of a route."""

    from_token: str
    to_token: str
    venue: str
    rate: float

    def __repr__(self) -> str:
        return f"{self.from_token}->{self.to_token}@{self.venue}"


@dataclass(slots=True, frozen=True)
class SimpleOpportunity:
    """
    Buy on one venue and sell on another.

    Prices are quoted as from_token priced in to_token.
    """

    from_token: str
    to_token: str
    buy_venue: str
    sell_venue: str
    buy_price: float
    sell_price: float
    profit_pct: float
    estimated_profit: float
    timestamp_ms: int
    notional: float = 0.0
    confidence: float = 0.0
    kind: OpportunityKind = field(default=OpportunityKind.SIMPLE, init=False)

    @property
    def label(self) -> str:
        """Human-readable route description."""
        return f"{self.from_token}/{self.to_token} {self.buy_venue}->{self.sell_venue}"


@dataclass(slots=True, frozen=True)
class TriangularOpportunity:
    """Three-hop route A -> B -> C -> A."""

    base_token: str
    route: tuple[Hop, Hop, Hop]
    profit_pct: float
    estimated_profit: float
    timestamp_ms: int
    notional: float = 0.0
    kind: OpportunityKind = field(default=OpportunityKind.TRIANGULAR, init=False)

    @property
    def tokens(self) -> tuple[str, ...]:
        """Tokens visited, including the return to base."""
        return (self.route[0].from_token, *(hop.to_token for hop in self.route))

    @property
    def label(self) -> str:
        """Human-readable route description."""
        return " -> ".join(self.tokens)


@dataclass(slots=True, frozen=True)
class ComplexOpportunity:
    """Closed route of four or more hops."""

    path: tuple[Hop, ...]
    profit_pct: float
    estimated_profit: float
    complexity: Complexity
    timestamp_ms: int
    notional: float = 0.0
    kind: OpportunityKind = field(default=OpportunityKind.COMPLEX, init=False)

    @property
    def tokens(self) -> tuple[str, ...]:
        """Tokens visited, including the return to the start."""
        return (self.path[0].from_token, *(hop.to_token for hop in self.path))

    @property
    def label(self) -> str:
        """Human-readable route description."""
        return " -> ".join(self.tokens)


Opportunity = SimpleOpportunity | TriangularOpportunity | ComplexOpportunity


@dataclass(slots=True, frozen=True)
class OpportunitySnapshot:
    """
    Published opportunity set for one feed tick.

    Buckets are tuples sorted by descending profit so a subscriber
    always receives a complete, consistent set.
    """

    simple: tuple[SimpleOpportunity, ...] = ()
    triangular: tuple[TriangularOpportunity, ...] = ()
    complex: tuple[ComplexOpportunity, ...] = ()
    timestamp_ms: int = 0

    @property
    def total(self) -> int:
        """Number of opportunities across all buckets."""
        return len(self.simple) + len(self.triangular) + len(self.complex)

    @property
    def is_empty(self) -> bool:
        """Whether no bucket holds an opportunity."""
        return self.total == 0

    def bucket(self, kind: OpportunityKind) -> tuple[Opportunity, ...]:
        """Get the bucket for an opportunity kind."""
        if kind is OpportunityKind.SIMPLE:
            return self.simple
        if kind is OpportunityKind.TRIANGULAR:
            return self.triangular
        return self.complex

    def all(self) -> list[Opportunity]:
        """All opportunities, most profitable first."""
        merged: list[Opportunity] = [*self.simple, *self.triangular, *self.complex]
        merged.sort(key=lambda o: o.profit_pct, reverse=True)
        return merged

    def best(self) -> Opportunity | None:
        """Most profitable opportunity, if any."""
        merged = self.all()
        return merged[0] if merged else None


# =============================================================================
# Execution Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class TradeOutcome:
    """
    Result of a simulated execution.

    Immutable once created; appended to history and never changed.
    """

    opportunity: Opportunity
    status: OutcomeStatus
    realized_pnl: float
    execution_time_ms: int
    timestamp_ms: int
    reason: str = ""

    @property
    def success(self) -> bool:
        """Whether the simulated trade succeeded."""
        return self.status is OutcomeStatus.SUCCESS


# =============================================================================
# Protocols
# =============================================================================


class RandomSource(Protocol):
    """
    Injectable source of randomness.

    random.Random satisfies this protocol; tests supply deterministic
    implementations.
    """

    def random(self) -> float: ...

    def uniform(self, a: float, b: float) -> float: ...

    def gauss(self, mu: float = 0.0, sigma: float = 1.0) -> float: ...

    def choice(self, seq: Sequence[T]) -> T: ...

    def sample(self, population: Sequence[T], k: int) -> list[T]: ...

    def randint(self, a: int, b: int) -> int: ...
