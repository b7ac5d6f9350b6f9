"""
Shared finder contract and constraints.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Protocol

from mev_dashboard.config.constants import (
    COMPLEX_MAX_TOKENS,
    COMPLEX_MIN_TOKENS,
    DEFAULT_BASE_TOKENS,
    DEFAULT_COMPLEX_PROFIT_THRESHOLD,
    DEFAULT_COMPLEX_SAMPLES,
    DEFAULT_FEE_PER_TRADE,
    DEFAULT_MIN_PROFIT_THRESHOLD,
    DEFAULT_TRIANGULAR_PROFIT_THRESHOLD,
    DEFAULT_TRIANGULAR_SAMPLES,
    DEFAULT_VENUE_SAMPLE_SIZE,
)
from mev_dashboard.core.types import Opportunity, PriceQuote, Token, VenueRate
from mev_dashboard.utils.math import is_usable_price


@dataclass(slots=True, frozen=True)
class FinderConstraints:
    """
    Limits and sizing shared by all finders.

    Thresholds are percentages. The triangular and complex thresholds
    never drop below min_profit_pct.
    """

    min_profit_pct: float = DEFAULT_MIN_PROFIT_THRESHOLD
    triangular_min_profit_pct: float = DEFAULT_TRIANGULAR_PROFIT_THRESHOLD
    complex_min_profit_pct: float = DEFAULT_COMPLEX_PROFIT_THRESHOLD
    fee_per_trade: float = DEFAULT_FEE_PER_TRADE
    trade_notional: float = 1000.0
    venue_sample_size: int = DEFAULT_VENUE_SAMPLE_SIZE
    triangular_samples: int = DEFAULT_TRIANGULAR_SAMPLES
    complex_samples: int = DEFAULT_COMPLEX_SAMPLES
    complex_min_tokens: int = COMPLEX_MIN_TOKENS
    complex_max_tokens: int = COMPLEX_MAX_TOKENS
    base_tokens: tuple[str, ...] = DEFAULT_BASE_TOKENS

    def __post_init__(self) -> None:
        for name in ("min_profit_pct", "triangular_min_profit_pct", "complex_min_profit_pct"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if not 0 <= self.fee_per_trade < 1:
            raise ValueError(f"fee_per_trade must be in [0, 1), got {self.fee_per_trade}")
        if self.trade_notional < 0:
            raise ValueError(f"trade_notional must be non-negative, got {self.trade_notional}")
        if self.complex_min_tokens < 4 or self.complex_max_tokens < self.complex_min_tokens:
            raise ValueError(
                "complex route length must satisfy 4 <= min <= max, got "
                f"{self.complex_min_tokens}..{self.complex_max_tokens}"
            )

    @property
    def triangular_threshold(self) -> float:
        """Effective threshold for triangular routes."""
        return max(self.min_profit_pct, self.triangular_min_profit_pct)

    @property
    def complex_threshold(self) -> float:
        """Effective threshold for multi-hop routes."""
        return max(self.min_profit_pct, self.complex_min_profit_pct)

    def with_notional(self, trade_notional: float) -> "FinderConstraints":
        """Copy of these constraints sized for a different notional."""
        return replace(self, trade_notional=trade_notional)

    def estimated_profit(self, profit_pct: float) -> float:
        """Reference-currency profit of a trade of trade_notional."""
        return self.trade_notional * profit_pct / 100.0


class OpportunityFinder(Protocol):
    """Common contract of the opportunity finders."""

    def find(
        self,
        quotes: Mapping[str, PriceQuote],
        venue_rates: Sequence[VenueRate],
        tokens: Sequence[Token],
        constraints: FinderConstraints,
    ) -> list[Opportunity]: ...


def tradeable_symbols(
    quotes: Mapping[str, PriceQuote],
    tokens: Sequence[Token],
) -> list[str]:
    """
    Symbols of the tokens with a usable quote, in token order.

    Tokens without price data are dropped here so the finders never
    divide by a missing or zero price.
    """
    symbols: list[str] = []
    for token in tokens:
        quote = quotes.get(token.symbol)
        if quote is not None and is_usable_price(quote.price):
            symbols.append(token.symbol)
    return symbols
