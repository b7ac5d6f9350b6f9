"""
Market data fakes for testing.

Provides a controllable upstream price source and builders for quotes
and venue rates, so finders can be tested against exact prices.
"""

from collections.abc import Iterable, Mapping

from mev_dashboard.core.types import PriceQuote, Token, Venue, VenueRate
from mev_dashboard.market.upstream import UpstreamFetchError, UpstreamPrice
from mev_dashboard.utils.time import get_timestamp_ms


class FakePriceSource:
    """
    Upstream price source returning canned prices.

    Set `error` to make every fetch raise it.
    """

    def __init__(
        self,
        prices: Mapping[str, float] | None = None,
        error: UpstreamFetchError | None = None,
    ) -> None:
        self.prices = dict(prices or {})
        self.error = error
        self.calls = 0
        self.closed = False

    async def fetch_prices(self, tokens: Iterable[Token]) -> dict[str, UpstreamPrice]:
        self.calls += 1
        if self.error is not None:
            raise self.error

        symbols = {token.symbol for token in tokens}
        return {
            symbol: UpstreamPrice(price=price, change_24h=1.0)
            for symbol, price in self.prices.items()
            if symbol in symbols
        }

    async def close(self) -> None:
        self.closed = True


def make_quote(token: str, price: float) -> PriceQuote:
    """Quote stamped with the current time."""
    return PriceQuote(token=token, price=price, change_24h=0.0, last_updated_ms=get_timestamp_ms())


def make_rate(token: str, venue: Venue, bid: float, ask: float) -> VenueRate:
    """Venue rate with the given bid and ask."""
    return VenueRate(
        token=token,
        venue=venue,
        mid=(bid + ask) / 2,
        bid=bid,
        ask=ask,
        timestamp_ms=get_timestamp_ms(),
    )
