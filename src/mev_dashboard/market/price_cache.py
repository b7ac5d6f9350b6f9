"""
Price cache with time-to-live.

Holds the latest quote per token and shields callers from refreshing
too often. Prices come from an optional upstream source and fall back
to a bounded random walk, so every known token always has a price
after the first refresh.
"""

import logging
import random
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType

from mev_dashboard.config.constants import (
    DEFAULT_PRICE_TTL_MS,
    MAX_PRICE_DRIFT,
    PRICE_WALK_VOLATILITY,
)
from mev_dashboard.core.event_bus import EventBus, EventType
from mev_dashboard.core.types import PriceQuote, PriceSnapshot, RandomSource, Token
from mev_dashboard.market.upstream import PriceSource, UpstreamFetchError, UpstreamPrice
from mev_dashboard.utils.math import clamp, safe_divide
from mev_dashboard.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)

SOURCE_SYNTHETIC = "synthetic"
SOURCE_UPSTREAM = "coingecko"


class PriceCache:
    """
    TTL price cache for the tracked token universe.

    The cache is the only owner of its quotes: refresh_all replaces the
    whole snapshot, and callers only ever see a read-only mapping of
    frozen quotes.
    """

    def __init__(
        self,
        tokens: Iterable[Token],
        rng: RandomSource | None = None,
        event_bus: EventBus | None = None,
        upstream: PriceSource | None = None,
        ttl_ms: int = DEFAULT_PRICE_TTL_MS,
        volatility: float = PRICE_WALK_VOLATILITY,
        max_drift: float = MAX_PRICE_DRIFT,
        clock: Callable[[], int] = get_timestamp_ms,
    ) -> None:
        """
        Initialize price cache.

        Args:
            tokens: Token universe to track.
            rng: Random source for the random walk.
            event_bus: Bus to publish PRICES_UPDATED on.
            upstream: Optional real price source.
            ttl_ms: Cache lifetime in milliseconds.
            volatility: Standard deviation of a random-walk step.
            max_drift: Maximum relative distance from the base price.
            clock: Millisecond clock.
        """
        if ttl_ms < 0:
            raise ValueError(f"ttl_ms must be non-negative, got {ttl_ms}")

        self._tokens = {t.symbol: t for t in tokens}
        self._rng: RandomSource = rng or random.Random()
        self._event_bus = event_bus
        self._upstream = upstream
        self._ttl_ms = ttl_ms
        self._volatility = volatility
        self._max_drift = max_drift
        self._clock = clock

        self._quotes: dict[str, PriceQuote] = {}
        self._snapshot: Mapping[str, PriceQuote] = MappingProxyType({})
        self._last_refresh_ms: int | None = None
        self._refresh_count = 0
        self._upstream_failures = 0

    def get(self, token: str) -> PriceQuote | None:
        """
        Get the cached quote for a token.

        Args:
            token: Token symbol.

        Returns:
            Quote, or None on a cache miss.
        """
        return self._quotes.get(token)

    def snapshot(self) -> Mapping[str, PriceQuote]:
        """Read-only view of the current quotes."""
        return self._snapshot

    def is_fresh(self) -> bool:
        """Whether the cache is younger than its TTL."""
        if self._last_refresh_ms is None:
            return False
        return self._clock() - self._last_refresh_ms < self._ttl_ms

    async def refresh_all(self, force: bool = False) -> Mapping[str, PriceQuote]:
        """
        Refresh every tracked token unless the cache is still fresh.

        Within the TTL the existing snapshot object is returned as is.
        Never raises for upstream problems.

        Args:
            force: Refresh even when the cache is fresh.

        Returns:
            Read-only mapping of token symbol to quote.
        """
        if not force and self.is_fresh():
            return self._snapshot

        now = self._clock()
        fetched = await self._fetch_upstream()

        quotes: dict[str, PriceQuote] = {}
        for symbol, token in self._tokens.items():
            upstream_price = fetched.get(symbol)
            if upstream_price is not None:
                quotes[symbol] = PriceQuote(
                    token=symbol,
                    price=upstream_price.price,
                    change_24h=upstream_price.change_24h,
                    last_updated_ms=now,
                    source=SOURCE_UPSTREAM,
                )
            else:
                quotes[symbol] = self._synthesize(token, now)

        self._quotes = quotes
        self._snapshot = MappingProxyType(dict(quotes))
        self._last_refresh_ms = now
        self._refresh_count += 1

        logger.debug(
            f"Refreshed {len(quotes)} prices "
            f"({len(fetched)} upstream, {len(quotes) - len(fetched)} synthetic)"
        )

        if self._event_bus is not None:
            await self._event_bus.emit(
                EventType.PRICES_UPDATED,
                PriceSnapshot(quotes=self._snapshot, timestamp_ms=now),
                source="price_cache",
            )

        return self._snapshot

    async def _fetch_upstream(self) -> dict[str, UpstreamPrice]:
        """Try the upstream source, returning nothing on failure."""
        if self._upstream is None:
            return {}

        try:
            fetched = await self._upstream.fetch_prices(self._tokens.values())
        except UpstreamFetchError as e:
            self._upstream_failures += 1
            logger.warning(f"Upstream price fetch failed, using synthetic prices: {e}")
            return {}

        return {s: p for s, p in fetched.items() if s in self._tokens and p.price > 0}

    def _synthesize(self, token: Token, now: int) -> PriceQuote:
        """Take one bounded random-walk step from the previous price."""
        previous = self._quotes.get(token.symbol)
        anchor = token.base_price
        last = previous.price if previous is not None and previous.price > 0 else anchor

        step = self._rng.gauss(0.0, self._volatility)
        price = clamp(
            last * (1.0 + step),
            anchor * (1.0 - self._max_drift),
            anchor * (1.0 + self._max_drift),
        )

        return PriceQuote(
            token=token.symbol,
            price=price,
            change_24h=safe_divide(price - anchor, anchor) * 100.0,
            last_updated_ms=now,
            source=SOURCE_SYNTHETIC,
        )

    @property
    def tokens(self) -> list[Token]:
        """Tracked tokens."""
        return list(self._tokens.values())

    @property
    def ttl_ms(self) -> int:
        """Cache lifetime in milliseconds."""
        return self._ttl_ms

    @property
    def last_refresh_ms(self) -> int | None:
        """Time of the last refresh, None before the first one."""
        return self._last_refresh_ms

    @property
    def refresh_count(self) -> int:
        """Number of refreshes performed."""
        return self._refresh_count

    @property
    def upstream_failures(self) -> int:
        """Number of upstream fetches that fell back to synthesis."""
        return self._upstream_failures

    @property
    def size(self) -> int:
        """Number of cached quotes."""
        return len(self._quotes)
