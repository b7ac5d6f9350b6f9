"""Market data module: token universe, price cache, upstream prices, analytics and gas."""

from mev_dashboard.market.analytics import MarketAnalytics
from mev_dashboard.market.gas import GasTracker
from mev_dashboard.market.price_cache import PriceCache
from mev_dashboard.market.tokens import DEFAULT_TOKENS, DEFAULT_VENUES
from mev_dashboard.market.upstream import CoinGeckoClient, PriceSource, UpstreamFetchError


__all__ = [
    "CoinGeckoClient",
    "DEFAULT_TOKENS",
    "DEFAULT_VENUES",
    "GasTracker",
    "MarketAnalytics",
    "PriceCache",
    "PriceSource",
    "UpstreamFetchError",
]
