"""
Simulation constants and configuration defaults.

This module contains the hardcoded values used throughout the simulation
engine. Values are organized by category for easy maintenance and auditing.
"""

from typing import Final

from mev_dashboard.core.types import RiskProfile


# =============================================================================
# Upstream Price Source
# =============================================================================

COINGECKO_API_URL: Final[str] = "https://api.coingecko.com/api/v3"
ENDPOINT_SIMPLE_PRICE: Final[str] = "/simple/price"

# Reference currency used by every synthesized price
REFERENCE_CURRENCY: Final[str] = "usd"

DEFAULT_UPSTREAM_TIMEOUT: Final[float] = 5.0  # seconds


# =============================================================================
# Scheduling
# =============================================================================

DEFAULT_TICK_INTERVAL_MS: Final[int] = 5_000
DEFAULT_PRICE_TTL_MS: Final[int] = 30_000
DEFAULT_GAS_REFRESH_INTERVAL_MS: Final[int] = 15_000


# =============================================================================
# Price Simulation
# =============================================================================

# Standard deviation of one random-walk step (1%)
PRICE_WALK_VOLATILITY: Final[float] = 0.01

# Synthetic prices never drift further than this from the token base price
MAX_PRICE_DRIFT: Final[float] = 0.20

# Per-quote random jitter applied on top of the fixed venue offset
DEFAULT_RATE_JITTER: Final[float] = 0.004

# Fixed venue offsets are bucketed into [-MAX_VENUE_OFFSET, +MAX_VENUE_OFFSET]
MAX_VENUE_OFFSET: Final[float] = 0.005

# Spread width = SPREAD_CEILING - SPREAD_PER_LIQUIDITY * rating
SPREAD_CEILING: Final[float] = 0.006
SPREAD_PER_LIQUIDITY: Final[float] = 0.001
MIN_SPREAD: Final[float] = 0.0005


# =============================================================================
# Opportunity Detection
# =============================================================================

# Thresholds are percentages (0.5 = 0.5%)
DEFAULT_MIN_PROFIT_THRESHOLD: Final[float] = 0.5
DEFAULT_TRIANGULAR_PROFIT_THRESHOLD: Final[float] = 0.8
DEFAULT_COMPLEX_PROFIT_THRESHOLD: Final[float] = 1.2

# Fee charged per hop for triangular and complex routes (0.25%)
DEFAULT_FEE_PER_TRADE: Final[float] = 0.0025

DEFAULT_MAX_PER_BUCKET: Final[int] = 5
DEFAULT_VENUE_SAMPLE_SIZE: Final[int] = 3
DEFAULT_TRIANGULAR_SAMPLES: Final[int] = 8
DEFAULT_COMPLEX_SAMPLES: Final[int] = 4

COMPLEX_MIN_TOKENS: Final[int] = 4
COMPLEX_MAX_TOKENS: Final[int] = 6

# Routes with more hops than this are labelled high complexity
HIGH_COMPLEXITY_HOPS: Final[int] = 4

# Position sizes are denominated in the native token
NATIVE_TOKEN: Final[str] = "SOL"
DEFAULT_BASE_TOKENS: Final[tuple[str, ...]] = ("SOL", "USDC")

# Profit at which the profit component of the confidence score saturates
CONFIDENCE_PROFIT_CAP: Final[float] = 5.0


# =============================================================================
# Execution Simulation
# =============================================================================

SUCCESS_PROBABILITY: Final[dict[RiskProfile, float]] = {
    RiskProfile.CONSERVATIVE: 0.85,
    RiskProfile.MODERATE: 0.75,
    RiskProfile.AGGRESSIVE: 0.65,
}

FAILURE_REASONS: Final[tuple[str, ...]] = (
    "Insufficient liquidity",
    "Price slippage too high",
    "Blockchain congestion",
    "Transaction reverted",
)

REASON_STALE: Final[str] = "Opportunity expired"
REASON_BELOW_THRESHOLD: Final[str] = "Below profit threshold"
REASON_TIMEOUT: Final[str] = "Execution timed out"

DEFAULT_MAX_OPPORTUNITY_AGE_MS: Final[int] = 60_000
DEFAULT_MIN_LATENCY_MS: Final[int] = 200
DEFAULT_MAX_LATENCY_MS: Final[int] = 2_000
DEFAULT_EXECUTION_TIMEOUT_MS: Final[int] = 30_000
DEFAULT_PROFIT_VARIANCE: Final[float] = 0.10
DEFAULT_FAILURE_LOSS_PCT: Final[float] = 2.0

DEFAULT_MAX_CONCURRENT_TRADES: Final[int] = 3
DEFAULT_MIN_TIME_BETWEEN_TRADES_MS: Final[int] = 5_000


# =============================================================================
# User Settings Defaults
# =============================================================================

DEFAULT_MAX_TRANSACTION_SIZE: Final[float] = 15.0  # native token units
DEFAULT_GAS_LIMIT: Final[int] = 35
DEFAULT_STOP_LOSS_PCT: Final[float] = -3.0


# =============================================================================
# Gas Simulation
# =============================================================================

GAS_BASE_PRICE: Final[float] = 25.0
GAS_AMPLITUDE: Final[float] = 10.0
GAS_NOISE: Final[float] = 2.5
GAS_MIN_PRICE: Final[float] = 1.0
GAS_HISTORY_SIZE: Final[int] = 144

# Congestion bands relative to the rolling average
GAS_LOW_RATIO: Final[float] = 0.8
GAS_HIGH_RATIO: Final[float] = 1.2


# =============================================================================
# Market Analytics
# =============================================================================

# Price samples kept per token
PRICE_HISTORY_SIZE: Final[int] = 48

# Minimum spacing between recorded samples
ANALYTICS_SAMPLE_INTERVAL_MS: Final[int] = 30_000

# Volatility is reported as 0 below this many samples
MIN_VOLATILITY_SAMPLES: Final[int] = 5

# Moving-average windows of the trend signal
TREND_SHORT_WINDOW: Final[int] = 5
TREND_LONG_WINDOW: Final[int] = 20

# Percentiles of the window used as support and resistance
SUPPORT_PERCENTILE: Final[float] = 0.1
RESISTANCE_PERCENTILE: Final[float] = 0.9


# =============================================================================
# History & Persistence
# =============================================================================

DEFAULT_TRADE_LOG_SIZE: Final[int] = 100
DEFAULT_HISTORY_SIZE: Final[int] = 500

SETTINGS_FILE_NAME: Final[str] = "settings.json"
STORE_KEY_SETTINGS: Final[str] = "settings"
STORE_KEY_TRADE_LOG: Final[str] = "trade_log"


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Reporter refresh interval (seconds)
REPORT_INTERVAL: Final[float] = 1.0

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000
