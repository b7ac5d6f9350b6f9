"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mev_dashboard.config.constants import (
    COINGECKO_API_URL,
    DEFAULT_COMPLEX_PROFIT_THRESHOLD,
    DEFAULT_COMPLEX_SAMPLES,
    DEFAULT_EXECUTION_TIMEOUT_MS,
    DEFAULT_FAILURE_LOSS_PCT,
    DEFAULT_FEE_PER_TRADE,
    DEFAULT_GAS_LIMIT,
    DEFAULT_GAS_REFRESH_INTERVAL_MS,
    DEFAULT_HISTORY_SIZE,
    DEFAULT_MAX_CONCURRENT_TRADES,
    DEFAULT_MAX_LATENCY_MS,
    DEFAULT_MAX_OPPORTUNITY_AGE_MS,
    DEFAULT_MAX_PER_BUCKET,
    DEFAULT_MAX_TRANSACTION_SIZE,
    DEFAULT_MIN_LATENCY_MS,
    DEFAULT_MIN_PROFIT_THRESHOLD,
    DEFAULT_MIN_TIME_BETWEEN_TRADES_MS,
    DEFAULT_PRICE_TTL_MS,
    DEFAULT_PROFIT_VARIANCE,
    DEFAULT_RATE_JITTER,
    DEFAULT_STOP_LOSS_PCT,
    DEFAULT_TICK_INTERVAL_MS,
    DEFAULT_TRADE_LOG_SIZE,
    DEFAULT_TRIANGULAR_PROFIT_THRESHOLD,
    DEFAULT_TRIANGULAR_SAMPLES,
    DEFAULT_UPSTREAM_TIMEOUT,
    DEFAULT_VENUE_SAMPLE_SIZE,
    REPORT_INTERVAL,
)
from mev_dashboard.core.types import RiskProfile


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every option can be overridden via an environment variable of the
    same name. Values a user may change at runtime (risk profile,
    thresholds, auto-execute) act as defaults for the persisted
    user settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Opportunity Detection
    # =========================================================================

    min_profit_threshold: float = Field(
        default=DEFAULT_MIN_PROFIT_THRESHOLD,
        ge=0.0,
        le=100.0,
        description="Minimum profit percentage for any published opportunity",
    )

    triangular_profit_threshold: float = Field(
        default=DEFAULT_TRIANGULAR_PROFIT_THRESHOLD,
        ge=0.0,
        le=100.0,
        description="Minimum profit percentage for triangular routes",
    )

    complex_profit_threshold: float = Field(
        default=DEFAULT_COMPLEX_PROFIT_THRESHOLD,
        ge=0.0,
        le=100.0,
        description="Minimum profit percentage for multi-hop routes",
    )

    fee_per_trade: float = Field(
        default=DEFAULT_FEE_PER_TRADE,
        ge=0.0,
        le=0.05,
        description="Fee charged per hop on triangular and complex routes",
    )

    max_opportunities_per_bucket: int = Field(
        default=DEFAULT_MAX_PER_BUCKET,
        ge=1,
        le=50,
        description="Number of opportunities kept per published bucket",
    )

    venue_sample_size: int = Field(default=DEFAULT_VENUE_SAMPLE_SIZE, ge=2, le=20)
    triangular_samples: int = Field(default=DEFAULT_TRIANGULAR_SAMPLES, ge=1, le=100)
    complex_samples: int = Field(default=DEFAULT_COMPLEX_SAMPLES, ge=1, le=100)

    rate_jitter: float = Field(
        default=DEFAULT_RATE_JITTER,
        ge=0.0,
        le=0.05,
        description="Bound of the random jitter applied to venue rates",
    )

    # =========================================================================
    # Trading Configuration
    # =========================================================================

    max_transaction_size: float = Field(
        default=DEFAULT_MAX_TRANSACTION_SIZE,
        gt=0.0,
        description="Position size per trade in native token units",
    )

    risk_profile: RiskProfile = Field(
        default=RiskProfile.MODERATE,
        description="Risk profile driving simulated success probability",
    )

    auto_execute: bool = Field(
        default=False,
        description="Automatically execute the best opportunity on each tick",
    )

    max_concurrent_trades: int = Field(
        default=DEFAULT_MAX_CONCURRENT_TRADES,
        ge=1,
        le=10,
        description="Maximum number of simulated trades in flight",
    )

    min_time_between_trades_ms: int = Field(
        default=DEFAULT_MIN_TIME_BETWEEN_TRADES_MS,
        ge=0,
        description="Cooldown between automatically executed trades",
    )

    gas_limit: int = Field(default=DEFAULT_GAS_LIMIT, ge=0)

    stop_loss_pct: float = Field(
        default=DEFAULT_STOP_LOSS_PCT,
        le=0.0,
        ge=-100.0,
        description="Session loss, as percent of position value, that halts auto-execution",
    )

    # =========================================================================
    # Execution Simulation
    # =========================================================================

    max_opportunity_age_ms: int = Field(default=DEFAULT_MAX_OPPORTUNITY_AGE_MS, ge=0)
    min_latency_ms: int = Field(default=DEFAULT_MIN_LATENCY_MS, ge=0)
    max_latency_ms: int = Field(default=DEFAULT_MAX_LATENCY_MS, ge=0)

    execution_timeout_ms: int = Field(
        default=DEFAULT_EXECUTION_TIMEOUT_MS,
        ge=1,
        description="Simulated trades running longer than this resolve as timeouts",
    )

    profit_variance: float = Field(
        default=DEFAULT_PROFIT_VARIANCE,
        ge=0.0,
        le=0.5,
        description="Relative variance applied to realized profit on success",
    )

    failure_loss_pct: float = Field(
        default=DEFAULT_FAILURE_LOSS_PCT,
        ge=0.0,
        le=100.0,
        description="Loss on a failed trade as percent of position value",
    )

    # =========================================================================
    # Scheduling
    # =========================================================================

    tick_interval_ms: int = Field(
        default=DEFAULT_TICK_INTERVAL_MS,
        ge=100,
        le=600_000,
        description="Interval between opportunity feed ticks",
    )

    price_ttl_ms: int = Field(
        default=DEFAULT_PRICE_TTL_MS,
        ge=0,
        description="Maximum age of cached prices before a refresh regenerates them",
    )

    gas_refresh_interval_ms: int = Field(default=DEFAULT_GAS_REFRESH_INTERVAL_MS, ge=100)

    # =========================================================================
    # Upstream Prices
    # =========================================================================

    use_upstream_prices: bool = Field(
        default=False,
        description="Try CoinGecko before falling back to synthetic prices",
    )

    coingecko_url: str = Field(default=COINGECKO_API_URL)

    upstream_timeout: float = Field(default=DEFAULT_UPSTREAM_TIMEOUT, gt=0.0, le=60.0)

    # =========================================================================
    # Persistence
    # =========================================================================

    data_dir: Path | None = Field(
        default=None,
        description="Directory for persisted settings and trade log (memory only if unset)",
    )

    trade_log_size: int = Field(default=DEFAULT_TRADE_LOG_SIZE, ge=1, le=10_000)
    history_size: int = Field(default=DEFAULT_HISTORY_SIZE, ge=1, le=100_000)

    # =========================================================================
    # Operation Mode
    # =========================================================================

    random_seed: int | None = Field(
        default=None,
        description="Seed for the shared random source (reproducible runs)",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    report_interval: float = Field(
        default=REPORT_INTERVAL,
        gt=0.0,
        le=60.0,
        description="Seconds between terminal panel refreshes",
    )

    dashboard_host: str = Field(default="127.0.0.1")
    dashboard_port: int = Field(default=8000, ge=1, le=65535)

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("min_profit_threshold", mode="after")
    @classmethod
    def validate_profit_threshold(cls, v: float) -> float:
        """Warn if the profit threshold lets almost everything through."""
        if v < 0.01:
            import warnings

            warnings.warn(
                f"Profit threshold {v}% is very low, nearly every route will be published",
                stacklevel=2,
            )
        return v

    @model_validator(mode="after")
    def validate_latency_range(self) -> "Settings":
        """Ensure the simulated latency range is ordered."""
        if self.min_latency_ms > self.max_latency_ms:
            raise ValueError(
                f"min_latency_ms ({self.min_latency_ms}) exceeds "
                f"max_latency_ms ({self.max_latency_ms})"
            )
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def effective_triangular_threshold(self) -> float:
        """Threshold applied to triangular routes."""
        return max(self.min_profit_threshold, self.triangular_profit_threshold)

    @property
    def effective_complex_threshold(self) -> float:
        """Threshold applied to multi-hop routes."""
        return max(self.min_profit_threshold, self.complex_profit_threshold)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()
