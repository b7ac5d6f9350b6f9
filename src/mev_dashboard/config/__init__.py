"""Configuration module for the simulation engine."""

from mev_dashboard.config.constants import (
    COINGECKO_API_URL,
    DEFAULT_MIN_PROFIT_THRESHOLD,
    DEFAULT_TICK_INTERVAL_MS,
    SUCCESS_PROBABILITY,
)
from mev_dashboard.config.settings import Settings, get_settings


__all__ = [
    "COINGECKO_API_URL",
    "DEFAULT_MIN_PROFIT_THRESHOLD",
    "DEFAULT_TICK_INTERVAL_MS",
    "SUCCESS_PROBABILITY",
    "Settings",
    "get_settings",
]
