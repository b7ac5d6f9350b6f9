"""Utility functions for the simulation engine."""

from mev_dashboard.utils.math import (
    clamp,
    compound_fee_factor,
    format_profit,
    profit_pct_from_factor,
    route_factor,
    safe_divide,
)
from mev_dashboard.utils.scheduler import PeriodicTask
from mev_dashboard.utils.time import (
    LatencyTimer,
    age_ms,
    get_timestamp_ms,
    get_timestamp_us,
)


__all__ = [
    "LatencyTimer",
    "PeriodicTask",
    "age_ms",
    "clamp",
    "compound_fee_factor",
    "format_profit",
    "get_timestamp_ms",
    "get_timestamp_us",
    "profit_pct_from_factor",
    "route_factor",
    "safe_divide",
]
