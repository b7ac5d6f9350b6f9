"""Telemetry module for logging, metrics, and reporting."""

from mev_dashboard.telemetry.logger import AsyncLogger, setup_logging
from mev_dashboard.telemetry.metrics import MetricsCollector, SimulationStats
from mev_dashboard.telemetry.reporter import CLIReporter


__all__ = [
    "AsyncLogger",
    "CLIReporter",
    "MetricsCollector",
    "SimulationStats",
    "setup_logging",
]
