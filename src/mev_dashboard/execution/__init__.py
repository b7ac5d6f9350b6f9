"""Execution module for simulated trades and risk control."""

from mev_dashboard.execution.history import TradeHistory, TradeSummary
from mev_dashboard.execution.risk import RiskCheckResult, RiskLimits, RiskManager
from mev_dashboard.execution.simulator import ExecutionSimulator, SimulatorConfig


__all__ = [
    "ExecutionSimulator",
    "RiskCheckResult",
    "RiskLimits",
    "RiskManager",
    "SimulatorConfig",
    "TradeHistory",
    "TradeSummary",
]
