"""Persistence module for user settings and the trade log."""

from mev_dashboard.persistence.settings_store import SettingsStore, UserSettings
from mev_dashboard.persistence.store import KeyValueStore
from mev_dashboard.persistence.trade_log import TradeLog, outcome_record


__all__ = [
    "KeyValueStore",
    "SettingsStore",
    "TradeLog",
    "UserSettings",
    "outcome_record",
]
