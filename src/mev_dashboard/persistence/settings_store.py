"""
Persisted user settings.

User-editable preferences survive restarts. Values read back from the
store are validated field by field so one bad value never discards the
rest.
"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mev_dashboard.config.constants import (
    DEFAULT_GAS_LIMIT,
    DEFAULT_MAX_TRANSACTION_SIZE,
    DEFAULT_MIN_PROFIT_THRESHOLD,
    DEFAULT_STOP_LOSS_PCT,
    STORE_KEY_SETTINGS,
)
from mev_dashboard.config.settings import Settings
from mev_dashboard.core.types import RiskProfile
from mev_dashboard.persistence.store import KeyValueStore


logger = logging.getLogger(__name__)


class UserSettings(BaseModel):
    """User preferences editable at runtime."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    risk_profile: RiskProfile = RiskProfile.MODERATE
    min_profit_threshold: float = Field(default=DEFAULT_MIN_PROFIT_THRESHOLD, ge=0.0, le=100.0)
    max_transaction_size: float = Field(default=DEFAULT_MAX_TRANSACTION_SIZE, gt=0.0)
    gas_limit: int = Field(default=DEFAULT_GAS_LIMIT, ge=0)
    auto_execute: bool = False
    notifications: bool = True
    stop_loss_pct: float = Field(default=DEFAULT_STOP_LOSS_PCT, ge=-100.0, le=0.0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "UserSettings":
        """Defaults taken from the application settings."""
        return cls(
            risk_profile=settings.risk_profile,
            min_profit_threshold=settings.min_profit_threshold,
            max_transaction_size=settings.max_transaction_size,
            gas_limit=settings.gas_limit,
            auto_execute=settings.auto_execute,
            stop_loss_pct=settings.stop_loss_pct,
        )


class SettingsStore:
    """Loads, validates and saves UserSettings in a key-value store."""

    def __init__(
        self,
        store: KeyValueStore,
        defaults: UserSettings | None = None,
        key: str = STORE_KEY_SETTINGS,
    ) -> None:
        self._store = store
        self._defaults = defaults or UserSettings()
        self._key = key
        self._current = self._defaults

    def load(self) -> UserSettings:
        """
        Read settings, falling back to defaults per field.

        Unknown keys and invalid values are dropped with a warning.

        Returns:
            Effective settings.
        """
        stored = self._store.get(self._key)
        merged: dict[str, Any] = self._defaults.model_dump()

        if stored is not None and not isinstance(stored, dict):
            logger.warning(f"Ignoring stored settings of type {type(stored).__name__}")
            stored = None

        for name, value in (stored or {}).items():
            if name not in UserSettings.model_fields:
                logger.warning(f"Ignoring unknown stored setting '{name}'")
                continue
            try:
                UserSettings.model_validate({**merged, name: value})
            except ValidationError:
                logger.warning(f"Ignoring invalid stored value for '{name}': {value!r}")
                continue
            merged[name] = value

        self._current = UserSettings.model_validate(merged)
        return self._current

    def save(self, settings: UserSettings) -> None:
        """Persist settings and make them current."""
        self._store.set(self._key, settings.model_dump(mode="json"))
        self._current = settings

    def update(self, **changes: Any) -> UserSettings:
        """
        Validate and persist a partial change.

        Raises:
            ValidationError: If a value is invalid or a key is unknown.

        Returns:
            Updated settings.
        """
        updated = UserSettings.model_validate({**self._current.model_dump(), **changes})
        self.save(updated)
        logger.info(f"User settings updated: {', '.join(sorted(changes))}")
        return updated

    @property
    def current(self) -> UserSettings:
        """Effective settings."""
        return self._current

    @property
    def defaults(self) -> UserSettings:
        """Defaults applied where nothing valid is stored."""
        return self._defaults
