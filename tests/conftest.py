"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

import random

import pytest

from mev_dashboard.config.settings import Settings
from mev_dashboard.core.engine import SimulationEngine
from mev_dashboard.core.event_bus import EventBus
from mev_dashboard.core.types import (
    Hop,
    SimpleOpportunity,
    Token,
    TriangularOpportunity,
    Venue,
)
from mev_dashboard.persistence.store import KeyValueStore
from mev_dashboard.utils.time import get_timestamp_ms
from tests.mocks import no_sleep


# =============================================================================
# Randomness
# =============================================================================


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(1234)


# =============================================================================
# Reference Data Fixtures
# =============================================================================


@pytest.fixture
def venue_a() -> Venue:
    """Zero-fee venue A."""
    return Venue("venue_a", "Venue A", fee_pct=0.0, gas_cost=0.0, liquidity_rating=5)


@pytest.fixture
def venue_b() -> Venue:
    """Zero-fee venue B."""
    return Venue("venue_b", "Venue B", fee_pct=0.0, gas_cost=0.0, liquidity_rating=5)


@pytest.fixture
def tokens() -> list[Token]:
    """Small token universe."""
    return [
        Token("SOL", 120.0, "Solana", "solana"),
        Token("USDC", 1.0, "USD Coin", "usd-coin"),
        Token("ETH", 3000.0, "Ether", "ethereum"),
        Token("RAY", 3.5, "Raydium", "raydium"),
        Token("JUP", 2.8, "Jupiter", None),
    ]


# =============================================================================
# Opportunity Fixtures
# =============================================================================


@pytest.fixture
def simple_opportunity() -> SimpleOpportunity:
    """Fresh 1.5% cross-venue opportunity on a 1000 USD position."""
    return SimpleOpportunity(
        from_token="SOL",
        to_token="USDC",
        buy_venue="venue_a",
        sell_venue="venue_b",
        buy_price=120.0,
        sell_price=121.8,
        profit_pct=1.5,
        estimated_profit=15.0,
        timestamp_ms=get_timestamp_ms(),
        notional=1000.0,
        confidence=80.0,
    )


@pytest.fixture
def triangular_opportunity() -> TriangularOpportunity:
    """Fresh 1% triangular opportunity on a 1000 USD position."""
    return TriangularOpportunity(
        base_token="USDC",
        route=(
            Hop("USDC", "SOL", "venue_a", 1 / 120.0),
            Hop("SOL", "ETH", "venue_b", 120.0 / 3000.0),
            Hop("ETH", "USDC", "venue_a", 3030.0),
        ),
        profit_pct=1.0,
        estimated_profit=10.0,
        timestamp_ms=get_timestamp_ms(),
        notional=1000.0,
    )


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def event_bus() -> EventBus:
    """Fresh event bus."""
    return EventBus()


@pytest.fixture
def settings() -> Settings:
    """Reproducible settings without network access or persistence."""
    return Settings(
        _env_file=None,
        random_seed=7,
        use_upstream_prices=False,
        data_dir=None,
        min_latency_ms=0,
        max_latency_ms=0,
    )


@pytest.fixture
def engine(settings: Settings) -> SimulationEngine:
    """Engine with an in-memory store and instant simulated latency."""
    return SimulationEngine(settings, store=KeyValueStore(), sleep=no_sleep)
