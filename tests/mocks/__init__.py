"""Mock implementations for testing."""

from tests.mocks.market import FakePriceSource, make_quote, make_rate
from tests.mocks.rng import ScriptedRandom
from tests.mocks.timing import FakeClock, no_sleep


__all__ = [
    "FakeClock",
    "FakePriceSource",
    "ScriptedRandom",
    "make_quote",
    "make_rate",
    "no_sleep",
]
