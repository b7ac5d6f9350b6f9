"""
Scripted random source for testing.

Returns queued values for random() and uniform() and records every
call, so tests can pin outcomes and check the draw order.
"""

import random
from collections import deque
from collections.abc import Iterable, Sequence
from typing import TypeVar


T = TypeVar("T")


class ScriptedRandom:
    """
    Deterministic RandomSource.

    Queued values are consumed first; once a queue is empty the call
    falls back to a seeded generator. choice() and sample() pick from
    the front of the sequence.
    """

    def __init__(
        self,
        randoms: Iterable[float] = (),
        uniforms: Iterable[float] = (),
        seed: int = 0,
    ) -> None:
        self._randoms = deque(randoms)
        self._uniforms = deque(uniforms)
        self._fallback = random.Random(seed)
        self.calls: list[str] = []

    def random(self) -> float:
        self.calls.append("random")
        return self._randoms.popleft() if self._randoms else self._fallback.random()

    def uniform(self, a: float, b: float) -> float:
        self.calls.append("uniform")
        return self._uniforms.popleft() if self._uniforms else self._fallback.uniform(a, b)

    def gauss(self, mu: float = 0.0, sigma: float = 1.0) -> float:
        self.calls.append("gauss")
        return mu

    def choice(self, seq: Sequence[T]) -> T:
        self.calls.append("choice")
        return seq[0]

    def sample(self, population: Sequence[T], k: int) -> list[T]:
        self.calls.append("sample")
        return list(population[:k])

    def randint(self, a: int, b: int) -> int:
        self.calls.append("randint")
        return a
