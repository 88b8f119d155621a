"""
Uniform [0, 1) random sources.

Every randomized path in the engine takes one of these as an injected
callable, so a seeded or scripted source replays a spin exactly.
"""

import random
import secrets
from typing import Callable, Iterable, List

RandomSource = Callable[[], float]


class TrueRNG:
    """
    Cryptographically strong source built on `secrets`, used for live play.
    Not reproducible.
    """

    PRECISION = 10**12

    def __call__(self) -> float:
        return self.random_float()

    def random_float(self) -> float:
        """Returns a random float in the range [0.0, 1.0)."""
        return secrets.randbelow(self.PRECISION) / self.PRECISION


class SeededRNG:
    """Reproducible source: the same seed yields the same draw sequence."""

    def __init__(self, seed: int):
        self.seed = seed
        self._random = random.Random(seed)

    def __call__(self) -> float:
        return self._random.random()


class ScriptedRNG:
    """
    Replays a fixed list of draws, cycling when exhausted.
    Meant for tests and for replaying externally sourced outcomes.
    """

    def __init__(self, values: Iterable[float]):
        self.values: List[float] = list(values)
        if not self.values:
            raise ValueError("ScriptedRNG needs at least one value")
        for value in self.values:
            if not 0.0 <= value < 1.0:
                raise ValueError(f"Scripted draw {value} is outside [0, 1)")
        self.cursor = 0

    def __call__(self) -> float:
        value = self.values[self.cursor % len(self.values)]
        self.cursor += 1
        return value
