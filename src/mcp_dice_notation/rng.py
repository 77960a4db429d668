from __future__ import annotations

import random
import secrets
from typing import Protocol


class RandomSource(Protocol):
    """Anything that can draw a uniform integer from an inclusive range.

    ``random.Random`` and ``secrets.SystemRandom`` both qualify.
    """

    def randint(self, a: int, b: int) -> int: ...


def system_random() -> RandomSource:
    # A fresh instance per roll, so concurrent rolls never share state.
    return secrets.SystemRandom()


def seeded_random(seed: int) -> RandomSource:
    return random.Random(seed)


def describe(rng: RandomSource) -> str:
    if isinstance(rng, secrets.SystemRandom):
        return "secrets.SystemRandom"
    if isinstance(rng, random.Random):
        return "random.Random"
    return type(rng).__name__
