"""Dice and probability source — pure math, no I/O.

Every random outcome in the engine goes through a ``Dice`` instance so a
seeded one reproduces a whole fight.
"""
from __future__ import annotations

import random
from typing import Sequence, TypeVar

T = TypeVar("T")


class Dice:
    """Injectable random source."""

    def __init__(self, seed: int | None = None, source: random.Random | None = None) -> None:
        self._rng = source or random.Random(seed)

    def uniform(self) -> float:
        """A float in [0, 1)."""
        return self._rng.random()

    def chance(self, probability: float) -> bool:
        return self.uniform() < probability

    def between(self, low: int, high: int) -> int:
        """Inclusive integer roll. A reversed range collapses to ``low``."""
        if high <= low:
            return low
        return low + int(self.uniform() * (high - low + 1))

    def pick(self, options: Sequence[T]) -> T:
        if not options:
            raise ValueError("Cannot pick from an empty sequence")
        return options[self.between(0, len(options) - 1)]


def damage_roll(dice: Dice, damage_range: Sequence[int]) -> int:
    """Uniform roll inside a ``(min, max)`` damage range."""
    low, high = int(damage_range[0]), int(damage_range[1])
    return dice.between(low, high)
