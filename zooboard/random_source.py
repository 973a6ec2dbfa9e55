"""Swappable randomness sources for the generator and park selector."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import List, Optional, TypeVar

from . import rules

T = TypeVar("T")


class RandomSource(ABC):
    """Abstract source of floats in ``[0, 1)``."""

    @abstractmethod
    def next(self) -> float:
        """Return the next value in ``[0, 1)``."""
        ...

    def __call__(self) -> float:
        return self.next()

    @property
    def name(self) -> str:
        return self.__class__.__name__


class LinearCongruentialRandom(RandomSource):
    """Seeded recurrence ``value = (value * 9301 + 49297) % 233280``.

    Reproducible bit for bit for a given integer seed. Not suitable for
    anything beyond shuffling board candidates.
    """

    def __init__(self, seed: int) -> None:
        if isinstance(seed, bool) or not isinstance(seed, int):
            raise TypeError(f"Seed must be an integer, got {type(seed).__name__}")
        self.seed = seed
        self._value = seed

    def next(self) -> float:
        self._value = (self._value * rules.LCG_MULTIPLIER + rules.LCG_INCREMENT) % rules.LCG_MODULUS
        return self._value / rules.LCG_MODULUS


class HostRandom(RandomSource):
    """Host randomness via :class:`random.Random`."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def next(self) -> float:
        return self._rng.random()


class FixedSequenceRandom(RandomSource):
    """Replays a fixed list of values, wrapping around when exhausted."""

    def __init__(self, values: Sequence[float]) -> None:
        if not values:
            raise ValueError("FixedSequenceRandom needs at least one value")
        for value in values:
            if not 0.0 <= value < 1.0:
                raise ValueError(f"Values must lie in [0, 1), got {value}")
        self._values = tuple(values)
        self._index = 0

    def next(self) -> float:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value


def make_random(seed: Optional[int] = None) -> RandomSource:
    """LCG when a seed is given, host randomness otherwise."""

    if seed is not None:
        return LinearCongruentialRandom(seed)
    return HostRandom()


def shuffle(items: Sequence[T], rng: RandomSource) -> List[T]:
    """Fisher-Yates shuffle into a new list; the input is left untouched."""

    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng.next() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


__all__ = [
    "FixedSequenceRandom",
    "HostRandom",
    "LinearCongruentialRandom",
    "RandomSource",
    "make_random",
    "shuffle",
]
