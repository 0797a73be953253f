"""
bonding_sim.core.random_source - Seeded Sampling

Every price-path draw in a chart goes through one RandomSource so that a
fixed seed reproduces the candle sequence bit for bit. Chart identifiers
are deliberately NOT drawn from here (see simulation.assembler).

Dependencies: numpy
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


class RandomSource:
    """
    One seeded uniform stream with derived integer and Gaussian samplers.

    Parameters
    ----------
    seed : int, optional
        Seed for the underlying generator. None draws fresh OS entropy.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def random(self) -> float:
        """Uniform sample in [0, 1)."""
        return float(self._rng.random())

    def uniform(self, low: float, high: float) -> float:
        """Uniform sample in [low, high)."""
        if high < low:
            raise ValueError(f"uniform range inverted: ({low}, {high})")
        return self.random() * (high - low) + low

    def uniform_int(self, low: int, high: int) -> int:
        """Uniform integer in [low, high], both ends inclusive."""
        if high < low:
            raise ValueError(f"uniform_int range inverted: ({low}, {high})")
        return int(math.floor(self.random() * (high - low + 1))) + low

    def gaussian(self) -> float:
        """Standard normal via Box-Muller on two draws from this stream."""
        u = 0.0
        v = 0.0
        while u == 0.0:
            u = self.random()
        while v == 0.0:
            v = self.random()
        return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)

    def choice(self, items: Sequence[T]) -> T:
        """Uniformly pick one element."""
        if not items:
            raise ValueError("cannot choose from an empty sequence")
        return items[int(math.floor(self.random() * len(items)))]

    def weighted_choice(self, items: Sequence[T], weights: Sequence[float]) -> T:
        """Pick one element with probability proportional to its weight."""
        if len(items) != len(weights) or not items:
            raise ValueError("items and weights must be non-empty and equal length")
        total = float(sum(weights))
        if total <= 0:
            raise ValueError("weights must sum to a positive value")
        target = self.random() * total
        cumulative = 0.0
        for item, weight in zip(items, weights):
            cumulative += weight
            if target < cumulative:
                return item
        return items[-1]


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean. Pure; never touches a random stream."""
    if len(values) == 0:
        raise ValueError("mean of empty sequence")
    return float(np.mean(values))
