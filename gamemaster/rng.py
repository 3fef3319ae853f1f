"""Random utilities for game rolls."""

from __future__ import annotations

import hashlib
import random
from typing import Sequence, TypeVar

T = TypeVar("T")


def stable_seed(*parts: object) -> int:
    """Derive a 32-bit seed that is identical across processes for the same parts."""

    digest = hashlib.sha256("|".join(str(part) for part in parts).encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big")


class GameRNG:
    """Wraps :mod:`random` so rolls can be replayed from a seed."""

    def __init__(self, seed: int | None = None) -> None:
        self._seed = seed & 0xFFFFFFFF if seed is not None else None
        # nosec B311 - pseudo-RNG acceptable for game mechanics
        self._random = random.Random(self._seed)

    @classmethod
    def for_parts(cls, *parts: object) -> "GameRNG":
        return cls(stable_seed(*parts))

    @property
    def seed(self) -> int | None:
        return self._seed

    def randint(self, a: int, b: int) -> int:
        return self._random.randint(a, b)

    def chance(self, probability: float) -> bool:
        return self._random.random() < probability

    def sample(self, population: Sequence[T], k: int) -> list[T]:
        return self._random.sample(list(population), min(k, len(population)))

    def weighted_choice(self, options: Sequence[T], weights: Sequence[int]) -> T:
        if not options or len(options) != len(weights):
            raise ValueError("weighted_choice needs one weight per option")
        return self._random.choices(list(options), weights=list(weights), k=1)[0]


__all__ = ["GameRNG", "stable_seed"]
