from __future__ import annotations

import random

from ..utils.vector import Vector2


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_gaussian_vector(self, std: float) -> Vector2:
        return Vector2(self._random.gauss(0.0, std), self._random.gauss(0.0, std))
