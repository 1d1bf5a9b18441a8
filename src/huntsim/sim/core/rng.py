from __future__ import annotations

import random
from typing import Optional

from pygame.math import Vector2


class DeterministicRng:
    """Seedable generator injected into spawn and wander systems.

    ``seed=None`` draws entropy from the OS, so runs are not reproducible.
    """

    def __init__(self, seed: Optional[int]):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_int(self, low: int, high: int) -> int:
        """Integer in the half-open range ``[low, high)``."""
        return self._random.randrange(low, high)

    def next_point(self, half_width: float, half_height: float) -> Vector2:
        return Vector2(
            self._random.uniform(-half_width, half_width),
            self._random.uniform(-half_height, half_height),
        )
