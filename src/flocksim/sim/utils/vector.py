from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Vector2:
    """Immutable 2D vector.

    Degenerate operations never produce NaN: dividing by exactly zero and
    normalizing a zero-length vector both return the zero vector.
    """

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> "Vector2":
        return Vector2(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector2":
        if scalar == 0:
            return ZERO
        return Vector2(self.x / scalar, self.y / scalar)

    def __neg__(self) -> "Vector2":
        return Vector2(-self.x, -self.y)

    def add(self, other: "Vector2") -> "Vector2":
        return self + other

    def sub(self, other: "Vector2") -> "Vector2":
        return self - other

    def scale(self, scalar: float) -> "Vector2":
        return self * scalar

    def divide(self, scalar: float) -> "Vector2":
        return self / scalar

    def magnitude_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def magnitude(self) -> float:
        return math.sqrt(self.magnitude_squared())

    def normalize(self) -> "Vector2":
        return self / self.magnitude()

    def clamp_magnitude(self, max_length: float) -> "Vector2":
        if self.magnitude_squared() > max_length * max_length:
            return self.normalize() * max_length
        return self

    def squared_distance_to(self, other: "Vector2") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)


ZERO = Vector2(0.0, 0.0)
