from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .vector import Vector2

SINGULAR_EPSILON = 1e-6


@dataclass(frozen=True, slots=True)
class Matrix2:
    """Row-major 2x2 matrix ``[[m11, m12], [m21, m22]]``."""

    m11: float
    m12: float
    m21: float
    m22: float

    @staticmethod
    def identity() -> "Matrix2":
        return Matrix2(1.0, 0.0, 0.0, 1.0)

    @staticmethod
    def zero() -> "Matrix2":
        return Matrix2(0.0, 0.0, 0.0, 0.0)

    @staticmethod
    def diagonal(a: float, b: float) -> "Matrix2":
        return Matrix2(a, 0.0, 0.0, b)

    def multiply_vector(self, v: Vector2) -> Vector2:
        return Vector2(
            self.m11 * v.x + self.m12 * v.y,
            self.m21 * v.x + self.m22 * v.y,
        )

    def multiply(self, other: "Matrix2") -> "Matrix2":
        return Matrix2(
            self.m11 * other.m11 + self.m12 * other.m21,
            self.m11 * other.m12 + self.m12 * other.m22,
            self.m21 * other.m11 + self.m22 * other.m21,
            self.m21 * other.m12 + self.m22 * other.m22,
        )

    def transpose(self) -> "Matrix2":
        return Matrix2(self.m11, self.m21, self.m12, self.m22)

    def add(self, other: "Matrix2") -> "Matrix2":
        return Matrix2(
            self.m11 + other.m11,
            self.m12 + other.m12,
            self.m21 + other.m21,
            self.m22 + other.m22,
        )

    def subtract(self, other: "Matrix2") -> "Matrix2":
        return Matrix2(
            self.m11 - other.m11,
            self.m12 - other.m12,
            self.m21 - other.m21,
            self.m22 - other.m22,
        )

    def determinant(self) -> float:
        return self.m11 * self.m22 - self.m12 * self.m21

    def trace(self) -> float:
        return self.m11 + self.m22

    def inverse(self) -> Optional["Matrix2"]:
        """Return the inverse, or ``None`` when ``|det| < 1e-6``."""
        det = self.determinant()
        if abs(det) < SINGULAR_EPSILON:
            return None
        inv_det = 1.0 / det
        return Matrix2(
            self.m22 * inv_det,
            -self.m12 * inv_det,
            -self.m21 * inv_det,
            self.m11 * inv_det,
        )

    def __matmul__(self, other: "Matrix2") -> "Matrix2":
        return self.multiply(other)
