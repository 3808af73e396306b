from __future__ import annotations

from dataclasses import dataclass, field

from ..utils.vector import ZERO, Vector2

DEFAULT_MAX_SPEED = 4.0
DEFAULT_MAX_FORCE = 0.1


@dataclass(slots=True)
class PointMass:
    """Point-mass integrator with an implicit one-tick time step."""

    position: Vector2
    velocity: Vector2 = field(default=ZERO)
    acceleration: Vector2 = field(default=ZERO)
    max_speed: float = DEFAULT_MAX_SPEED
    max_force: float = DEFAULT_MAX_FORCE

    @classmethod
    def at(cls, x: float, y: float, max_speed: float = DEFAULT_MAX_SPEED, max_force: float = DEFAULT_MAX_FORCE) -> "PointMass":
        return cls(position=Vector2(x, y), max_speed=max_speed, max_force=max_force)

    def apply_force(self, force: Vector2) -> None:
        self.acceleration = self.acceleration + force

    def integrate(self) -> None:
        # Clamp before moving so each step advances by a speed-bounded vector.
        self.velocity = (self.velocity + self.acceleration).clamp_magnitude(self.max_speed)
        self.position = self.position + self.velocity
        self.acceleration = ZERO
