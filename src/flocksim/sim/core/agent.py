from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..systems import steering
from ..utils.vector import ZERO, Vector2
from .config import FlockingConfig, PhysicsConfig, SensorConfig
from .estimator import StateEstimator
from .physics import PointMass

INITIAL_SPEED = 2.0


@dataclass(frozen=True, slots=True)
class BodyState:
    """Read-only copy of one agent's state, taken at the start of a tick."""

    id: int
    x: float
    y: float
    vx: float
    vy: float
    ex: float
    ey: float

    @classmethod
    def of(cls, agent: "Agent") -> "BodyState":
        position = agent.physics.position
        velocity = agent.physics.velocity
        estimate = agent.estimator.state
        return cls(agent.id, position.x, position.y, velocity.x, velocity.y, estimate.x, estimate.y)

    @property
    def position(self) -> Vector2:
        return Vector2(self.x, self.y)

    @property
    def velocity(self) -> Vector2:
        return Vector2(self.vx, self.vy)


def initial_velocity(agent_id: int) -> Vector2:
    direction = Vector2(float(agent_id % 3 - 1), float(agent_id % 5 - 2)).normalize()
    return direction * INITIAL_SPEED


@dataclass(slots=True)
class Agent:
    id: int
    physics: PointMass
    estimator: StateEstimator

    @classmethod
    def spawn(
        cls,
        agent_id: int,
        x: float,
        y: float,
        physics: PhysicsConfig | None = None,
        sensor: SensorConfig | None = None,
    ) -> "Agent":
        physics = physics or PhysicsConfig()
        sensor = sensor or SensorConfig()
        body = PointMass.at(x, y, max_speed=physics.max_speed, max_force=physics.max_force)
        body.velocity = initial_velocity(agent_id)
        estimator = StateEstimator.with_noise(body.position, sensor.process_noise, sensor.measurement_noise)
        return cls(id=agent_id, physics=body, estimator=estimator)

    @property
    def position(self) -> Vector2:
        return self.physics.position

    @property
    def velocity(self) -> Vector2:
        return self.physics.velocity

    @property
    def estimate(self) -> Vector2:
        return self.estimator.state

    def flock(
        self,
        snapshot: Sequence[BodyState],
        width: float = 800.0,
        height: float = 600.0,
        settings: FlockingConfig | None = None,
    ) -> int:
        """Apply the four weighted steering forces; returns the neighbour count."""
        settings = settings or FlockingConfig()
        body = self.physics
        sums = steering.gather_neighbors(body, snapshot, settings.separation_radius, settings.neighbor_radius)
        body.apply_force(steering.separation_force(body, sums) * settings.separation_weight)
        body.apply_force(steering.alignment_force(body, sums) * settings.alignment_weight)
        body.apply_force(steering.cohesion_force(body, sums) * settings.cohesion_weight)
        body.apply_force(steering.edge_avoidance(body, width, height, settings.edge_margin) * settings.edge_weight)
        return sums.neighbor_count

    def integrate(self) -> None:
        self.physics.integrate()

    def update_estimator(self, dt: float, measurement_offset: Vector2 = ZERO) -> bool:
        self.estimator.predict(self.physics.velocity, dt)
        return self.estimator.update(self.physics.position + measurement_offset)

    def edges(self, width: float, height: float) -> None:
        x = self.physics.position.x
        y = self.physics.position.y
        # Strict comparisons: a position exactly on the boundary stays put.
        if x > width:
            x = 0.0
        elif x < 0.0:
            x = width
        if y > height:
            y = 0.0
        elif y < 0.0:
            y = height
        self.physics.position = Vector2(x, y)
