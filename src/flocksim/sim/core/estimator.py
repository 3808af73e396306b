from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from ..utils.matrix import Matrix2
from ..utils.vector import Vector2

DEFAULT_PROCESS_NOISE = 0.1
DEFAULT_MEASUREMENT_NOISE = 1.0


@dataclass(slots=True)
class StateEstimator:
    """Linear Kalman filter over a 2D position.

    The motion model is constant velocity with an identity transition and
    the observation model measures position directly. Each tick runs
    :meth:`predict` followed by :meth:`update`.
    """

    state: Vector2
    covariance: Matrix2 = field(default_factory=Matrix2.identity)
    process_noise: Matrix2 = field(default_factory=lambda: Matrix2.diagonal(DEFAULT_PROCESS_NOISE, DEFAULT_PROCESS_NOISE))
    measurement_noise: Matrix2 = field(
        default_factory=lambda: Matrix2.diagonal(DEFAULT_MEASUREMENT_NOISE, DEFAULT_MEASUREMENT_NOISE)
    )
    skipped_updates: int = 0

    @classmethod
    def with_noise(cls, state: Vector2, process_noise: float, measurement_noise: float) -> "StateEstimator":
        return cls(
            state=state,
            process_noise=Matrix2.diagonal(process_noise, process_noise),
            measurement_noise=Matrix2.diagonal(measurement_noise, measurement_noise),
        )

    def predict(self, velocity: Vector2, dt: float) -> None:
        transition = Matrix2.identity()
        self.state = self.state + velocity * dt
        # P = F P F^T + Q
        projected = transition.multiply(self.covariance.multiply(transition.transpose()))
        self.covariance = projected.add(self.process_noise)

    def update(self, measurement: Vector2) -> bool:
        """Correct the prediction with a position measurement.

        Returns ``False`` and leaves the predicted state untouched when the
        innovation covariance cannot be inverted.
        """
        observation = Matrix2.identity()
        innovation = measurement - self.state
        p_ht = self.covariance.multiply(observation.transpose())
        innovation_cov = observation.multiply(p_ht).add(self.measurement_noise)
        innovation_inv = innovation_cov.inverse()
        if innovation_inv is None:
            self.skipped_updates += 1
            logger.debug("Singular innovation covariance, keeping predicted state {}", self.state)
            return False
        gain = p_ht.multiply(innovation_inv)
        self.state = self.state + gain.multiply_vector(innovation)
        self.covariance = Matrix2.identity().subtract(gain.multiply(observation)).multiply(self.covariance)
        return True
