from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path

import yaml


def _positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


@dataclass
class PhysicsConfig:
    max_speed: float = 4.0
    max_force: float = 0.1


@dataclass
class FlockingConfig:
    separation_radius: float = 25.0
    neighbor_radius: float = 50.0
    edge_margin: float = 50.0
    separation_weight: float = 1.5
    alignment_weight: float = 1.0
    cohesion_weight: float = 1.0
    edge_weight: float = 2.0


@dataclass
class SensorConfig:
    # 0.0 feeds the true position to the estimator unchanged
    noise_std: float = 0.0
    process_noise: float = 0.1
    measurement_noise: float = 1.0


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    flock_size: int = 80
    arena_width: float = 800.0
    arena_height: float = 600.0
    seed: int = 42
    config_version: str = "v1"
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    flocking: FlockingConfig = field(default_factory=FlockingConfig)
    sensor: SensorConfig = field(default_factory=SensorConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)

    def validate(self) -> None:
        if not (_positive(self.arena_width) and _positive(self.arena_height)):
            raise ValueError(f"Arena dimensions must be positive and finite, got {self.arena_width}x{self.arena_height}")
        if self.flock_size < 0:
            raise ValueError(f"Flock size must be non-negative, got {self.flock_size}")
        if not _positive(self.time_step):
            raise ValueError(f"Time step must be positive and finite, got {self.time_step}")
        if not (math.isfinite(self.sensor.noise_std) and self.sensor.noise_std >= 0):
            raise ValueError(f"Sensor noise must be non-negative, got {self.sensor.noise_std}")


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    broadcast_interval: int = 2
    # frames kept for viewers that have not acknowledged them yet
    backlog_limit: int = 120


def load_config(raw: dict) -> SimulationConfig:
    physics = PhysicsConfig(**raw.get("physics", {}))
    flocking = FlockingConfig(**raw.get("flocking", {}))
    sensor = SensorConfig(**raw.get("sensor", {}))
    sim_values = {k: v for k, v in raw.items() if k not in {"physics", "flocking", "sensor"}}
    return SimulationConfig(physics=physics, flocking=flocking, sensor=sensor, **sim_values)
