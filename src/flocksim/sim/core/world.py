from __future__ import annotations

import math
from concurrent.futures import Executor
from time import perf_counter
from typing import Any, Dict, List

from loguru import logger

from ..systems import metrics as metrics_system
from ..systems import stepping
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.vector import Vector2
from .agent import Agent
from .config import PhysicsConfig, SensorConfig, SimulationConfig
from .rng import DeterministicRng


def build_flock(
    count: int,
    width: float,
    height: float,
    physics: PhysicsConfig | None = None,
    sensor: SensorConfig | None = None,
) -> List[Agent]:
    """Create ``count`` agents, ids in order, all at the arena centre."""
    centre_x = width / 2.0
    centre_y = height / 2.0
    return [Agent.spawn(i, centre_x, centre_y, physics, sensor) for i in range(count)]


class World:
    def __init__(self, config: SimulationConfig, executor: Executor | None = None):
        config.validate()
        self._config = config
        self._executor = executor
        self._rng = DeterministicRng(config.seed)
        self._agents: List[Agent] = []
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()

    @property
    def agents(self) -> List[Agent]:
        return self._agents

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self) -> None:
        self._rng.reset()
        self._metrics = None
        self._bootstrap_population()

    def _bootstrap_population(self) -> None:
        config = self._config
        self._agents = build_flock(
            config.flock_size,
            config.arena_width,
            config.arena_height,
            config.physics,
            config.sensor,
        )
        logger.debug(
            "Flock of {} agents placed in {}x{} arena",
            len(self._agents),
            config.arena_width,
            config.arena_height,
        )

    def _measurement_offsets(self) -> List[Vector2] | None:
        noise_std = self._config.sensor.noise_std
        if noise_std <= 0.0:
            return None
        # Drawn in flock order so parallel and sequential runs agree.
        return [self._rng.next_gaussian_vector(noise_std) for _ in self._agents]

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        config = self._config
        neighbor_count = stepping.step(
            self._agents,
            config.arena_width,
            config.arena_height,
            config.time_step,
            measurement_offsets=self._measurement_offsets(),
            executor=self._executor,
            settings=config.flocking,
        )
        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(tick, self._agents, neighbor_count, duration_ms)
        return self._metrics

    def snapshot(self, tick: int) -> Snapshot:
        config = self._config
        metrics = self._metrics or metrics_system.create_metrics(tick, self._agents, 0, 0.0)
        agents: List[Dict[str, Any]] = []
        for agent in self._agents:
            position = agent.position
            velocity = agent.velocity
            estimate = agent.estimate
            agents.append(
                {
                    "id": agent.id,
                    "x": position.x,
                    "y": position.y,
                    "vx": velocity.x,
                    "vy": velocity.y,
                    "ex": estimate.x,
                    "ey": estimate.y,
                    "speed": velocity.magnitude(),
                    "heading": math.atan2(velocity.y, velocity.x),
                }
            )
        return Snapshot(
            tick=tick,
            metrics=metrics,
            agents=agents,
            world=SnapshotWorld(width=config.arena_width, height=config.arena_height),
            metadata=SnapshotMetadata(
                sim_dt=config.time_step,
                tick_rate=1.0 / config.time_step,
                seed=config.seed,
                config_version=config.config_version,
                sensor_noise_std=config.sensor.noise_std,
            ),
        )
