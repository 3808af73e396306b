from __future__ import annotations

from concurrent.futures import Executor
from typing import List, Sequence, Tuple

from ..core.agent import Agent, BodyState
from ..core.config import FlockingConfig
from ..utils.vector import ZERO, Vector2

FlockSnapshot = Tuple[BodyState, ...]


def take_snapshot(flock: Sequence[Agent]) -> FlockSnapshot:
    return tuple(BodyState.of(agent) for agent in flock)


def update_agent(
    agent: Agent,
    snapshot: FlockSnapshot,
    width: float,
    height: float,
    dt: float,
    measurement_offset: Vector2 = ZERO,
    settings: FlockingConfig | None = None,
) -> int:
    neighbors = agent.flock(snapshot, width, height, settings)
    agent.integrate()
    agent.update_estimator(dt, measurement_offset)
    agent.edges(width, height)
    return neighbors


def step(
    flock: List[Agent],
    width: float,
    height: float,
    dt: float,
    measurement_offsets: Sequence[Vector2] | None = None,
    executor: Executor | None = None,
    settings: FlockingConfig | None = None,
) -> int:
    """Advance every agent by one tick against a frozen snapshot.

    Each agent reads only the snapshot and writes only itself, so updates
    may run through ``executor`` in any order with the same result.
    Returns the number of neighbour pairs seen by steering.
    Raises ``ValueError`` when ``measurement_offsets`` does not match the flock.
    """
    if measurement_offsets is None:
        measurement_offsets = [ZERO] * len(flock)
    elif len(measurement_offsets) != len(flock):
        raise ValueError(
            f"Expected {len(flock)} measurement offsets, got {len(measurement_offsets)}"
        )
    snapshot = take_snapshot(flock)
    if executor is None:
        return sum(
            update_agent(agent, snapshot, width, height, dt, offset, settings)
            for agent, offset in zip(flock, measurement_offsets, strict=True)
        )
    results = executor.map(
        lambda pair: update_agent(pair[0], snapshot, width, height, dt, pair[1], settings),
        list(zip(flock, measurement_offsets, strict=True)),
    )
    return sum(results)
