from __future__ import annotations

from typing import Sequence

from ..core.agent import Agent
from ..types.metrics import TickMetrics


def create_metrics(tick: int, agents: Sequence[Agent], neighbor_count: int, duration_ms: float) -> TickMetrics:
    population = len(agents)
    if population == 0:
        return TickMetrics(
            tick=tick,
            population=0,
            average_speed=0.0,
            max_speed=0.0,
            average_estimate_error=0.0,
            max_estimate_error=0.0,
            neighbor_count=neighbor_count,
            tick_duration_ms=duration_ms,
        )
    speed_sum = 0.0
    max_speed = 0.0
    error_sum = 0.0
    max_error = 0.0
    for agent in agents:
        speed = agent.velocity.magnitude()
        speed_sum += speed
        if speed > max_speed:
            max_speed = speed
        error = (agent.estimate - agent.position).magnitude()
        error_sum += error
        if error > max_error:
            max_error = error
    return TickMetrics(
        tick=tick,
        population=population,
        average_speed=speed_sum / population,
        max_speed=max_speed,
        average_estimate_error=error_sum / population,
        max_estimate_error=max_error,
        neighbor_count=neighbor_count,
        tick_duration_ms=duration_ms,
    )
