from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    average_speed: float
    max_speed: float
    average_estimate_error: float
    max_estimate_error: float
    neighbor_count: int
    tick_duration_ms: float = 0.0
