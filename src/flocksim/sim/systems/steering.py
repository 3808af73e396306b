from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, TYPE_CHECKING

from ..core.physics import PointMass
from ..utils.vector import ZERO, Vector2

if TYPE_CHECKING:
    from ..core.agent import BodyState


@dataclass(slots=True)
class NeighborSums:
    """Accumulators from one brute-force pass over the snapshot."""

    push_x: float = 0.0
    push_y: float = 0.0
    crowded_count: int = 0
    velocity_x: float = 0.0
    velocity_y: float = 0.0
    position_x: float = 0.0
    position_y: float = 0.0
    neighbor_count: int = 0


def gather_neighbors(
    body: PointMass,
    snapshot: Iterable[BodyState],
    separation_radius: float,
    neighbor_radius: float,
) -> NeighborSums:
    sums = NeighborSums()
    separation_sq = separation_radius * separation_radius
    neighbor_sq = neighbor_radius * neighbor_radius
    pos_x = body.position.x
    pos_y = body.position.y
    push_x = push_y = 0.0
    vel_x = vel_y = 0.0
    sum_x = sum_y = 0.0
    crowded = 0
    neighbors = 0
    for other in snapshot:
        dx = pos_x - other.x
        dy = pos_y - other.y
        dist_sq = dx * dx + dy * dy
        # Coincident bodies, including this agent's own entry, are ignored.
        if dist_sq <= 0.0:
            continue
        if dist_sq < separation_sq:
            # normalized offset divided by distance again: 1/d falloff
            push_x += dx / dist_sq
            push_y += dy / dist_sq
            crowded += 1
        if dist_sq < neighbor_sq:
            vel_x += other.vx
            vel_y += other.vy
            sum_x += other.x
            sum_y += other.y
            neighbors += 1
    sums.push_x = push_x
    sums.push_y = push_y
    sums.crowded_count = crowded
    sums.velocity_x = vel_x
    sums.velocity_y = vel_y
    sums.position_x = sum_x
    sums.position_y = sum_y
    sums.neighbor_count = neighbors
    return sums


def steer_toward(body: PointMass, direction: Vector2) -> Vector2:
    """Steering from the current velocity toward ``direction`` at full speed."""
    desired = direction.normalize() * body.max_speed
    return (desired - body.velocity).clamp_magnitude(body.max_force)


def seek(body: PointMass, target: Vector2) -> Vector2:
    return steer_toward(body, target - body.position)


def separation_force(body: PointMass, sums: NeighborSums) -> Vector2:
    if sums.crowded_count == 0:
        return ZERO
    push = Vector2(sums.push_x, sums.push_y) / sums.crowded_count
    if push.magnitude_squared() <= 0.0:
        return ZERO
    return steer_toward(body, push)


def alignment_force(body: PointMass, sums: NeighborSums) -> Vector2:
    if sums.neighbor_count == 0:
        return ZERO
    average = Vector2(sums.velocity_x, sums.velocity_y) / sums.neighbor_count
    return steer_toward(body, average)


def cohesion_force(body: PointMass, sums: NeighborSums) -> Vector2:
    if sums.neighbor_count == 0:
        return ZERO
    centre = Vector2(sums.position_x, sums.position_y) / sums.neighbor_count
    return seek(body, centre)


def separation(body: PointMass, snapshot: Iterable[BodyState], radius: float = 25.0) -> Vector2:
    return separation_force(body, gather_neighbors(body, snapshot, radius, 0.0))


def alignment(body: PointMass, snapshot: Iterable[BodyState], radius: float = 50.0) -> Vector2:
    return alignment_force(body, gather_neighbors(body, snapshot, 0.0, radius))


def cohesion(body: PointMass, snapshot: Iterable[BodyState], radius: float = 50.0) -> Vector2:
    return cohesion_force(body, gather_neighbors(body, snapshot, 0.0, radius))


def edge_avoidance(body: PointMass, width: float, height: float, margin: float = 50.0) -> Vector2:
    """Unit push away from every wall within ``margin``, scaled to max force."""
    position = body.position
    push_x = 0.0
    push_y = 0.0
    if position.x < margin:
        push_x += 1.0
    if position.x > width - margin:
        push_x -= 1.0
    if position.y < margin:
        push_y += 1.0
    if position.y > height - margin:
        push_y -= 1.0
    push = Vector2(push_x, push_y)
    if push.magnitude_squared() <= 0.0:
        return ZERO
    return push.normalize() * body.max_force
