from __future__ import annotations

import math
from typing import Sequence

import pygame
from loguru import logger

from ..sim.core.agent import Agent
from ..sim.core.config import SimulationConfig
from ..sim.core.world import World

BACKGROUND = (0, 0, 0)
LINK_COLOR = (80, 160, 255)
ESTIMATE_COLOR = (255, 255, 255)
BODY_LENGTH = 8.0
BODY_WIDTH = 4.0


def speed_color(speed: float) -> pygame.Color:
    color = pygame.Color(0, 0, 0)
    color.hsla = (min(speed * 30.0, 120.0), 100.0, 50.0, 100.0)
    return color


def body_outline(x: float, y: float, heading: float) -> list[tuple[float, float]]:
    cos_h = math.cos(heading)
    sin_h = math.sin(heading)
    tail_x = x - cos_h * BODY_LENGTH * 0.6
    tail_y = y - sin_h * BODY_LENGTH * 0.6
    return [
        (x + cos_h * BODY_LENGTH, y + sin_h * BODY_LENGTH),
        (tail_x - sin_h * BODY_WIDTH, tail_y + cos_h * BODY_WIDTH),
        (tail_x + sin_h * BODY_WIDTH, tail_y - cos_h * BODY_WIDTH),
    ]


def render_frame(surface: pygame.Surface, agents: Sequence[Agent], link_radius: float = 50.0) -> None:
    """Draw one frame: neighbour links, agent bodies, estimator beliefs."""
    surface.fill(BACKGROUND)
    links = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
    link_sq = link_radius * link_radius
    for i, first in enumerate(agents):
        for second in agents[i + 1 :]:
            dist_sq = first.position.squared_distance_to(second.position)
            if dist_sq < link_sq:
                alpha = int(255 * (1.0 - dist_sq / link_sq))
                pygame.draw.line(
                    links,
                    (*LINK_COLOR, alpha),
                    (first.position.x, first.position.y),
                    (second.position.x, second.position.y),
                    1,
                )
    surface.blit(links, (0, 0))

    for agent in agents:
        velocity = agent.velocity
        heading = math.atan2(velocity.y, velocity.x)
        outline = body_outline(agent.position.x, agent.position.y, heading)
        pygame.draw.polygon(surface, speed_color(velocity.magnitude()), outline)
        estimate = agent.estimate
        pygame.draw.circle(surface, ESTIMATE_COLOR, (int(estimate.x), int(estimate.y)), 3, 1)


def run_viewer(config: SimulationConfig | None = None, max_frames: int | None = None) -> None:
    config = config or SimulationConfig()
    world = World(config)
    pygame.init()
    screen = pygame.display.set_mode((int(config.arena_width), int(config.arena_height)))
    pygame.display.set_caption("Flock Simulation")
    clock = pygame.time.Clock()
    frame_rate = int(round(1.0 / config.time_step))
    logger.info("Viewer running at {} fps with {} agents", frame_rate, config.flock_size)

    tick = 0
    running = True
    try:
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_r:
                    world.reset()
                    tick = 0
            world.step(tick)
            tick += 1
            render_frame(screen, world.agents, config.flocking.neighbor_radius)
            pygame.display.flip()
            clock.tick(frame_rate)
            if max_frames is not None and tick >= max_frames:
                running = False
    finally:
        pygame.quit()


def main() -> None:
    run_viewer()


if __name__ == "__main__":
    main()
