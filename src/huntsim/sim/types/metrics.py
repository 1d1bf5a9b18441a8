from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    sim_time: float
    population: int
    hares: int
    wolves: int
    deer: int
    groups: int
    projectiles: int
    spawned: int
    eaten: int
    shot: int
    starved: int
    tick_duration_ms: float = 0.0
