from __future__ import annotations

from typing import Dict

from ..core.agent import RemovalCause, Species
from ..types.metrics import TickMetrics


def create_metrics(
    tick: int,
    sim_time: float,
    species_counts: Dict[Species, int],
    groups: int,
    projectiles: int,
    spawned: int,
    removals: Dict[RemovalCause, int],
    duration_ms: float,
) -> TickMetrics:
    return TickMetrics(
        tick=tick,
        sim_time=sim_time,
        population=sum(species_counts.values()),
        hares=species_counts.get(Species.HARE, 0),
        wolves=species_counts.get(Species.WOLF, 0),
        deer=species_counts.get(Species.DEER, 0),
        groups=groups,
        projectiles=projectiles,
        spawned=spawned,
        eaten=removals.get(RemovalCause.EATEN, 0),
        shot=removals.get(RemovalCause.SHOT, 0),
        starved=removals.get(RemovalCause.STARVED, 0),
        tick_duration_ms=duration_ms,
    )
