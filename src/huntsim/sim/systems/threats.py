from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.agent import Species
from ..utils.math2d import distance, line_intersect
from .population import is_active
from .steering import evade, flee, pursue

if TYPE_CHECKING:
    from ..core.world import World


def flee_threats(world: World, species: Species, now: float) -> None:
    """Flee every threat strictly inside the detection radius, boosting speed if configured."""
    config = world.species_config(species)
    flee_config = config.flee
    if flee_config is None or not is_active(world, species):
        return
    dt = world._config.time_step
    radius = flee_config.detection_radius
    ignored = {Species(name) for name in flee_config.ignore_species}
    boosts = flee_config.speed_boost > 0.0
    neighbors = world._neighbor_scratch

    for agent in world.agents_of(species):
        if boosts and now >= agent.flee_time + flee_config.max_flee_time:
            agent.flee_time = 0.0
            agent.movement_speed = config.movement_speed

        world._grid.collect_neighbors(agent.position, radius, neighbors, exclude_id=agent.id)
        for threat in neighbors:
            if not threat.threat or threat.species in ignored:
                continue
            if distance(agent.position, threat.position) >= radius:
                continue
            if boosts:
                agent.movement_speed = config.movement_speed + flee_config.speed_boost
                agent.flee_time = now
            force = flee(agent.position, agent.velocity, threat.position, agent.movement_speed * dt)
            agent.force += force * flee_config.weight


def evade_targets(world: World, species: Species) -> None:
    config = world.species_config(species)
    evade_config = config.evade
    if evade_config is None or not is_active(world, species):
        return
    dt = world._config.time_step
    radius = evade_config.detection_radius
    target_species = Species(evade_config.target_species)
    neighbors = world._neighbor_scratch

    for agent in world.agents_of(species):
        world._grid.collect_neighbors(agent.position, radius, neighbors, exclude_id=agent.id)
        for target in neighbors:
            if target.species is not target_species:
                continue
            if distance(agent.position, target.position) > radius:
                continue
            force = evade(
                agent.position,
                agent.velocity,
                target.position,
                target.velocity,
                agent.movement_speed * dt,
            )
            agent.force += force * evade_config.weight


def pursue_prey(world: World, species: Species) -> None:
    """Predictive seek toward every prey agent within range; contributions sum."""
    config = world.species_config(species)
    pursue_config = config.pursue
    if pursue_config is None or not is_active(world, species):
        return
    dt = world._config.time_step
    radius = pursue_config.detection_radius
    neighbors = world._neighbor_scratch

    for agent in world.agents_of(species):
        world._grid.collect_neighbors(agent.position, radius, neighbors, exclude_id=agent.id)
        for target in neighbors:
            if not target.prey:
                continue
            if distance(agent.position, target.position) > radius:
                continue
            force = pursue(
                agent.position,
                agent.velocity,
                target.position,
                target.velocity,
                agent.movement_speed * dt,
            )
            agent.force += force * pursue_config.weight


def avoid_walls(world: World, species: Species) -> None:
    config = world.species_config(species)
    walls_config = config.evade_walls
    if walls_config is None or not is_active(world, species):
        return
    dt = world._config.time_step

    for agent in world.agents_of(species):
        probe_end = agent.position + agent.velocity
        for wall in world.walls:
            hit = line_intersect(wall.point_a, wall.point_b, agent.position, probe_end)
            if hit is None:
                continue
            if distance(agent.position, hit) > walls_config.detection_distance:
                continue
            force = flee(agent.position, agent.velocity, hit, agent.movement_speed * dt)
            agent.force += force * walls_config.weight
