from __future__ import annotations

from typing import TYPE_CHECKING

from pygame.math import Vector2

from ..core.agent import Agent, Species
from ..utils.math2d import distance, limit, set_mag
from .population import is_active

if TYPE_CHECKING:
    from ..core.world import World


def _group_neighbors(world: World, agent: Agent, radius: float) -> list[tuple[Agent, float]]:
    """Same-group agents strictly inside ``radius``, paired with their distance."""
    candidates = world._neighbor_scratch
    world._grid.collect_neighbors(agent.position, radius, candidates, exclude_id=agent.id)
    found: list[tuple[Agent, float]] = []
    for other in candidates:
        if other.group_id is None or other.group_id != agent.group_id:
            continue
        d = distance(agent.position, other.position)
        if d < radius:
            found.append((other, d))
    return found


def separation(world: World, agent: Agent) -> Vector2:
    rule = world.species_config(agent.species).separation
    if rule is None or agent.group_id is None:
        return Vector2()
    steer = Vector2()
    total = 0
    for other, d in _group_neighbors(world, agent, rule.perception_radius):
        if d <= 0.0:
            continue
        diff = agent.position - other.position
        steer += diff / (d * d)
        total += 1
    if total == 0:
        return Vector2()
    steer /= total
    steer = set_mag(steer, agent.movement_speed) - agent.velocity
    return limit(steer, rule.max_force)


def alignment(world: World, agent: Agent) -> Vector2:
    rule = world.species_config(agent.species).alignment
    if rule is None or agent.group_id is None:
        return Vector2()
    steer = Vector2()
    total = 0
    for other, _ in _group_neighbors(world, agent, rule.perception_radius):
        steer += other.velocity
        total += 1
    if total == 0:
        return Vector2()
    steer /= total
    steer = set_mag(steer, agent.movement_speed) - agent.velocity
    return limit(steer, rule.max_force)


def cohesion(world: World, agent: Agent) -> Vector2:
    rule = world.species_config(agent.species).cohesion
    if rule is None or agent.group_id is None:
        return Vector2()
    centroid = Vector2()
    total = 0
    for other, _ in _group_neighbors(world, agent, rule.perception_radius):
        centroid += other.position
        total += 1
    if total == 0:
        return Vector2()
    centroid /= total
    steer = set_mag(centroid - agent.position, agent.movement_speed) - agent.velocity
    return limit(steer, rule.max_force)


def apply_flocking(world: World, species: Species) -> None:
    """Add separation, alignment and cohesion independently to each member's force."""
    if not is_active(world, species):
        return
    for agent in world.agents_of(species):
        agent.force += separation(world, agent)
        agent.force += alignment(world, agent)
        agent.force += cohesion(world, agent)
