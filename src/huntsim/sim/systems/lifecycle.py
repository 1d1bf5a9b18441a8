from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pygame.math import Vector2

from ..core.agent import Agent, RemovalCause, Species
from ..utils.math2d import collide
from .population import is_active

if TYPE_CHECKING:
    from ..core.world import World

logger = logging.getLogger(__name__)


def feed(agent: Agent, now: float) -> None:
    agent.last_fed_at = now


def _box(world: World, agent: Agent) -> Vector2:
    config = world.species_config(agent.species)
    return Vector2(config.width, config.height)


def resolve_predation(world: World, now: float) -> int:
    """Each prey is eaten by the first overlapping fatal agent, which is fed.

    Removal is deferred, so a prey eaten here may still be hit by a projectile
    in the same tick; the second removal is a no-op.
    """
    predators = [agent for agent in world.agents if agent.fatal]
    if not predators:
        return 0
    eaten = 0
    for prey in world.agents:
        if not prey.prey:
            continue
        prey_box = _box(world, prey)
        for predator in predators:
            if predator is prey:
                continue
            if collide(prey.position, prey_box, predator.position, _box(world, predator)) is None:
                continue
            world.despawn(prey.id, RemovalCause.EATEN)
            feed(predator, now)
            eaten += 1
            logger.debug("%s %d eaten by %s %d", prey.species.value, prey.id, predator.species.value, predator.id)
            break
    return eaten


def resolve_projectile_hits(world: World) -> int:
    """Shootable agents overlapping a live projectile are removed along with it.

    Projectiles that expired earlier in the tick no longer hit anything.
    """
    expired = world._pending_projectile_removals
    projectiles = [projectile for projectile in world.projectiles if projectile.id not in expired]
    if not projectiles:
        return 0
    projectile_config = world._config.projectile
    projectile_box = Vector2(projectile_config.width, projectile_config.height)
    hits = 0
    for agent in world.agents:
        if not agent.shootable:
            continue
        agent_box = _box(world, agent)
        for projectile in projectiles:
            if collide(agent.position, agent_box, projectile.position, projectile_box) is None:
                continue
            world.despawn(agent.id, RemovalCause.SHOT)
            world.despawn_projectile(projectile.id, RemovalCause.SHOT)
            hits += 1
    return hits


def starve(world: World, species: Species, now: float) -> int:
    """Hunger clock: unset clocks start now; past ``max_hunger_duration`` the agent dies."""
    max_hunger = world.species_config(species).max_hunger_duration
    if max_hunger is None or not is_active(world, species):
        return 0
    starved = 0
    for agent in world.agents_of(species):
        if agent.last_fed_at is None:
            agent.last_fed_at = now
        if now > agent.last_fed_at + max_hunger:
            world.despawn(agent.id, RemovalCause.STARVED)
            starved += 1
            logger.info("%s %d starved at t=%.2f", species.value, agent.id, now)
    return starved
