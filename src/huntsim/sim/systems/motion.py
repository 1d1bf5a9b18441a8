from __future__ import annotations

from typing import TYPE_CHECKING

from pygame.math import Vector2

from ..core.agent import Agent, RemovalCause, Species
from ..utils.math2d import Collision, collide, facing_angle, limit
from .population import is_active
from .steering import wander

if TYPE_CHECKING:
    from ..core.world import World


def wander_species(world: World, species: Species) -> None:
    """Correlated random walk: each evaluation nudges ``wander_theta`` by a random delta."""
    wander_config = world.species_config(species).wander
    if wander_config is None or not is_active(world, species):
        return
    displace = wander_config.displace_range
    rng = world._rng
    for agent in world.agents_of(species):
        force = wander(
            agent.position,
            agent.velocity,
            wander_config.radius,
            wander_config.distance,
            agent.wander_theta,
            wander_config.max_force,
        )
        agent.force += force * wander_config.weight
        agent.wander_theta += rng.next_range(-displace, displace)


def integrate(agent: Agent, time_step: float) -> None:
    agent.acceleration += agent.force
    agent.velocity = limit(agent.velocity + agent.acceleration, agent.movement_speed * time_step)
    agent.position += agent.velocity
    agent.acceleration.update(0.0, 0.0)
    agent.force.update(0.0, 0.0)
    agent.rotation = facing_angle(agent.velocity)


def integrate_species(world: World, species: Species) -> None:
    dt = world._config.time_step
    for agent in world.agents_of(species):
        integrate(agent, dt)


_ARENA_NUDGE = {
    Collision.TOP: Vector2(0.0, -1.0),
    Collision.BOTTOM: Vector2(0.0, 1.0),
    Collision.LEFT: Vector2(1.0, 0.0),
    Collision.RIGHT: Vector2(-1.0, 0.0),
}


def move_player(world: World) -> None:
    """The player is driven externally: its velocity is applied verbatim.

    A player straddling the arena edge is pushed one unit back inside.
    """
    player = world.player
    if player is None:
        return
    player.position += player.velocity
    if player.velocity.length_squared() > 0.0:
        player.rotation = facing_angle(player.velocity)

    player_config = world.species_config(player.species)
    arena = world._config.arena
    collision = collide(
        player.position,
        Vector2(player_config.width, player_config.height),
        Vector2(),
        Vector2(arena.width, arena.height),
    )
    nudge = _ARENA_NUDGE.get(collision)
    if nudge is not None:
        player.position += nudge


def fly_projectiles(world: World, now: float) -> None:
    max_duration = world._config.projectile.max_duration
    for projectile in list(world.projectiles):
        if now < projectile.shot_at + max_duration:
            projectile.position += projectile.velocity
        else:
            world.despawn_projectile(projectile.id, RemovalCause.EXPIRED)
