from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, TYPE_CHECKING

from pygame.math import Vector2

from ..core.agent import Agent, Group, Species

if TYPE_CHECKING:
    from ..core.world import World

logger = logging.getLogger(__name__)


@dataclass
class SpeciesPopulation:
    """Concurrent head count against ``max_number``; removals free a slot."""

    species: Species
    max_number: int
    count: int = 0

    @property
    def is_full(self) -> bool:
        return self.count >= self.max_number

    def on_spawned(self, agent: Agent) -> None:
        self.count += 1

    def on_removed(self, agent: Agent) -> None:
        self.count = max(0, self.count - 1)


@dataclass
class GroupPopulation:
    """Group count against ``group_number``; groups are never dissolved."""

    species: Species
    group_number: int
    groups: List[Group] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.groups)

    @property
    def is_full(self) -> bool:
        return len(self.groups) >= self.group_number

    def on_spawned(self, agent: Agent) -> None:
        pass

    def on_removed(self, agent: Agent) -> None:
        pass


Population = SpeciesPopulation | GroupPopulation


def is_active(world: World, species: Species) -> bool:
    """Whether species behavior systems may run this tick."""
    population = world._populations.get(species)
    return population is not None and population.is_full


def spawn_species(world: World, species: Species) -> int:
    """Spawn at most one unit (one agent, or one whole group) if below target."""
    population = world._populations[species]
    if population.is_full:
        return 0
    if isinstance(population, GroupPopulation):
        spawned = _spawn_group(world, species)
    else:
        spawned = _spawn_single(world, species)
    if population.is_full:
        logger.info("%s population reached target (%d)", species.value, population.count)
    return spawned


def _spawn_single(world: World, species: Species) -> int:
    config = world.species_config(species)
    arena = world._config.arena
    position = world._rng.next_point(
        arena.width / 2.0 - config.spawn_margin,
        arena.height / 2.0 - config.spawn_margin,
    )
    world.spawn_agent(species, position)
    return 1


def _spawn_group(world: World, species: Species) -> int:
    config = world.species_config(species)
    arena = world._config.arena
    rng = world._rng
    origin = rng.next_point(
        arena.width / 2.0 - config.group_spawn_margin,
        arena.height / 2.0 - config.group_spawn_margin,
    )
    size = rng.next_int(config.group_size_min, config.group_size_max)
    group = world.create_group(species, size)
    spread = config.group_spread
    for _ in range(size):
        offset = Vector2(rng.next_range(-spread, spread), rng.next_range(-spread, spread))
        world.spawn_agent(species, origin + offset, group_id=group.id)
    logger.debug("spawned %s group %d with %d members at %s", species.value, group.id, size, origin)
    return size
