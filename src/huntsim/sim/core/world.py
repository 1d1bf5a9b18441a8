from __future__ import annotations

import logging
from typing import Dict, List
from time import perf_counter

from pygame.math import Vector2

from .agent import Agent, Group, Projectile, RemovalCause, Species, Wall, arena_walls
from .config import SimulationConfig, SpeciesConfig
from .rng import DeterministicRng
from .spatial_grid import SpatialGrid
from ..systems import flocking, lifecycle, metrics as metrics_system, motion, population, threats
from ..systems.population import GroupPopulation, Population, SpeciesPopulation
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import set_mag

logger = logging.getLogger(__name__)

_STEERED_SPECIES = (Species.HARE, Species.WOLF, Species.DEER)


class World:
    """Simulation context: owns every agent, the clock, the RNG and the populations.

    ``step`` runs one fixed pipeline: spawn, force systems, integration,
    life-cycle checks, then deferred removals.
    """

    def __init__(self, config: SimulationConfig, rng: DeterministicRng | None = None):
        self._config = config
        self._rng = rng if rng is not None else DeterministicRng(config.seed)
        self._grid = SpatialGrid(config.cell_size)
        self._walls: List[Wall] = arena_walls(config.arena.width, config.arena.height)
        self._agents: Dict[int, Agent] = {}
        self._projectiles: Dict[int, Projectile] = {}
        self._populations: Dict[Species, Population] = {}
        self._pending_removals: Dict[int, RemovalCause] = {}
        self._pending_projectile_removals: Dict[int, RemovalCause] = {}
        self._neighbor_scratch: List[Agent] = []
        self._spawned = 0
        self._next_id = 0
        self._next_group_id = 0
        self._player_id: int | None = None
        self._time = 0.0
        self._metrics: TickMetrics | None = None
        self._bootstrap()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def agents(self) -> List[Agent]:
        return list(self._agents.values())

    @property
    def projectiles(self) -> List[Projectile]:
        return list(self._projectiles.values())

    @property
    def walls(self) -> List[Wall]:
        return self._walls

    @property
    def populations(self) -> Dict[Species, Population]:
        return self._populations

    @property
    def player(self) -> Agent | None:
        if self._player_id is None:
            return None
        return self._agents.get(self._player_id)

    @property
    def time(self) -> float:
        return self._time

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def species_config(self, species: Species) -> SpeciesConfig:
        return getattr(self._config, species.value)

    def agent(self, agent_id: int) -> Agent | None:
        return self._agents.get(agent_id)

    def agents_of(self, species: Species) -> List[Agent]:
        return [agent for agent in self._agents.values() if agent.species is species]

    def groups(self, species: Species) -> List[Group]:
        population = self._populations.get(species)
        if isinstance(population, GroupPopulation):
            return population.groups
        return []

    def reset(self) -> None:
        self._agents.clear()
        self._projectiles.clear()
        self._populations.clear()
        self._pending_removals.clear()
        self._pending_projectile_removals.clear()
        self._neighbor_scratch.clear()
        self._grid.clear()
        self._rng.reset()
        self._spawned = 0
        self._next_id = 0
        self._next_group_id = 0
        self._player_id = None
        self._time = 0.0
        self._metrics = None
        self._bootstrap()

    def _bootstrap(self) -> None:
        for species in _STEERED_SPECIES:
            species_config = self.species_config(species)
            if species_config.flocking:
                self._populations[species] = GroupPopulation(species, species_config.group_number)
            else:
                self._populations[species] = SpeciesPopulation(species, species_config.max_number)
        if self._config.player_enabled:
            player = self.spawn_agent(Species.PLAYER, Vector2(self._config.player_start))
            self._player_id = player.id

    # Collaborator surface: create and remove entities.

    def spawn_agent(self, species: Species, position: Vector2, group_id: int | None = None) -> Agent:
        config = self.species_config(species)
        agent = Agent(
            id=self._next_id,
            species=species,
            position=Vector2(position),
            velocity=Vector2(config.initial_velocity),
            movement_speed=config.movement_speed,
            threat=config.threat,
            prey=config.prey,
            fatal=config.fatal,
            shootable=config.shootable,
            group_id=group_id,
        )
        self._next_id += 1
        self._agents[agent.id] = agent
        population_tracker = self._populations.get(species)
        if population_tracker is not None:
            population_tracker.on_spawned(agent)
        self._spawned += 1
        logger.debug("spawned %s %d at (%.1f, %.1f)", species.value, agent.id, agent.position.x, agent.position.y)
        return agent

    def create_group(self, species: Species, count: int) -> Group:
        population_tracker = self._populations[species]
        if not isinstance(population_tracker, GroupPopulation):
            raise ValueError(f"{species.value} does not spawn in groups")
        group = Group(id=self._next_group_id, count=count)
        self._next_group_id += 1
        population_tracker.groups.append(group)
        return group

    def despawn(self, agent_id: int, cause: RemovalCause = RemovalCause.EXTERNAL) -> None:
        """Queue a removal for the end of the tick; repeated requests keep the first cause."""
        self._pending_removals.setdefault(agent_id, cause)

    def fire_projectile(self, position: Vector2, direction: Vector2) -> Projectile:
        speed = self._config.projectile.movement_speed * self._config.time_step
        projectile = Projectile(
            id=self._next_id,
            position=Vector2(position),
            velocity=set_mag(Vector2(direction), speed),
            shot_at=self._time,
        )
        self._next_id += 1
        self._projectiles[projectile.id] = projectile
        return projectile

    def despawn_projectile(self, projectile_id: int, cause: RemovalCause = RemovalCause.EXTERNAL) -> None:
        self._pending_projectile_removals.setdefault(projectile_id, cause)

    def steer_player(self, direction: Vector2) -> None:
        player = self.player
        if player is None:
            return
        speed = player.movement_speed * self._config.time_step
        player.velocity = set_mag(Vector2(direction), speed)

    # Tick pipeline.

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        config = self._config
        now = tick * config.time_step
        self._time = now
        self._spawned = 0

        for species in _STEERED_SPECIES:
            population.spawn_species(self, species)

        self._rebuild_grid()

        for species in _STEERED_SPECIES:
            threats.avoid_walls(self, species)
            threats.flee_threats(self, species, now)
            motion.wander_species(self, species)
            threats.evade_targets(self, species)
            flocking.apply_flocking(self, species)
            threats.pursue_prey(self, species)

        for species in _STEERED_SPECIES:
            motion.integrate_species(self, species)
        motion.move_player(self)
        motion.fly_projectiles(self, now)

        lifecycle.resolve_predation(self, now)
        lifecycle.resolve_projectile_hits(self)
        for species in _STEERED_SPECIES:
            lifecycle.starve(self, species, now)

        removals = self._flush_removals()
        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(
            tick=tick,
            sim_time=now,
            species_counts={species: len(self.agents_of(species)) for species in _STEERED_SPECIES},
            groups=len(self.groups(Species.DEER)),
            projectiles=len(self._projectiles),
            spawned=self._spawned,
            removals=removals,
            duration_ms=duration_ms,
        )
        return self._metrics

    def _rebuild_grid(self) -> None:
        self._grid.clear()
        for agent in self._agents.values():
            self._grid.insert(agent)

    def _flush_removals(self) -> Dict[RemovalCause, int]:
        removals: Dict[RemovalCause, int] = {}
        for agent_id, cause in self._pending_removals.items():
            agent = self._agents.pop(agent_id, None)
            if agent is None:
                continue
            agent.alive = False
            population_tracker = self._populations.get(agent.species)
            if population_tracker is not None:
                population_tracker.on_removed(agent)
            if agent_id == self._player_id:
                self._player_id = None
            removals[cause] = removals.get(cause, 0) + 1
            logger.debug("removed %s %d (%s)", agent.species.value, agent_id, cause.value)
        self._pending_removals.clear()

        for projectile_id in self._pending_projectile_removals:
            projectile = self._projectiles.pop(projectile_id, None)
            if projectile is not None:
                projectile.alive = False
        self._pending_projectile_removals.clear()
        return removals

    def snapshot(self, tick: int) -> Snapshot:
        config = self._config
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(
                tick=tick,
                sim_time=self._time,
                species_counts={species: len(self.agents_of(species)) for species in _STEERED_SPECIES},
                groups=len(self.groups(Species.DEER)),
                projectiles=len(self._projectiles),
                spawned=0,
                removals={},
                duration_ms=0.0,
            )
        agents = [
            {
                "id": agent.id,
                "species": agent.species.value,
                "x": agent.position.x,
                "y": agent.position.y,
                "vx": agent.velocity.x,
                "vy": agent.velocity.y,
                "rotation": agent.rotation,
                "speed": agent.movement_speed,
                "group": agent.group_id,
                "last_fed_at": agent.last_fed_at,
            }
            for agent in self._agents.values()
        ]
        projectiles = [
            {
                "id": projectile.id,
                "x": projectile.position.x,
                "y": projectile.position.y,
                "vx": projectile.velocity.x,
                "vy": projectile.velocity.y,
            }
            for projectile in self._projectiles.values()
        ]
        walls = [[wall.point_a.x, wall.point_a.y, wall.point_b.x, wall.point_b.y] for wall in self._walls]
        return Snapshot(
            tick=tick,
            metrics=metrics,
            agents=agents,
            projectiles=projectiles,
            world=SnapshotWorld(width=config.arena.width, height=config.arena.height, walls=walls),
            metadata=SnapshotMetadata(
                sim_dt=config.time_step,
                tick_rate=1.0 / config.time_step,
                seed=self._rng.seed,
                config_version=config.config_version,
            ),
        )
