from __future__ import annotations

import pytest
from pygame.math import Vector2
from pytest import approx

from huntsim.sim.core.agent import Species
from huntsim.sim.core.config import SimulationConfig
from huntsim.sim.core.world import World
from huntsim.sim.systems.motion import move_player


def _run(world: World, steps: int, start: int = 0) -> None:
    for tick in range(start, start + steps):
        world.step(tick)


def _state(world: World) -> list[tuple]:
    return [
        (agent.id, agent.species, agent.position.x, agent.position.y, agent.velocity.x, agent.velocity.y)
        for agent in world.agents
    ]


def test_same_seed_reproduces_run():
    first = World(SimulationConfig(seed=7))
    second = World(SimulationConfig(seed=7))
    _run(first, 90)
    _run(second, 90)

    assert _state(first) == _state(second)
    assert first.metrics.population == second.metrics.population


def test_reset_restarts_from_scratch():
    world = World(SimulationConfig(seed=11))
    _run(world, 40)
    expected = _state(world)

    world.reset()
    assert world.agents == []
    assert world.time == 0.0
    _run(world, 40)

    assert _state(world) == expected


def test_forces_are_consumed_every_tick():
    world = World(SimulationConfig(seed=3))
    _run(world, 60)

    for agent in world.agents:
        assert agent.force == Vector2()
        assert agent.acceleration == Vector2()


def test_velocity_never_exceeds_step_speed():
    config = SimulationConfig(seed=5)
    world = World(config)
    for tick in range(120):
        world.step(tick)
        for agent in world.agents:
            assert agent.velocity.length() <= agent.movement_speed * config.time_step + 1e-9


def test_population_targets_are_respected():
    config = SimulationConfig(seed=9)
    world = World(config)
    _run(world, 30)

    assert len(world.agents_of(Species.HARE)) <= config.hare.max_number
    assert len(world.agents_of(Species.WOLF)) <= config.wolf.max_number
    assert len(world.groups(Species.DEER)) == config.deer.group_number


def test_player_moves_by_its_velocity(quiet_config):
    quiet_config.player_enabled = True
    quiet_config.player_start = (10.0, 20.0)
    world = World(quiet_config)

    world.steer_player(Vector2(1, 0))
    world.step(0)

    player = world.player
    assert player.velocity.x == approx(200.0 * quiet_config.time_step)
    assert player.position.x == approx(10.0 + 200.0 * quiet_config.time_step)
    assert player.position.y == approx(20.0)


def test_starvation_end_to_end(quiet_config):
    quiet_config.time_step = 0.1
    quiet_config.wolf.max_number = 1
    world = World(quiet_config)

    for tick in range(51):
        metrics = world.step(tick)
        assert metrics.wolves == 1, f"wolf died early at tick {tick}"
        assert metrics.starved == 0

    metrics = world.step(51)
    assert metrics.starved == 1
    assert metrics.wolves == 0

    metrics = world.step(52)
    assert metrics.wolves == 1
    assert metrics.spawned == 1


def test_removal_causes_are_counted(quiet_config):
    world = World(quiet_config)
    world.spawn_agent(Species.HARE, Vector2(0, 0))
    world.spawn_agent(Species.WOLF, Vector2(5, 0))

    metrics = world.step(0)

    assert metrics.eaten == 1
    assert metrics.hares == 0
    assert metrics.wolves == 1


def test_snapshot_contains_agents_walls_and_metadata(quiet_config):
    quiet_config.player_enabled = True
    config = quiet_config
    world = World(config)
    world.spawn_agent(Species.HARE, Vector2(-300, 0))
    world.spawn_agent(Species.WOLF, Vector2(300, 0))
    world.spawn_agent(Species.DEER, Vector2(0, 200))
    world.fire_projectile(Vector2(0, 0), Vector2(0, 1))

    snapshot = world.snapshot(1)

    assert snapshot.tick == 1
    assert snapshot.metadata.seed == 1234
    assert snapshot.metrics.hares == 1
    assert snapshot.metadata.tick_rate == approx(60.0)
    assert snapshot.world.width == approx(config.arena.width)
    assert len(snapshot.world.walls) == 4
    assert len(snapshot.projectiles) == 1
    species = {entry["species"] for entry in snapshot.agents}
    assert {"player", "hare", "wolf", "deer"} <= species
    for entry in snapshot.agents:
        assert {"id", "species", "x", "y", "vx", "vy", "rotation", "speed", "group", "last_fed_at"} <= set(entry)


@pytest.mark.slow
def test_long_run_stays_bounded():
    config = SimulationConfig(seed=21, player_enabled=True)
    world = World(config)
    for tick in range(1800):
        metrics = world.step(tick)
        assert metrics.hares <= config.hare.max_number
        assert metrics.wolves <= config.wolf.max_number
        assert metrics.groups <= config.deer.group_number
        assert metrics.population == metrics.hares + metrics.wolves + metrics.deer
        assert metrics.projectiles == 0


def test_player_on_the_arena_edge_is_pushed_back(quiet_config):
    quiet_config.player_enabled = True
    quiet_config.player_start = (590.0, 0.0)
    world = World(quiet_config)

    move_player(world)
    assert world.player.position.x == approx(589.0)
    assert world.player.position.y == approx(0.0)

    world.player.position = Vector2(0.0, -340.0)
    move_player(world)
    assert world.player.position.y == approx(-339.0)


def test_player_inside_the_arena_is_not_nudged(quiet_config):
    quiet_config.player_enabled = True
    quiet_config.player_start = (100.0, -50.0)
    world = World(quiet_config)

    move_player(world)

    assert world.player.position == Vector2(100.0, -50.0)
