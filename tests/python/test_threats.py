from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from huntsim.sim.core.agent import Species
from huntsim.sim.core.world import World
from huntsim.sim.systems.steering import evade, flee, pursue, seek
from huntsim.sim.systems.threats import avoid_walls, evade_targets, flee_threats, pursue_prey


def _place(world: World, species: Species, x: float, y: float, velocity: Vector2 | None = None):
    agent = world.spawn_agent(species, Vector2(x, y))
    if velocity is not None:
        agent.velocity = velocity
    return agent


def _assert_vec(actual: Vector2, expected: Vector2) -> None:
    assert actual.x == approx(expected.x)
    assert actual.y == approx(expected.y)


def test_flee_boost_holds_then_decays(quiet_config):
    world = World(quiet_config)
    dt = quiet_config.time_step
    hare = _place(world, Species.HARE, 0, 0)
    wolf = _place(world, Species.WOLF, 50, 0)
    world._rebuild_grid()

    flee_threats(world, Species.HARE, 1.0)
    assert hare.movement_speed == approx(200.0)
    assert hare.flee_time == approx(1.0)
    _assert_vec(hare.force, flee(hare.position, hare.velocity, wolf.position, 200.0 * dt))

    world.despawn(wolf.id)
    world._flush_removals()
    world._rebuild_grid()

    flee_threats(world, Species.HARE, 2.5)
    assert hare.movement_speed == approx(200.0)

    flee_threats(world, Species.HARE, 3.5)
    assert hare.movement_speed == approx(150.0)
    assert hare.flee_time == 0.0


def test_hares_flee_each_other(quiet_config):
    world = World(quiet_config)
    first = _place(world, Species.HARE, 0, 0)
    second = _place(world, Species.HARE, 20, 0)
    world._rebuild_grid()

    flee_threats(world, Species.HARE, 0.5)

    assert first.force.x < 0.0
    assert second.force.x > 0.0


def test_flee_radius_is_strict(quiet_config):
    world = World(quiet_config)
    hare = _place(world, Species.HARE, 0, 0)
    _place(world, Species.WOLF, 100, 0)
    world._rebuild_grid()

    flee_threats(world, Species.HARE, 0.5)

    assert hare.force == Vector2()
    assert hare.movement_speed == approx(150.0)


def test_deer_ignore_hares_but_flee_wolves(quiet_config):
    world = World(quiet_config)
    dt = quiet_config.time_step
    deer = _place(world, Species.DEER, 0, 0)
    _place(world, Species.HARE, 30, 0)
    world._rebuild_grid()

    flee_threats(world, Species.DEER, 0.5)
    assert deer.force == Vector2()

    wolf = _place(world, Species.WOLF, -30, 0)
    world._rebuild_grid()
    flee_threats(world, Species.DEER, 0.5)
    _assert_vec(deer.force, flee(deer.position, deer.velocity, wolf.position, 120.0 * dt))
    # No speed boost configured for deer.
    assert deer.movement_speed == approx(120.0)


def test_deer_evade_wolves_inside_detection_radius(quiet_config):
    world = World(quiet_config)
    dt = quiet_config.time_step
    deer = _place(world, Species.DEER, 0, 0, velocity=Vector2(1.0, 0.0))
    wolf = _place(world, Species.WOLF, 150, 0, velocity=Vector2(-2.0, 1.0))
    world._rebuild_grid()

    evade_targets(world, Species.DEER)

    expected = evade(deer.position, deer.velocity, wolf.position, wolf.velocity, 120.0 * dt)
    _assert_vec(deer.force, expected)
    assert deer.force != Vector2()


def test_deer_ignore_wolves_beyond_detection_radius(quiet_config):
    world = World(quiet_config)
    deer = _place(world, Species.DEER, 0, 0)
    _place(world, Species.WOLF, 200, 0)
    world._rebuild_grid()

    evade_targets(world, Species.DEER)

    assert deer.force == Vector2()


def test_wolf_pursues_predicted_position(quiet_config):
    world = World(quiet_config)
    dt = quiet_config.time_step
    wolf = _place(world, Species.WOLF, 0, 0)
    hare = _place(world, Species.HARE, 60, 0, velocity=Vector2(0.0, 3.0))
    world._rebuild_grid()

    pursue_prey(world, Species.WOLF)

    weight = quiet_config.wolf.pursue.weight
    expected = pursue(wolf.position, wolf.velocity, hare.position, hare.velocity, 170.0 * dt) * weight
    naive = seek(wolf.position, wolf.velocity, hare.position, 170.0 * dt) * weight
    _assert_vec(wolf.force, expected)
    assert (wolf.force - naive).length() > 1e-6


def test_two_wolves_pursue_the_same_hare_independently(quiet_config):
    world = World(quiet_config)
    dt = quiet_config.time_step
    left = _place(world, Species.WOLF, -50, 0)
    right = _place(world, Species.WOLF, 50, 0)
    hare = _place(world, Species.HARE, 0, 0, velocity=Vector2(0.0, 2.0))
    world._rebuild_grid()

    pursue_prey(world, Species.WOLF)

    weight = quiet_config.wolf.pursue.weight
    for wolf in (left, right):
        expected = pursue(wolf.position, wolf.velocity, hare.position, hare.velocity, 170.0 * dt) * weight
        _assert_vec(wolf.force, expected)
        assert wolf.force.y > 0.0
    assert left.force.x > 0.0
    assert right.force.x < 0.0
    assert left.force.x == approx(-right.force.x)


def test_pursuit_forces_sum_over_targets(quiet_config):
    world = World(quiet_config)
    dt = quiet_config.time_step
    wolf = _place(world, Species.WOLF, 0, 0)
    first = _place(world, Species.HARE, 60, 0, velocity=Vector2())
    second = _place(world, Species.DEER, 0, 60, velocity=Vector2())
    # Wolves are not prey, so a second wolf adds nothing.
    _place(world, Species.WOLF, -40, 0)
    world._rebuild_grid()

    pursue_prey(world, Species.WOLF)

    weight = quiet_config.wolf.pursue.weight
    expected = (
        pursue(wolf.position, wolf.velocity, first.position, first.velocity, 170.0 * dt)
        + pursue(wolf.position, wolf.velocity, second.position, second.velocity, 170.0 * dt)
    ) * weight
    _assert_vec(wolf.force, expected)


def test_walls_repel_agents_heading_into_them(quiet_config):
    world = World(quiet_config)
    dt = quiet_config.time_step
    hare = _place(world, Species.HARE, 580, 0, velocity=Vector2(2.0, 0.0))

    avoid_walls(world, Species.HARE)

    expected = flee(hare.position, hare.velocity, Vector2(600, 0), 150.0 * dt) * 3.0
    _assert_vec(hare.force, expected)
    assert hare.force.x < 0.0


def test_walls_beyond_detection_distance_are_ignored(quiet_config):
    world = World(quiet_config)
    hare = _place(world, Species.HARE, 500, 0, velocity=Vector2(2.0, 0.0))
    moving_away = _place(world, Species.HARE, 590, 0, velocity=Vector2(-2.0, 0.0))

    avoid_walls(world, Species.HARE)

    assert hare.force == Vector2()
    assert moving_away.force == Vector2()


def test_threat_systems_wait_for_full_population(quiet_config):
    quiet_config.hare.max_number = 5
    world = World(quiet_config)
    hare = _place(world, Species.HARE, 0, 0)
    _place(world, Species.WOLF, 20, 0)
    world._rebuild_grid()

    flee_threats(world, Species.HARE, 1.0)

    assert hare.force == Vector2()
    assert hare.movement_speed == approx(150.0)
