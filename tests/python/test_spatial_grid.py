from __future__ import annotations

from pygame.math import Vector2

from huntsim.sim.core.agent import Agent, Species
from huntsim.sim.core.spatial_grid import SpatialGrid


def _agent(idx: int, position: Vector2) -> Agent:
    return Agent(id=idx, species=Species.HARE, position=position, velocity=Vector2(), movement_speed=150.0)


def test_collect_neighbors_matches_bruteforce():
    grid = SpatialGrid(cell_size=2.5)
    agents = [
        _agent(0, Vector2(0, 0)),
        _agent(1, Vector2(1, 1)),
        _agent(2, Vector2(3, 0.5)),
        _agent(3, Vector2(6, 6)),
        _agent(4, Vector2(-2, -1.5)),
    ]
    for agent in agents:
        grid.insert(agent)

    center = Vector2(1, 1)
    radius = 3.0
    out_agents: list[Agent] = []
    grid.collect_neighbors(center, radius, out_agents, exclude_id=agents[1].id)

    brute = [
        a.id
        for a in agents
        if a.id != agents[1].id and (a.position - center).length_squared() <= radius * radius
    ]
    assert sorted(a.id for a in out_agents) == sorted(brute)


def test_collect_neighbors_is_inclusive_at_radius():
    grid = SpatialGrid(cell_size=10.0)
    grid.insert(_agent(0, Vector2(5, 0)))
    out_agents: list[Agent] = []

    grid.collect_neighbors(Vector2(0, 0), 5.0, out_agents)

    assert [a.id for a in out_agents] == [0]


def test_clear_empties_buckets_and_output_is_reset():
    grid = SpatialGrid(cell_size=10.0)
    grid.insert(_agent(0, Vector2(1, 1)))
    out_agents: list[Agent] = [_agent(9, Vector2())]

    grid.clear()
    grid.collect_neighbors(Vector2(0, 0), 50.0, out_agents)
    assert out_agents == []

    grid.insert(_agent(1, Vector2(2, 2)))
    grid.collect_neighbors(Vector2(0, 0), 50.0, out_agents)
    assert [a.id for a in out_agents] == [1]


def test_negative_radius_finds_nothing():
    grid = SpatialGrid(cell_size=10.0)
    grid.insert(_agent(0, Vector2(0, 0)))
    out_agents: list[Agent] = []

    grid.collect_neighbors(Vector2(0, 0), -1.0, out_agents)

    assert out_agents == []
