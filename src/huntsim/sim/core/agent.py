from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

from pygame.math import Vector2


class Species(str, Enum):
    HARE = "hare"
    WOLF = "wolf"
    DEER = "deer"
    PLAYER = "player"


class RemovalCause(str, Enum):
    EATEN = "eaten"
    SHOT = "shot"
    STARVED = "starved"
    EXPIRED = "expired"
    EXTERNAL = "external"


@dataclass(slots=True)
class Agent:
    id: int
    species: Species
    position: Vector2
    velocity: Vector2
    movement_speed: float
    acceleration: Vector2 = field(default_factory=Vector2)
    # Written by force systems, consumed and zeroed by the integrator each tick.
    force: Vector2 = field(default_factory=Vector2)
    wander_theta: float = math.pi / 2.0
    threat: bool = False
    prey: bool = False
    fatal: bool = False
    shootable: bool = False
    group_id: int | None = None
    last_fed_at: float | None = None
    flee_time: float = 0.0
    rotation: float = 0.0
    alive: bool = True


@dataclass(slots=True)
class Projectile:
    id: int
    position: Vector2
    velocity: Vector2
    shot_at: float
    alive: bool = True


@dataclass(slots=True)
class Group:
    id: int
    count: int


@dataclass(frozen=True, slots=True)
class Wall:
    point_a: Vector2
    point_b: Vector2


def arena_walls(width: float, height: float) -> list[Wall]:
    half_w = width / 2.0
    half_h = height / 2.0
    return [
        Wall(Vector2(half_w, half_h), Vector2(half_w, -half_h)),
        Wall(Vector2(-half_w, -half_h), Vector2(half_w, -half_h)),
        Wall(Vector2(-half_w, half_h), Vector2(-half_w, -half_h)),
        Wall(Vector2(-half_w, half_h), Vector2(half_w, half_h)),
    ]
