from __future__ import annotations

import math
from enum import Enum

from pygame.math import Vector2


class Collision(str, Enum):
    LEFT = "Left"
    RIGHT = "Right"
    TOP = "Top"
    BOTTOM = "Bottom"
    INSIDE = "Inside"


def limit(vector: Vector2, max_length: float) -> Vector2:
    if max_length <= 0:
        return Vector2()
    magnitude_sq = vector.length_squared()
    if magnitude_sq <= max_length * max_length:
        return Vector2(vector)
    inv = max_length / math.sqrt(magnitude_sq)
    return Vector2(vector.x * inv, vector.y * inv)


def set_mag(vector: Vector2, length: float) -> Vector2:
    magnitude_sq = vector.length_squared()
    if magnitude_sq < 1e-18:
        return Vector2()
    inv = length / math.sqrt(magnitude_sq)
    return Vector2(vector.x * inv, vector.y * inv)


def distance(a: Vector2, b: Vector2) -> float:
    dx = b.x - a.x
    dy = b.y - a.y
    return math.sqrt(dx * dx + dy * dy)


def line_intersect(a1: Vector2, a2: Vector2, b1: Vector2, b2: Vector2) -> Vector2 | None:
    """Intersection of wall segment ``a1-a2`` with the probe ray ``b1-b2``.

    The wall parameter must lie strictly inside (0, 1) while the probe parameter
    must exceed 1: only hits beyond the current step are reported.
    """
    x1, y1 = a1.x, a1.y
    x2, y2 = a2.x, a2.y
    x3, y3 = b1.x, b1.y
    x4, y4 = b2.x, b2.y

    den = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if den == 0.0:
        return None

    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / den
    u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / den

    if 0.0 < t < 1.0 and u > 1.0:
        return Vector2(x1 + t * (x2 - x1), y1 + t * (y2 - y1))
    return None


def collide(a_pos: Vector2, a_size: Vector2, b_pos: Vector2, b_size: Vector2) -> Collision | None:
    """Axis-aligned overlap of two boxes given centers and full extents.

    Returns the side of ``b`` that ``a`` touches, picking the shallower axis.
    """
    a_min_x = a_pos.x - a_size.x / 2.0
    a_max_x = a_pos.x + a_size.x / 2.0
    a_min_y = a_pos.y - a_size.y / 2.0
    a_max_y = a_pos.y + a_size.y / 2.0
    b_min_x = b_pos.x - b_size.x / 2.0
    b_max_x = b_pos.x + b_size.x / 2.0
    b_min_y = b_pos.y - b_size.y / 2.0
    b_max_y = b_pos.y + b_size.y / 2.0

    if not (a_min_x < b_max_x and a_max_x > b_min_x and a_min_y < b_max_y and a_max_y > b_min_y):
        return None

    if a_min_x < b_min_x < a_max_x < b_max_x:
        x_collision, x_depth = Collision.LEFT, b_min_x - a_max_x
    elif b_min_x < a_min_x < b_max_x < a_max_x:
        x_collision, x_depth = Collision.RIGHT, a_min_x - b_max_x
    else:
        x_collision, x_depth = Collision.INSIDE, -math.inf

    if a_min_y < b_min_y < a_max_y < b_max_y:
        y_collision, y_depth = Collision.BOTTOM, b_min_y - a_max_y
    elif b_min_y < a_min_y < b_max_y < a_max_y:
        y_collision, y_depth = Collision.TOP, a_min_y - b_max_y
    else:
        y_collision, y_depth = Collision.INSIDE, -math.inf

    if abs(y_depth) < abs(x_depth):
        return y_collision
    return x_collision


def facing_angle(velocity: Vector2) -> float:
    return math.atan2(velocity.y, velocity.x) - math.pi / 2.0
