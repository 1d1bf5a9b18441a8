from __future__ import annotations

import math

from pygame.math import Vector2

from ..utils.math2d import limit, set_mag


def seek(position: Vector2, velocity: Vector2, target: Vector2, max_speed: float) -> Vector2:
    desired = set_mag(target - position, max_speed)
    return limit(desired - velocity, max_speed)


def flee(position: Vector2, velocity: Vector2, target: Vector2, max_speed: float) -> Vector2:
    desired = set_mag(position - target, max_speed)
    return limit(desired - velocity, max_speed)


def wander(
    position: Vector2,
    velocity: Vector2,
    wander_radius: float,
    distance: float,
    wander_theta: float,
    max_force: float,
) -> Vector2:
    """Steer toward a point on a circle projected ahead of the agent.

    The result always has length ``max_force`` (unless the wander point
    coincides with the agent).
    """
    wander_point = set_mag(velocity, distance) + position
    theta = wander_theta + math.atan2(velocity.y, velocity.x)
    wander_point.x += wander_radius * math.cos(theta)
    wander_point.y += wander_radius * math.sin(theta)
    return set_mag(wander_point - position, max_force)


def predict_position(
    position: Vector2, target_position: Vector2, target_velocity: Vector2, max_speed: float
) -> Vector2:
    lookahead = (target_position - position).length() / max_speed if max_speed > 0 else 0.0
    return target_position + target_velocity * lookahead


def pursue(
    position: Vector2,
    velocity: Vector2,
    target_position: Vector2,
    target_velocity: Vector2,
    max_speed: float,
) -> Vector2:
    future = predict_position(position, target_position, target_velocity, max_speed)
    return seek(position, velocity, future, max_speed)


def evade(
    position: Vector2,
    velocity: Vector2,
    target_position: Vector2,
    target_velocity: Vector2,
    max_speed: float,
) -> Vector2:
    future = predict_position(position, target_position, target_velocity, max_speed)
    return flee(position, velocity, future, max_speed)
