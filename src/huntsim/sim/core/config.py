from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml


class ConfigError(ValueError):
    """Raised when a loaded configuration cannot drive a simulation."""


@dataclass
class WanderConfig:
    weight: float = 1.0
    displace_range: float = 0.3
    radius: float = 25.0
    max_force: float = 0.1
    distance: float = 50.0


@dataclass
class FleeConfig:
    weight: float = 1.0
    detection_radius: float = 100.0
    max_flee_time: float = 0.0
    speed_boost: float = 0.0
    ignore_species: List[str] = field(default_factory=list)


@dataclass
class EvadeConfig:
    weight: float = 1.0
    detection_radius: float = 180.0
    target_species: str = "wolf"


@dataclass
class PursueConfig:
    weight: float = 1.0
    detection_radius: float = 100.0


@dataclass
class EvadeWallsConfig:
    weight: float = 3.0
    detection_distance: float = 40.0


@dataclass
class FlockingRuleConfig:
    perception_radius: float = 50.0
    max_force: float = 0.05


@dataclass
class SpeciesConfig:
    movement_speed: float = 150.0
    width: float = 30.0
    height: float = 30.0
    max_number: int = 0
    threat: bool = False
    prey: bool = False
    fatal: bool = False
    shootable: bool = True
    initial_velocity: tuple[float, float] = (0.0, -2.0)
    spawn_margin: float = 30.0
    max_hunger_duration: Optional[float] = None
    # Group spawning; group_number == 0 means the species spawns one agent at a time.
    group_number: int = 0
    group_size_min: int = 3
    group_size_max: int = 8
    group_spawn_margin: float = 60.0
    group_spread: float = 30.0
    wander: Optional[WanderConfig] = None
    flee: Optional[FleeConfig] = None
    evade: Optional[EvadeConfig] = None
    pursue: Optional[PursueConfig] = None
    evade_walls: Optional[EvadeWallsConfig] = None
    separation: Optional[FlockingRuleConfig] = None
    alignment: Optional[FlockingRuleConfig] = None
    cohesion: Optional[FlockingRuleConfig] = None

    @property
    def flocking(self) -> bool:
        return self.group_number > 0


def default_hare() -> SpeciesConfig:
    return SpeciesConfig(
        movement_speed=150.0,
        width=30.0,
        height=30.0,
        max_number=10,
        threat=True,
        prey=True,
        wander=WanderConfig(),
        flee=FleeConfig(weight=1.0, detection_radius=100.0, max_flee_time=2.0, speed_boost=50.0),
        evade_walls=EvadeWallsConfig(),
    )


def default_wolf() -> SpeciesConfig:
    return SpeciesConfig(
        movement_speed=170.0,
        width=36.0,
        height=36.0,
        max_number=3,
        threat=True,
        fatal=True,
        max_hunger_duration=5.0,
        wander=WanderConfig(weight=0.8),
        pursue=PursueConfig(weight=1.2, detection_radius=100.0),
        evade_walls=EvadeWallsConfig(),
    )


def default_deer() -> SpeciesConfig:
    return SpeciesConfig(
        movement_speed=120.0,
        width=36.0,
        height=36.0,
        prey=True,
        group_number=3,
        group_size_min=3,
        group_size_max=8,
        wander=WanderConfig(weight=0.5),
        flee=FleeConfig(weight=1.0, detection_radius=100.0, ignore_species=["hare"]),
        evade=EvadeConfig(weight=1.0, detection_radius=180.0, target_species="wolf"),
        evade_walls=EvadeWallsConfig(),
        separation=FlockingRuleConfig(perception_radius=40.0, max_force=0.08),
        alignment=FlockingRuleConfig(perception_radius=60.0, max_force=0.05),
        cohesion=FlockingRuleConfig(perception_radius=60.0, max_force=0.04),
    )


def default_player() -> SpeciesConfig:
    return SpeciesConfig(
        movement_speed=200.0,
        width=36.0,
        height=36.0,
        threat=True,
        prey=True,
        shootable=False,
        initial_velocity=(0.0, 0.0),
    )


@dataclass
class ProjectileConfig:
    width: float = 24.0
    height: float = 24.0
    movement_speed: float = 600.0
    max_duration: float = 2.0


@dataclass
class ArenaConfig:
    width: float = 1200.0
    height: float = 700.0


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    cell_size: float = 100.0
    seed: Optional[int] = 42
    config_version: str = "v1"
    player_enabled: bool = False
    player_start: tuple[float, float] = (0.0, 0.0)
    arena: ArenaConfig = field(default_factory=ArenaConfig)
    hare: SpeciesConfig = field(default_factory=default_hare)
    wolf: SpeciesConfig = field(default_factory=default_wolf)
    deer: SpeciesConfig = field(default_factory=default_deer)
    player: SpeciesConfig = field(default_factory=default_player)
    projectile: ProjectileConfig = field(default_factory=ProjectileConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text())
        return load_config(data or {})


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    broadcast_interval: int = 2


_SPECIES_KEYS = ("hare", "wolf", "deer", "player")
_BEHAVIOR_TYPES = {
    "wander": WanderConfig,
    "flee": FleeConfig,
    "evade": EvadeConfig,
    "pursue": PursueConfig,
    "evade_walls": EvadeWallsConfig,
    "separation": FlockingRuleConfig,
    "alignment": FlockingRuleConfig,
    "cohesion": FlockingRuleConfig,
}


def _pair(value: tuple[float, float] | list[float] | None, default: tuple[float, float]) -> tuple[float, float]:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return (float(value[0]), float(value[1]))
    return default


def _load_species(raw: dict, default: SpeciesConfig) -> SpeciesConfig:
    """Build a species block; a missing behavior keeps the default, ``null`` disables it."""
    values = {k: v for k, v in raw.items() if k not in _BEHAVIOR_TYPES and k != "steering"}
    if "initial_velocity" in values:
        values["initial_velocity"] = _pair(values["initial_velocity"], default.initial_velocity)
    steering_raw = raw.get("steering", {}) or {}
    for name, behavior_type in _BEHAVIOR_TYPES.items():
        if name in steering_raw:
            block = steering_raw[name]
            values[name] = None if block is None else behavior_type(**block)
        else:
            values[name] = getattr(default, name)
    base = {
        key: getattr(default, key)
        for key in SpeciesConfig.__dataclass_fields__
        if key not in values
    }
    return SpeciesConfig(**base, **values)


def load_config(raw: dict) -> SimulationConfig:
    defaults = SimulationConfig()
    species = {
        key: _load_species(raw.get(key, {}) or {}, getattr(defaults, key)) for key in _SPECIES_KEYS
    }
    arena = ArenaConfig(**raw.get("arena", {}))
    projectile = ProjectileConfig(**raw.get("projectile", {}))
    sim_values = {
        k: v for k, v in raw.items() if k not in {*_SPECIES_KEYS, "arena", "projectile"}
    }
    if "player_start" in sim_values:
        sim_values["player_start"] = _pair(sim_values["player_start"], defaults.player_start)
    config = SimulationConfig(arena=arena, projectile=projectile, **species, **sim_values)
    validate_config(config)
    return config


def validate_config(config: SimulationConfig) -> None:
    if config.time_step <= 0:
        raise ConfigError(f"time_step must be positive, got {config.time_step}")
    if config.cell_size <= 0:
        raise ConfigError(f"cell_size must be positive, got {config.cell_size}")
    if config.arena.width <= 0 or config.arena.height <= 0:
        raise ConfigError(f"arena must have positive size, got {config.arena.width}x{config.arena.height}")
    if config.projectile.max_duration < 0:
        raise ConfigError("projectile.max_duration must not be negative")
    for name in _SPECIES_KEYS:
        species: SpeciesConfig = getattr(config, name)
        if species.max_number < 0 or species.group_number < 0:
            raise ConfigError(f"{name}: population targets must not be negative")
        if species.movement_speed < 0:
            raise ConfigError(f"{name}: movement_speed must not be negative")
        if species.flocking and not 1 <= species.group_size_min < species.group_size_max:
            raise ConfigError(
                f"{name}: group size range [{species.group_size_min}, {species.group_size_max}) is empty"
            )
        if species.max_hunger_duration is not None and species.max_hunger_duration <= 0:
            raise ConfigError(f"{name}: max_hunger_duration must be positive")
        for margin_name in ("spawn_margin", "group_spawn_margin"):
            margin = getattr(species, margin_name)
            if margin * 2 >= min(config.arena.width, config.arena.height):
                raise ConfigError(f"{name}: {margin_name} {margin} leaves no room to spawn")
        for behavior_name in ("flee", "evade", "pursue"):
            behavior = getattr(species, behavior_name)
            if behavior is not None and behavior.detection_radius < 0:
                raise ConfigError(f"{name}: {behavior_name}.detection_radius must not be negative")
        if species.flee is not None and species.flee.max_flee_time < 0:
            raise ConfigError(f"{name}: flee.max_flee_time must not be negative")
        for rule_name in ("separation", "alignment", "cohesion"):
            rule = getattr(species, rule_name)
            if rule is not None and rule.perception_radius < 0:
                raise ConfigError(f"{name}: {rule_name}.perception_radius must not be negative")
