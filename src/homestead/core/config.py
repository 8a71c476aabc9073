"""
Master configuration for the Homestead simulation.

ALL tunable parameters live here. Nothing in the simulation is hardcoded:
registries, professions, the inventory model and the scheduler read their
constants from the config they are built with.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any


def _default_resource_config() -> dict[str, dict[str, Any]]:
    return {
        "tree": {
            "density": 0.1,
            "despawn_delay_ms": 4000,   # 1s fall + 3s despawn
            "hit_animation_ms": 200,
            "subtypes": {
                "pine": {"health": 3, "weight": 1.0},
                "oak": {"health": 3, "weight": 1.0},
                "birch": {"health": 3, "weight": 1.0},
            },
        },
        "stone": {
            "density": 0.05,
            "despawn_delay_ms": 2800,   # 0.8s break + 2s despawn
            "hit_animation_ms": 200,
            "subtypes": {
                "small": {"health": 5, "weight": 1.0},
                "medium": {"health": 5, "weight": 1.0},
                "large": {"health": 5, "weight": 1.0},
            },
        },
        "animal": {
            "density": 0.02,
            "near_density": 0.01,       # chunks within near_chunk_distance of origin
            "far_density": 0.03,        # chunks beyond far_chunk_distance
            "near_chunk_distance": 2,
            "far_chunk_distance": 5,
            "despawn_delay_ms": 1500,
            "hit_animation_ms": 200,
            "wander_chance": 0.5,
            "subtypes": {
                "rabbit": {"health": 1, "meat_value": 1, "movement_speed_ms": 200, "weight": 0.6},
                "deer": {"health": 2, "meat_value": 2, "movement_speed_ms": 300, "weight": 0.3},
                "boar": {"health": 3, "meat_value": 3, "movement_speed_ms": 500, "weight": 0.1},
            },
        },
    }


def _default_profession_config() -> dict[str, dict[str, Any]]:
    return {
        "lumberjack": {
            "work_range": 10,
            "work_interval_ms": 1000,
            "cooldown_ms": 2000,
            "yield_item": "wood",
            "yield_amount": 2,
            "experience_per_yield": 10,
        },
        "miner": {
            "work_range": 10,
            "work_interval_ms": 1500,
            "cooldown_ms": 2500,
            "yield_item": "stone",
            "yield_amount": 2,
            "experience_per_yield": 12,
        },
        "hunter": {
            "work_range": 12,
            "work_interval_ms": 800,
            "cooldown_ms": 1500,
            "yield_item": "meat",
            "yield_amount": None,       # None = the animal's meat_value
            "experience_per_yield": 15,
        },
        "farmer": {
            "work_range": 0,
            "work_interval_ms": 2000,
            "cooldown_ms": 3000,
            "yield_item": "food",
            "yield_amount": 2,
            "cycle_length": 3,
            "experience_per_yield": 8,
        },
    }


def _default_item_catalog() -> dict[str, dict[str, Any]]:
    return {
        "wood": {"name": "Wood", "type": "resource", "weight": 2.0, "max_stack": 50,
                 "value": 2, "house_resource": "wood"},
        "stone": {"name": "Stone", "type": "resource", "weight": 3.0, "max_stack": 50,
                  "value": 3, "house_resource": "stone"},
        "food": {"name": "Food", "type": "food", "weight": 0.5, "max_stack": 99,
                 "value": 1, "house_resource": "food"},
        "meat": {"name": "Meat", "type": "food", "weight": 1.0, "max_stack": 40,
                 "value": 4, "house_resource": "food"},
        "axe": {"name": "Axe", "type": "tool", "weight": 3.0, "max_stack": 1, "value": 15},
        "pickaxe": {"name": "Pickaxe", "type": "tool", "weight": 4.0, "max_stack": 1, "value": 18},
        "backpack": {"name": "Backpack", "type": "equipment", "weight": 1.0, "max_stack": 1,
                     "value": 25, "capacity_bonus": 20.0},
    }


@dataclass
class SimulationConfig:
    """
    Master configuration for a village run.

    Every interval, range, density and capacity is configurable.
    Use ``to_dict()`` / ``from_dict()`` for serialization and comparison.
    """

    # === Identity ===
    simulation_name: str = "default"
    random_seed: int | None = None

    # === World ===
    grid_size: int = 65                 # valid coords are -32..32 on both axes
    chunk_size: int = 16
    tick_interval_ms: int = 100

    # === Movement ===
    movement_duration_ms: int = 300
    overweight_speed_penalty: float = 0.5   # speed multiplier while overweight
    idle_wander_interval_ms: int = 3000
    idle_wander_chance: float = 0.3

    # === Time of day ===
    ms_per_game_hour: int = 60_000
    start_hour: float = 6.0

    # === Schedule defaults (hours, 0-23) ===
    work_start_hour: int = 8
    work_end_hour: int = 18
    rest_start_hour: int = 22
    rest_end_hour: int = 6
    break_duration_minutes: int = 30
    work_duration_minutes: int = 240

    # === Resources / professions / items ===
    resource_config: dict[str, dict[str, Any]] = field(default_factory=_default_resource_config)
    profession_config: dict[str, dict[str, Any]] = field(default_factory=_default_profession_config)
    item_catalog: dict[str, dict[str, Any]] = field(default_factory=_default_item_catalog)

    # === Inventory ===
    base_carry_capacity: float = 50.0
    near_capacity_ratio: float = 0.9

    # === Houses ===
    house_storage_capacity: int = 200

    # === Progression ===
    skill_level_cap: int = 100
    profession_skill_level: int = 10

    # ------------------------------------------------------------------
    # Lookups (overrides merged onto defaults)
    # ------------------------------------------------------------------
    def profession_settings(self, profession: str) -> dict[str, Any]:
        """Return the merged settings dict for a profession name."""
        key = getattr(profession, "value", profession).lower()
        merged = dict(_default_profession_config().get(key, {}))
        merged.update(self.profession_config.get(key, {}))
        return merged

    def resource_settings(self, kind: str) -> dict[str, Any]:
        """Return the merged settings dict for a resource kind."""
        merged = copy.deepcopy(_default_resource_config().get(kind, {}))
        overrides = self.resource_config.get(kind, {})
        for k, v in overrides.items():
            merged[k] = copy.deepcopy(v)
        return merged

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict (excludes private fields)."""
        d: dict[str, Any] = {}
        for k, v in self.__dict__.items():
            if k.startswith("_"):
                continue
            d[k] = v
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SimulationConfig:
        """Deserialize from a dict."""
        return cls(**{k: v for k, v in d.items() if not k.startswith("_")})

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_json(cls, s: str) -> SimulationConfig:
        return cls.from_dict(json.loads(s))

    def configure_profession(self, profession: str, **kwargs: Any) -> None:
        """Update settings for a named profession."""
        key = getattr(profession, "value", profession).lower()
        self.profession_config.setdefault(key, {}).update(kwargs)

    def diff(self, other: SimulationConfig) -> dict[str, tuple[Any, Any]]:
        """Return parameters that differ between two configs."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for k in self.to_dict():
            v1 = getattr(self, k)
            v2 = getattr(other, k)
            if v1 != v2:
                diffs[k] = (v1, v2)
        return diffs
