"""
Village presets: pre-configured simulation templates.

Each preset returns a SimulationConfig tuned to exercise a different part
of the labour loop (schedules, carry capacity, resource scarcity, pace).
"""

from __future__ import annotations

from typing import Callable

from homestead.core.config import SimulationConfig


def default() -> SimulationConfig:
    """Standard village with default parameters."""
    return SimulationConfig(simulation_name="default")


def night_shift() -> SimulationConfig:
    """Villagers work 22:00-06:00 and rest through the day."""
    return SimulationConfig(
        simulation_name="night_shift",
        work_start_hour=22,
        work_end_hour=6,
        rest_start_hour=8,
        rest_end_hour=18,
        start_hour=21.0,
    )


def pack_mules() -> SimulationConfig:
    """Double carry capacity: fewer trips home, longer working runs."""
    return SimulationConfig(
        simulation_name="pack_mules",
        base_carry_capacity=100.0,
    )


def sparse_wilds() -> SimulationConfig:
    """Scarce resources: long walks between targets."""
    config = SimulationConfig(simulation_name="sparse_wilds")
    config.resource_config["tree"]["density"] = 0.02
    config.resource_config["stone"]["density"] = 0.01
    config.resource_config["animal"].update(
        density=0.005, near_density=0.002, far_density=0.01,
    )
    return config


def busy_village() -> SimulationConfig:
    """Fast work intervals and short steps; a full day passes quickly."""
    config = SimulationConfig(
        simulation_name="busy_village",
        movement_duration_ms=150,
        ms_per_game_hour=10_000,
    )
    config.configure_profession("lumberjack", work_interval_ms=500, cooldown_ms=1000)
    config.configure_profession("miner", work_interval_ms=750, cooldown_ms=1250)
    config.configure_profession("hunter", work_interval_ms=400, cooldown_ms=750)
    config.configure_profession("farmer", work_interval_ms=1000, cooldown_ms=1500)
    return config


# Registry of all presets
PRESETS: dict[str, Callable[[], SimulationConfig]] = {
    "default": default,
    "night_shift": night_shift,
    "pack_mules": pack_mules,
    "sparse_wilds": sparse_wilds,
    "busy_village": busy_village,
}


def get_preset(name: str) -> SimulationConfig:
    """Get a preset config by name."""
    if name not in PRESETS:
        raise KeyError(f"Unknown preset: '{name}'. Available: {list(PRESETS.keys())}")
    return PRESETS[name]()


def list_presets() -> list[str]:
    """Return list of available preset names."""
    return list(PRESETS.keys())
