"""
Shared test configuration.

Every fixture here builds a deterministic world: seeded RNG, no idle
wandering, and the clock parked inside the default 08:00-18:00 work window.
"""

import pytest

from homestead.core.agent import NPCState
from homestead.core.config import SimulationConfig
from homestead.core.engine import VillageEngine


def make_config(**overrides) -> SimulationConfig:
    defaults = dict(random_seed=42, idle_wander_chance=0.0)
    defaults.update(overrides)
    return SimulationConfig(**defaults)


def make_engine(config: SimulationConfig | None = None, hour: float = 10.0) -> VillageEngine:
    engine = VillageEngine(config or make_config())
    engine.clock.set_hour(hour)
    return engine


def assert_task_matches_state(engine: VillageEngine) -> None:
    for npc in engine.npcs.values():
        assert (npc.current_task is not None) == (npc.state == NPCState.WORKING), npc


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def engine(config):
    return make_engine(config)
