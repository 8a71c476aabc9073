"""Tests for village presets."""

import pytest

from homestead.core.agent import Profession
from homestead.core.config import SimulationConfig
from homestead.core.engine import VillageEngine
from homestead.core.grid import Position
from homestead.experiment.presets import (
    PRESETS,
    busy_village,
    default,
    get_preset,
    list_presets,
    night_shift,
    pack_mules,
    sparse_wilds,
)


class TestPresetRegistry:
    def test_five_presets_defined(self):
        assert len(PRESETS) == 5

    def test_list_presets(self):
        names = list_presets()
        assert "default" in names
        assert "night_shift" in names

    def test_all_presets_return_config(self):
        for name, factory in PRESETS.items():
            config = factory()
            assert isinstance(config, SimulationConfig), f"{name} failed"
            assert config.simulation_name == name

    def test_get_unknown_raises(self):
        with pytest.raises(KeyError, match="Unknown preset"):
            get_preset("nonexistent")


class TestPresetValues:
    def test_default_has_defaults(self):
        assert default().diff(SimulationConfig()) == {}

    def test_night_shift_wraps_midnight(self):
        config = night_shift()
        assert config.work_start_hour == 22
        assert config.work_end_hour == 6

    def test_pack_mules_capacity(self):
        assert pack_mules().base_carry_capacity == 100.0

    def test_sparse_wilds_densities(self):
        config = sparse_wilds()
        assert config.resource_settings("tree")["density"] == 0.02
        assert config.resource_settings("animal")["far_density"] == 0.01
        assert SimulationConfig().resource_settings("tree")["density"] == 0.1

    def test_busy_village_intervals(self):
        config = busy_village()
        assert config.profession_settings("lumberjack")["work_interval_ms"] == 500
        assert config.profession_settings("lumberjack")["yield_amount"] == 2


class TestPresetsRun:
    @pytest.mark.parametrize("name", list(PRESETS))
    def test_preset_runs(self, name):
        config = get_preset(name)
        config.random_seed = 1
        config.grid_size = 33
        engine = VillageEngine(config)
        engine.clock.set_hour(config.work_start_hour)
        engine.add_npc(Position(0, 0), Profession.LUMBERJACK)
        engine.add_npc(Position(1, 0), Profession.FARMER)
        engine.populate_world()
        engine.run(100)
        assert engine.clock.now_ms == 10_000

    def test_night_shift_works_at_night(self):
        config = night_shift()
        config.random_seed = 1
        engine = VillageEngine(config)
        farmer = engine.add_npc(Position(0, 0), Profession.FARMER)
        engine.clock.set_hour(23)
        engine.tick()
        assert farmer.current_task is not None
