"""Integration tests for VillageEngine."""

import logging

from homestead.core.agent import NPCState, Profession
from homestead.core.clock import SimulationClock
from homestead.core.engine import VillageEngine
from homestead.core.grid import Position
from homestead.core.results import FailureReason

from conftest import assert_task_matches_state, make_config, make_engine


class TestNPCLifecycle:
    def test_add_npc(self, engine):
        npc = engine.add_npc(Position(1, 2), Profession.MINER)
        assert npc.id == "npc-0001"
        assert engine.get_npc(npc.id) is npc
        assert npc.skills["mining"] == 10
        assert npc.skills["farming"] == 1

    def test_add_npc_outside_world_rejected(self, engine):
        assert engine.add_npc(Position(100, 0)) is None
        assert engine.npcs == {}

    def test_add_npc_unknown_profession_rejected(self, engine):
        assert engine.add_npc(Position(0, 0), "wizard") is None
        assert engine.add_npc(Position(0, 0), control_mode="bogus") is None
        assert engine.add_npc(Position(0, 0)).id == "npc-0001"

    def test_remove_npc_clears_house_link(self, engine):
        npc = engine.add_npc(Position(0, 0))
        hid = engine.add_house("farmer", Position(0, 1))
        engine.assign_npc_to_house(npc, hid)
        assert engine.remove_npc(npc.id)
        assert engine.houses.get(hid).npc_id is None
        assert not engine.remove_npc(npc.id)

    def test_set_profession_drops_task(self, engine):
        npc = engine.add_npc(Position(0, 0), Profession.LUMBERJACK)
        engine.trees.add(Position(1, 0))
        engine.tick()
        assert npc.state == NPCState.WORKING
        assert engine.set_profession(npc, "miner")
        assert npc.profession == Profession.MINER
        assert npc.state == NPCState.IDLE
        assert npc.current_task is None
        assert npc.skills["mining"] == 10

    def test_set_unknown_profession(self, engine):
        npc = engine.add_npc(Position(0, 0), Profession.FARMER)
        result = engine.set_profession(npc, "wizard")
        assert not result
        assert result.reason == FailureReason.INVALID_PROFESSION
        assert npc.profession == Profession.FARMER

    def test_commands_on_unknown_npc(self, engine):
        assert engine.move("npc-9999", "north").reason == FailureReason.NPC_NOT_FOUND
        assert engine.request_manual_work("npc-9999").reason == FailureReason.NPC_NOT_FOUND
        assert engine.stop_work("npc-9999").reason == FailureReason.NPC_NOT_FOUND
        assert engine.set_control_mode("npc-9999", "controlled").reason == FailureReason.NPC_NOT_FOUND
        assert engine.add_item("npc-9999", "wood").reason == FailureReason.NPC_NOT_FOUND

    def test_commands_by_id(self, engine):
        npc = engine.add_npc(Position(0, 0))
        assert engine.move(npc.id, "north")
        assert npc.position == Position(0, 1)


class TestHouses:
    def test_assign_evicts_previous_resident(self, engine):
        hid = engine.add_house("farmer", Position(0, 0))
        first = engine.add_npc(Position(0, 0))
        second = engine.add_npc(Position(1, 0))
        engine.assign_npc_to_house(first, hid)
        engine.assign_npc_to_house(second, hid)
        assert first.house_id is None
        assert second.house_id == hid

    def test_assign_unknown_house(self, engine):
        npc = engine.add_npc(Position(0, 0))
        assert not engine.assign_npc_to_house(npc, "house-0099")

    def test_add_house_outside_world_rejected(self, engine):
        assert engine.add_house("farmer", Position(0, 40)) is None
        assert len(engine.houses) == 0

    def test_remove_house_clears_resident(self, engine, caplog):
        npc = engine.add_npc(Position(0, 0), Profession.FARMER)
        hid = engine.add_house("farmer", Position(0, 2))
        engine.assign_npc_to_house(npc, hid)
        assert engine.remove_house(hid)
        assert npc.house_id is None
        assert not engine.remove_house(hid)
        engine.clock.set_hour(20)
        with caplog.at_level(logging.WARNING, logger="homestead.core.house"):
            engine.run(10)
        assert not [r for r in caplog.records if "missing house" in r.getMessage()]


class TestInventoryWrappers:
    def test_add_and_equip(self, engine):
        npc = engine.add_npc(Position(0, 0))
        assert engine.add_item(npc, "backpack")
        assert engine.equip(npc, "backpack")
        assert engine.inventory.max_carry_weight(npc) == 70.0
        assert engine.unequip(npc, "backpack")
        assert engine.remove_item(npc, "backpack")
        assert npc.inventory == {}


class TestWorld:
    def test_populate_world(self):
        engine = make_engine(make_config(grid_size=33))
        totals = engine.populate_world()
        assert totals["tree"] == len(engine.trees) > 0
        assert totals["stone"] == len(engine.stones)
        assert totals["animal"] == len(engine.animals)

    def test_populate_is_idempotent(self):
        engine = make_engine(make_config(grid_size=33))
        engine.populate_world()
        counts = (len(engine.trees), len(engine.stones), len(engine.animals))
        assert engine.populate_world() == {"tree": 0, "stone": 0, "animal": 0}
        assert (len(engine.trees), len(engine.stones), len(engine.animals)) == counts

    def test_no_overlapping_resources(self):
        engine = make_engine(make_config(grid_size=33))
        engine.populate_world()
        positions = [r.position for reg in (engine.trees, engine.stones, engine.animals) for r in reg]
        assert len(positions) == len(set(positions))

    def test_same_seed_same_world(self):
        a = make_engine(make_config(grid_size=33, random_seed=5))
        b = make_engine(make_config(grid_size=33, random_seed=5))
        a.populate_world()
        b.populate_world()
        assert [t.position for t in a.trees] == [t.position for t in b.trees]

    def test_despawn_during_tick(self, engine):
        tid = engine.trees.add(Position(5, 5))
        engine.trees.damage(tid, 3, now=0)
        engine.run(39)
        assert tid in engine.trees
        engine.tick()                               # t=4000
        assert tid not in engine.trees


class TestTickLoop:
    def test_tick_advances_clock(self, engine):
        assert engine.tick() == 100
        assert engine.tick(250) == 350
        assert engine.tick_count == 2

    def test_run(self, engine):
        assert engine.run(5) == 500

    def test_injected_clock(self):
        clock = SimulationClock(ms_per_game_hour=1000, start_hour=9.0)
        engine = VillageEngine(make_config(), clock=clock)
        engine.run(10)
        assert clock.now_ms == 1000
        assert clock.game_hour == 10

    def test_village_day_keeps_invariants(self):
        engine = make_engine(make_config(grid_size=33, idle_wander_chance=0.3), hour=8)
        for i, prof in enumerate([Profession.LUMBERJACK, Profession.MINER,
                                  Profession.HUNTER, Profession.FARMER]):
            npc = engine.add_npc(Position(i, 0), prof)
            hid = engine.add_house(prof.value, Position(i, -2))
            engine.assign_npc_to_house(npc, hid)
        engine.populate_world()

        for _ in range(600):
            engine.tick()
            assert_task_matches_state(engine)
            for npc in engine.npcs.values():
                assert engine.inventory.total_weight(npc) <= engine.inventory.max_carry_weight(npc)

        assert sum(n.statistics.work_completed for n in engine.npcs.values()) > 0


class TestSnapshot:
    def test_snapshot_shape(self, engine):
        npc = engine.add_npc(Position(0, 0), Profession.FARMER)
        engine.trees.add(Position(3, 3))
        engine.add_house("farmer", Position(0, 2))
        engine.tick()
        snap = engine.snapshot()
        assert snap["time_ms"] == 100
        assert snap["tick"] == 1
        assert snap["npcs"][0]["id"] == npc.id
        assert snap["npcs"][0]["state"] == "working"
        assert snap["npcs"][0]["max_carry_weight"] == 50.0
        assert len(snap["trees"]) == 1
        assert snap["houses"][0]["type"] == "farmer"

    def test_repr(self, engine):
        assert "VillageEngine(npcs=0" in repr(engine)
