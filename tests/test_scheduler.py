"""Tests for the NPC scheduler state machine and command surface."""

import logging

from homestead.core.agent import ControlMode, NPCState, Profession
from homestead.core.grid import Position
from homestead.core.results import FailureReason

from conftest import assert_task_matches_state, make_config, make_engine


def _lumberjack_by_tree(engine, tree_at=Position(1, 0), npc_at=Position(0, 0)):
    npc = engine.add_npc(npc_at, Profession.LUMBERJACK)
    tid = engine.trees.add(tree_at)
    return npc, tid


def _give_house(engine, npc, position):
    hid = engine.add_house("lumberjack", position)
    engine.assign_npc_to_house(npc, hid)
    return hid


def _run_checked(engine, ticks):
    for _ in range(ticks):
        engine.tick()
        assert_task_matches_state(engine)


class TestScenarios:
    def test_chop_adjacent_tree(self):
        """Three work intervals fell a health-3 tree and yield 2 wood."""
        engine = make_engine()
        npc, tid = _lumberjack_by_tree(engine)

        engine.tick()                               # t=100: task acquired
        assert npc.state == NPCState.WORKING
        assert npc.current_task.target_id == tid

        _run_checked(engine, 30)                    # hits at 1100, 2100, 3100
        assert engine.trees.get(tid).is_being_destroyed
        assert npc.inventory == {"wood": 2}
        assert npc.state == NPCState.IDLE
        assert npc.current_task is None

    def test_full_pack_returns_home(self):
        """A yield that does not fit sends the NPC home instead of idling."""
        engine = make_engine()
        npc, tid = _lumberjack_by_tree(engine)
        npc.inventory["stone"] = 16                 # 48 of 50
        hid = _give_house(engine, npc, Position(0, -3))

        _run_checked(engine, 31)
        assert engine.trees.get(tid).is_being_destroyed
        assert "wood" not in npc.inventory
        assert npc.state == NPCState.RETURNING_HOME

        _run_checked(engine, 20)
        assert npc.position == Position(0, -3)
        assert npc.state == NPCState.IDLE
        assert npc.inventory == {}
        assert engine.houses.get(hid).inventory["stone"] == 16

    def test_move_while_moving_rejected(self):
        engine = make_engine()
        npc = engine.add_npc(Position(0, 0))
        assert engine.move(npc, "east")
        assert npc.is_moving

        result = engine.move(npc, "north")
        assert not result
        assert result.reason == FailureReason.ALREADY_MOVING
        assert npc.position == Position(1, 0)

    def test_manual_work_cooldown(self):
        """A second manual command inside the cooldown is rejected untouched."""
        engine = make_engine()
        npc, tid = _lumberjack_by_tree(engine)
        engine.set_control_mode(npc, ControlMode.CONTROLLED)

        assert engine.request_manual_work(npc)
        assert npc.state == NPCState.WORKING
        task = npc.current_task

        engine.tick()
        result = engine.request_manual_work(npc)
        assert result.reason == FailureReason.COOLDOWN_ACTIVE
        assert npc.state == NPCState.WORKING
        assert npc.current_task is task
        assert task.progress == 0

    def test_off_hours_forces_return_home(self):
        engine = make_engine()
        npc, _ = _lumberjack_by_tree(engine)
        _give_house(engine, npc, Position(0, -3))
        engine.tick()
        assert npc.state == NPCState.WORKING

        engine.clock.set_hour(20)
        engine.tick()
        assert npc.state == NPCState.RETURNING_HOME
        assert npc.current_task is None
        assert npc.position == Position(0, -1)


class TestMovementToWork:
    def test_walks_then_works(self):
        engine = make_engine()
        npc, tid = _lumberjack_by_tree(engine, tree_at=Position(3, 0))

        engine.tick()                               # t=100: step to (1,0)
        assert npc.state == NPCState.MOVING
        assert npc.position == Position(1, 0)
        assert npc.is_moving

        _run_checked(engine, 6)                     # t=700
        assert npc.position == Position(2, 0)
        assert npc.state == NPCState.WORKING
        assert npc.statistics.distance_traveled == 2
        assert npc.statistics.tasks_assigned == 1

    def test_no_step_until_window_closes(self):
        engine = make_engine()
        npc, _ = _lumberjack_by_tree(engine, tree_at=Position(5, 0))
        engine.tick()
        engine.tick()
        engine.tick()                               # t=300, window ends at 400
        assert npc.position == Position(1, 0)
        engine.tick()                               # t=400
        assert npc.position == Position(2, 0)

    def test_overweight_walks_slower(self):
        engine = make_engine()
        npc = engine.add_npc(Position(0, 0))
        assert engine.scheduler.movement_duration(npc) == 300
        npc.inventory["stone"] = 20                 # 60 of 50
        assert engine.scheduler.movement_duration(npc) == 600

    def test_no_work_stays_idle(self):
        engine = make_engine()
        npc = engine.add_npc(Position(0, 0), Profession.MINER)
        _run_checked(engine, 50)
        assert npc.state == NPCState.IDLE
        assert npc.position == Position(0, 0)


class TestWorkProgress:
    def test_interval_throttles_hits(self):
        engine = make_engine()
        npc, tid = _lumberjack_by_tree(engine)
        engine.run(10)                              # t=1000, first hit due at 1100
        assert engine.trees.get(tid).health == 3
        engine.tick()
        assert engine.trees.get(tid).health == 2
        assert npc.current_task.progress == 1

    def test_statistics(self):
        engine = make_engine()
        npc, _ = _lumberjack_by_tree(engine)
        engine.run(31)
        stats = npc.statistics
        assert stats.tasks_assigned == 1
        assert stats.work_completed == 3
        assert stats.time_worked == 3000
        assert stats.efficiency == 100.0

    def test_progress_monotonic_and_bounded(self):
        engine = make_engine()
        npc, _ = _lumberjack_by_tree(engine)
        engine.tick()
        task = npc.current_task
        last = 0
        while npc.current_task is task:
            engine.tick()
            assert last <= task.progress <= task.max_progress
            last = task.progress
        assert task.progress == task.max_progress

    def test_shared_target_race(self):
        """Two NPCs on one tree: one gets the wood, the other drops to idle."""
        engine = make_engine()
        a, tid = _lumberjack_by_tree(engine)
        b = engine.add_npc(Position(2, 0), Profession.LUMBERJACK)
        engine.tick()
        assert a.current_task.target_id == b.current_task.target_id == tid

        _run_checked(engine, 30)
        assert engine.trees.get(tid).is_being_destroyed
        assert a.inventory.get("wood", 0) + b.inventory.get("wood", 0) == 2
        assert a.state == NPCState.IDLE
        assert b.state == NPCState.IDLE

    def test_farmer_produces_food(self):
        engine = make_engine()
        npc = engine.add_npc(Position(0, 0), Profession.FARMER)
        engine.run(61)                              # hits at 2100, 4100, 6100
        assert npc.inventory == {"food": 2}
        assert npc.state == NPCState.IDLE
        assert npc.statistics.work_completed == 3

    def test_hunter_hunts_rabbit(self):
        config = make_config()
        config.resource_config["animal"]["wander_chance"] = 0.0
        engine = make_engine(config)
        npc = engine.add_npc(Position(0, 0), Profession.HUNTER)
        rid = engine.animals.add(Position(0, 1), "rabbit")
        engine.run(9)                               # acquire at 100, hit at 900
        assert engine.animals.get(rid).is_being_destroyed
        assert npc.inventory == {"meat": 1}


class TestReturnHome:
    def test_no_house_falls_back_to_idle(self):
        engine = make_engine()
        npc, _ = _lumberjack_by_tree(engine)
        npc.inventory["stone"] = 16
        engine.run(31)
        assert npc.state == NPCState.IDLE

    def test_full_house_keeps_items(self):
        engine = make_engine()
        npc = engine.add_npc(Position(0, 0), Profession.MINER)
        hid = engine.add_house("miner", Position(0, 0), storage_capacity=5)
        engine.assign_npc_to_house(npc, hid)
        npc.inventory["stone"] = 10
        engine.clock.set_hour(20)
        engine.tick()
        assert npc.state == NPCState.IDLE
        assert npc.inventory == {"stone": 10}
        assert engine.houses.get(hid).stored_total == 0

    def test_full_house_refusal_not_retried_every_tick(self, caplog):
        engine = make_engine(hour=20)
        npc = engine.add_npc(Position(0, 0), Profession.MINER)
        hid = engine.add_house("miner", Position(0, 0), storage_capacity=5)
        engine.assign_npc_to_house(npc, hid)
        npc.inventory["stone"] = 10
        with caplog.at_level(logging.WARNING, logger="homestead.core.house"):
            engine.run(100)
        assert len([r for r in caplog.records if "storage full" in r.getMessage()]) == 1

        engine.houses.get(hid).max_storage_capacity = 50
        engine.tick()
        assert npc.inventory == {}
        assert engine.houses.get(hid).inventory["stone"] == 10

    def test_off_hours_at_home_deposits(self):
        engine = make_engine(hour=19)
        npc = engine.add_npc(Position(0, 0), Profession.HUNTER)
        hid = engine.add_house("hunter", Position(0, 0))
        engine.assign_npc_to_house(npc, hid)
        npc.inventory.update({"meat": 3, "axe": 1})
        engine.tick()
        assert npc.state == NPCState.IDLE
        assert npc.inventory == {"axe": 1}
        assert engine.houses.get(hid).inventory["food"] == 3

    def test_off_hours_without_house_idles(self):
        engine = make_engine()
        npc, _ = _lumberjack_by_tree(engine)
        engine.tick()
        engine.clock.set_hour(20)
        engine.tick()
        assert npc.state == NPCState.IDLE
        assert npc.current_task is None

    def test_custom_night_schedule(self):
        engine = make_engine(hour=23)
        npc, tid = _lumberjack_by_tree(engine)
        engine.set_schedule(npc, work_start=22, work_end=6)
        engine.tick()
        assert npc.state == NPCState.WORKING


class TestControlledNPCs:
    def test_controlled_npc_not_driven(self):
        engine = make_engine()
        npc, _ = _lumberjack_by_tree(engine)
        engine.set_control_mode(npc, "controlled")
        engine.run(20)
        assert npc.state == NPCState.IDLE

    def test_unknown_control_mode(self):
        engine = make_engine()
        npc, _ = _lumberjack_by_tree(engine)
        result = engine.set_control_mode(npc, "bogus")
        assert not result
        assert result.reason == FailureReason.INVALID_MODE
        assert npc.control_mode == ControlMode.AUTONOMOUS

    def test_manual_task_progresses(self):
        engine = make_engine()
        npc, tid = _lumberjack_by_tree(engine)
        engine.set_control_mode(npc, "controlled")
        engine.request_manual_work(npc)
        engine.run(30)                              # hits at 1000, 2000, 3000
        assert engine.trees.get(tid).is_being_destroyed
        assert npc.inventory == {"wood": 2}
        assert npc.state == NPCState.IDLE

    def test_manual_work_rejections(self):
        engine = make_engine()
        npc = engine.add_npc(Position(0, 0), Profession.LUMBERJACK)
        assert engine.request_manual_work(npc).reason == FailureReason.NOT_CONTROLLED

        engine.set_control_mode(npc, "controlled")
        assert engine.request_manual_work(npc).reason == FailureReason.NO_ADJACENT_TARGET

        idle = engine.add_npc(Position(5, 5), control_mode="controlled")
        assert engine.request_manual_work(idle).reason == FailureReason.NO_PROFESSION

    def test_cooldown_expires(self):
        engine = make_engine()
        npc, _ = _lumberjack_by_tree(engine)
        engine.set_control_mode(npc, "controlled")
        engine.request_manual_work(npc)
        assert engine.scheduler.cooldown_remaining(npc.id, 500) == 1500
        engine.run(20)
        assert engine.scheduler.cooldown_remaining(npc.id, engine.clock.now_ms) == 0
        assert engine.request_manual_work(npc).reason == FailureReason.ALREADY_WORKING

    def test_stop_work(self):
        engine = make_engine()
        npc, _ = _lumberjack_by_tree(engine)
        assert engine.stop_work(npc).reason == FailureReason.NOT_WORKING
        engine.tick()
        assert engine.stop_work(npc)
        assert npc.state == NPCState.IDLE
        assert npc.current_task is None
        assert npc.animation is None

    def test_move_cancels_work(self):
        engine = make_engine()
        npc, _ = _lumberjack_by_tree(engine)
        engine.tick()
        assert engine.move(npc, "south")
        assert npc.state == NPCState.MOVING
        assert npc.current_task is None
        assert_task_matches_state(engine)

    def test_move_out_of_bounds(self):
        engine = make_engine()
        npc = engine.add_npc(Position(32, 0))
        result = engine.move(npc, "east")
        assert result.reason == FailureReason.INVALID_POSITION
        assert npc.position == Position(32, 0)
        assert not npc.is_moving

    def test_move_bad_direction(self):
        engine = make_engine()
        npc = engine.add_npc(Position(0, 0))
        assert engine.move(npc, "up").reason == FailureReason.INVALID_POSITION

    def test_taking_control_cancels_trip_home(self):
        engine = make_engine()
        npc = engine.add_npc(Position(0, 0), Profession.MINER)
        _give_house(engine, npc, Position(0, -5))
        engine.clock.set_hour(20)
        engine.tick()
        assert npc.state == NPCState.RETURNING_HOME
        engine.set_control_mode(npc, "controlled")
        assert npc.state in (NPCState.IDLE, NPCState.MOVING)
        engine.run(10)
        assert npc.state == NPCState.IDLE
        assert npc.position == Position(0, -1)

    def test_controlled_keeps_task(self):
        engine = make_engine()
        npc, _ = _lumberjack_by_tree(engine)
        engine.tick()
        task = npc.current_task
        engine.set_control_mode(npc, "controlled")
        assert npc.current_task is task
        assert npc.state == NPCState.WORKING


class TestIdleWander:
    def test_idle_npc_wanders(self):
        engine = make_engine(make_config(idle_wander_chance=1.0))
        npc = engine.add_npc(Position(0, 0))
        engine.run(29)
        assert npc.statistics.distance_traveled == 0
        engine.tick()                               # t=3000
        assert npc.statistics.distance_traveled == 1
        assert npc.state == NPCState.MOVING

    def test_wander_is_seeded(self):
        positions = []
        for _ in range(2):
            engine = make_engine(make_config(idle_wander_chance=1.0))
            npc = engine.add_npc(Position(0, 0))
            engine.run(200)
            positions.append(npc.position)
        assert positions[0] == positions[1]
