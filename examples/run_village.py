#!/usr/bin/env python3
"""Run a small Homestead village for one working day and print results."""

import logging
import sys

from homestead.core.agent import Profession
from homestead.core.engine import VillageEngine
from homestead.core.grid import Position
from homestead.core.house import HouseType
from homestead.experiment.presets import get_preset, list_presets
from homestead.metrics.collector import MetricsCollector

VILLAGERS = [
    (Profession.LUMBERJACK, HouseType.LUMBERJACK, Position(-2, 0)),
    (Profession.LUMBERJACK, HouseType.LUMBERJACK, Position(-2, 2)),
    (Profession.MINER, HouseType.MINER, Position(2, 0)),
    (Profession.HUNTER, HouseType.HUNTER, Position(0, 2)),
    (Profession.FARMER, HouseType.FARMER, Position(0, -2)),
]


def main():
    preset = sys.argv[1] if len(sys.argv) > 1 else "default"
    if preset not in list_presets():
        print(f"Unknown preset '{preset}'. Available: {', '.join(list_presets())}")
        sys.exit(1)

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    config = get_preset(preset)
    config.random_seed = 42
    engine = VillageEngine(config)
    for profession, house_type, position in VILLAGERS:
        house_id = engine.add_house(house_type, position)
        npc = engine.add_npc(position, profession)
        engine.assign_npc_to_house(npc, house_id)
    totals = engine.populate_world()
    engine.clock.set_hour(config.work_start_hour)

    print(f"=== Homestead: {config.simulation_name} ===")
    print(f"World: {config.grid_size}x{config.grid_size}, "
          f"{totals['tree']} trees, {totals['stone']} stones, {totals['animal']} animals")
    print(f"Villagers: {len(engine.npcs)}")
    print(f"Work hours: {config.work_start_hour:02d}:00-{config.work_end_hour:02d}:00")
    print()

    collector = MetricsCollector()
    ticks_per_hour = config.ms_per_game_hour // config.tick_interval_ms
    hours = (config.work_end_hour - config.work_start_hour) % 24 + 1

    print(f"{'Time':>8} {'Idle':>4} {'Move':>4} {'Work':>4} {'Home':>4} "
          f"{'Work#':>6} {'Dist':>5} {'Eff%':>6} {'Wood':>5} {'Stone':>5} {'Food':>5} "
          f"{'Trees':>5}")
    print("-" * 78)

    for _ in range(hours):
        engine.run(ticks_per_hour)
        m = collector.collect(engine)
        sc = m.state_counts
        print(
            f"{engine.clock.format_time():>8} "
            f"{sc['idle']:4d} {sc['moving']:4d} {sc['working']:4d} {sc['returning_home']:4d} "
            f"{m.total_work_completed:6d} {m.total_distance_traveled:5d} "
            f"{m.mean_efficiency:6.1f} "
            f"{m.house_storage.get('wood', 0):5d} {m.house_storage.get('stone', 0):5d} "
            f"{m.house_storage.get('food', 0):5d} {m.trees_available:5d}"
        )

    summary = collector.summary()
    print()
    print("=== Summary ===")
    print(f"Work completed: {summary['total_work_completed']}")
    print(f"Distance traveled: {summary['total_distance_traveled']}")
    print(f"Mean working fraction: {summary['mean_working_fraction']:.2f}")
    print(f"Trees cleared: {summary['trees_cleared']}, stones cleared: {summary['stones_cleared']}")

    print("\nVillagers:")
    for npc in engine.npcs.values():
        stats = npc.statistics
        print(f"  {npc.id} {npc.profession.value:10s} level {npc.level} "
              f"work={stats.work_completed:4d} tasks={stats.tasks_assigned:3d} "
              f"eff={stats.efficiency:5.1f}% carrying={dict(npc.inventory)}")


if __name__ == "__main__":
    main()
