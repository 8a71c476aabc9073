"""
Metrics Collector: per-sample village statistics.

Samples the engine at whatever cadence the caller chooses (every tick,
every simulated second, ...) and keeps the history for time-series
extraction and export.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from homestead.core.agent import NPCState, Profession

if TYPE_CHECKING:
    from homestead.core.engine import VillageEngine


@dataclass
class VillageMetrics:
    """Village statistics at one point in simulated time."""

    time_ms: int
    tick: int
    game_hour: float
    npc_count: int

    # Behaviour
    state_counts: dict[str, int]
    working_fraction: float

    # Labour totals across all NPCs
    total_work_completed: int
    total_tasks_assigned: int
    total_distance_traveled: int
    total_time_worked: int
    mean_efficiency: float
    work_by_profession: dict[str, int]

    # Inventory
    carried_weight: float
    mean_load_fraction: float     # carried / max carry weight, averaged
    overweight_count: int
    carried_items: dict[str, int]

    # World
    trees_available: int
    stones_available: int
    animals_available: int

    # Houses
    house_storage: dict[str, int] = field(default_factory=dict)
    house_fill_fraction: float = 0.0


class MetricsCollector:
    """
    Collects and aggregates metrics over a run.

    Works alongside the engine without touching it: every :meth:`collect`
    call reads the current state and appends one :class:`VillageMetrics`.
    """

    def __init__(self) -> None:
        self.metrics_history: list[VillageMetrics] = []

    def collect(self, engine: VillageEngine) -> VillageMetrics:
        """Sample the engine's current state."""
        npcs = list(engine.npcs.values())
        inventory = engine.inventory

        state_counts = {s.value: 0 for s in NPCState}
        work_by_profession = {p.value: 0 for p in Profession if p != Profession.NONE}
        carried_items: dict[str, int] = {}
        for npc in npcs:
            state_counts[npc.state.value] += 1
            if npc.profession != Profession.NONE:
                work_by_profession[npc.profession.value] += npc.statistics.work_completed
            for item_id, qty in npc.inventory.items():
                carried_items[item_id] = carried_items.get(item_id, 0) + qty

        if npcs:
            stats = np.array([
                [
                    n.statistics.work_completed,
                    n.statistics.tasks_assigned,
                    n.statistics.distance_traveled,
                    n.statistics.time_worked,
                ]
                for n in npcs
            ], dtype=np.int64)
            totals = stats.sum(axis=0)
            efficiencies = np.array([n.statistics.efficiency for n in npcs])
            weights = np.array([inventory.total_weight(n) for n in npcs])
            limits = np.array([inventory.max_carry_weight(n) for n in npcs])
            load = np.divide(weights, limits, out=np.zeros_like(weights), where=limits > 0)
            mean_efficiency = float(np.mean(efficiencies))
            carried_weight = float(weights.sum())
            mean_load = float(np.mean(load))
            overweight = int(np.sum(weights > limits))
        else:
            totals = np.zeros(4, dtype=np.int64)
            mean_efficiency = 0.0
            carried_weight = 0.0
            mean_load = 0.0
            overweight = 0

        house_storage = {"wood": 0, "stone": 0, "food": 0}
        stored, capacity = 0, 0
        for house in engine.houses:
            for bucket, qty in house.inventory.items():
                house_storage[bucket] = house_storage.get(bucket, 0) + qty
            stored += house.stored_total
            capacity += house.max_storage_capacity

        metrics = VillageMetrics(
            time_ms=engine.clock.now_ms,
            tick=engine.tick_count,
            game_hour=engine.clock.game_time,
            npc_count=len(npcs),
            state_counts=state_counts,
            working_fraction=state_counts[NPCState.WORKING.value] / max(len(npcs), 1),
            total_work_completed=int(totals[0]),
            total_tasks_assigned=int(totals[1]),
            total_distance_traveled=int(totals[2]),
            total_time_worked=int(totals[3]),
            mean_efficiency=mean_efficiency,
            work_by_profession=work_by_profession,
            carried_weight=carried_weight,
            mean_load_fraction=mean_load,
            overweight_count=overweight,
            carried_items=carried_items,
            trees_available=len(engine.trees.available()),
            stones_available=len(engine.stones.available()),
            animals_available=len(engine.animals.available()),
            house_storage=house_storage,
            house_fill_fraction=stored / capacity if capacity else 0.0,
        )
        self.metrics_history.append(metrics)
        return metrics

    def get_time_series(self, field_name: str) -> list[Any]:
        """Extract a time series for a specific metric field."""
        return [getattr(m, field_name) for m in self.metrics_history]

    def summary(self) -> dict[str, Any]:
        """Headline numbers for the whole run."""
        if not self.metrics_history:
            return {"samples": 0}
        first, last = self.metrics_history[0], self.metrics_history[-1]
        working = np.array(self.get_time_series("working_fraction"))
        return {
            "samples": len(self.metrics_history),
            "duration_ms": last.time_ms - first.time_ms,
            "total_work_completed": last.total_work_completed,
            "total_distance_traveled": last.total_distance_traveled,
            "mean_efficiency": last.mean_efficiency,
            "mean_working_fraction": float(working.mean()),
            "peak_working_fraction": float(working.max()),
            "house_storage": dict(last.house_storage),
            "trees_cleared": first.trees_available - last.trees_available,
            "stones_cleared": first.stones_available - last.stones_available,
        }

    def export_for_visualization(self) -> list[dict[str, Any]]:
        """Export all samples as JSON-serializable dicts."""
        return [
            {
                "time_ms": m.time_ms,
                "tick": m.tick,
                "game_hour": m.game_hour,
                "npc_count": m.npc_count,
                "state_counts": dict(m.state_counts),
                "working_fraction": m.working_fraction,
                "total_work_completed": m.total_work_completed,
                "total_tasks_assigned": m.total_tasks_assigned,
                "total_distance_traveled": m.total_distance_traveled,
                "total_time_worked": m.total_time_worked,
                "mean_efficiency": m.mean_efficiency,
                "work_by_profession": dict(m.work_by_profession),
                "carried_weight": m.carried_weight,
                "mean_load_fraction": m.mean_load_fraction,
                "overweight_count": m.overweight_count,
                "carried_items": dict(m.carried_items),
                "trees_available": m.trees_available,
                "stones_available": m.stones_available,
                "animals_available": m.animals_available,
                "house_storage": dict(m.house_storage),
                "house_fill_fraction": m.house_fill_fraction,
            }
            for m in self.metrics_history
        ]
