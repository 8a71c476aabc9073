"""
Village engine.

Owns the world (resource registries, houses, NPCs), the clock and the
scheduler, and runs the fixed-rate tick:

1. Advance the clock
2. Despawn resources whose destruction window has elapsed
3. Let animals wander
4. Advance every NPC through the scheduler

Renderers read :meth:`VillageEngine.snapshot`; input layers call the
command methods, which accept either an NPC id or the NPC itself.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import numpy as np

from homestead.core.agent import NPC, ControlMode, NPCState, Profession, initial_skills
from homestead.core.clock import SimulationClock
from homestead.core.config import SimulationConfig
from homestead.core.grid import Direction, Position, is_valid_position
from homestead.core.house import HouseDirectory, HouseType
from homestead.core.inventory import CarryCapacityModel
from homestead.core.resources import AnimalRegistry, StoneRegistry, TreeRegistry
from homestead.core.results import ActionResult, AddItemResult, FailureReason
from homestead.core.schedule import SchedulePolicy
from homestead.core.scheduler import NPCScheduler
from homestead.professions.registry import create_default_registry

logger = logging.getLogger(__name__)


class VillageEngine:
    """A single-process village simulation."""

    def __init__(self, config: SimulationConfig, clock: SimulationClock | None = None):
        self.config = config
        self.rng = np.random.default_rng(config.random_seed)
        self.clock = clock or SimulationClock.from_config(config)

        # World
        self.trees = TreeRegistry(config)
        self.stones = StoneRegistry(config)
        self.animals = AnimalRegistry(config)
        self.houses = HouseDirectory(config.house_storage_capacity)
        self.inventory = CarryCapacityModel(config)

        # Behaviour
        self.professions = create_default_registry(
            config, self.inventory, self.houses, self.trees, self.stones, self.animals,
        )
        self.schedules = SchedulePolicy.from_config(config)
        self.scheduler = NPCScheduler(
            config, self.professions, self.inventory, self.houses, self.schedules, self.rng,
        )

        # State
        self.npcs: dict[str, NPC] = {}
        self.tick_count = 0
        self._next_npc_id = 1

    # ------------------------------------------------------------------
    # NPCs
    # ------------------------------------------------------------------
    def add_npc(
        self,
        position: Position,
        profession: Profession | str = Profession.NONE,
        control_mode: ControlMode | str = ControlMode.AUTONOMOUS,
    ) -> NPC | None:
        """Place a new NPC. Returns None for an off-grid position or an unknown trade or mode."""
        if not is_valid_position(position, self.config.grid_size):
            logger.debug("Rejected NPC at %s: %s", position, FailureReason.INVALID_POSITION.value)
            return None
        try:
            profession = Profession(profession)
            control_mode = ControlMode(control_mode)
        except ValueError as exc:
            logger.debug("Rejected NPC at %s: %s", position, exc)
            return None
        npc = NPC(
            id=self._new_npc_id(),
            position=position,
            profession=profession,
            control_mode=control_mode,
            skills=initial_skills(profession, self.config.profession_skill_level),
            last_movement=self.clock.now_ms,
            last_action_time=self.clock.now_ms,
        )
        self.npcs[npc.id] = npc
        logger.info("Created %s (%s) at %s", npc.id, profession.value, position)
        return npc

    def remove_npc(self, npc_id: str) -> bool:
        npc = self.npcs.pop(npc_id, None)
        if npc is None:
            return False
        self.houses.unassign_npc(npc)
        self.scheduler.forget(npc_id)
        logger.info("Removed %s", npc_id)
        return True

    def get_npc(self, npc_id: str) -> NPC | None:
        return self.npcs.get(npc_id)

    def set_profession(self, npc_ref: NPC | str, profession: Profession | str) -> ActionResult:
        """Reassign an NPC's trade. Any task in progress is dropped."""
        npc = self._resolve(npc_ref)
        if npc is None:
            return ActionResult.fail(FailureReason.NPC_NOT_FOUND)
        try:
            profession = Profession(profession)
        except ValueError:
            return ActionResult.fail(
                FailureReason.INVALID_PROFESSION, f"Unknown profession '{profession}'"
            )
        npc.profession = profession
        npc.current_task = None
        npc.current_target_id = None
        npc.target_position = None
        if npc.state in (NPCState.WORKING, NPCState.RETURNING_HOME):
            npc.state = NPCState.IDLE
        # Trained skills are kept; the new trade starts at least at trade level
        npc.skills = {
            skill: max(level, npc.skills.get(skill, 1))
            for skill, level in initial_skills(profession, self.config.profession_skill_level).items()
        }
        return ActionResult.ok(f"{npc.id} is now a {profession.value}")

    def _new_npc_id(self) -> str:
        nid = f"npc-{self._next_npc_id:04d}"
        self._next_npc_id += 1
        return nid

    def _resolve(self, npc_ref: NPC | str) -> NPC | None:
        if isinstance(npc_ref, NPC):
            return npc_ref
        return self.npcs.get(npc_ref)

    # ------------------------------------------------------------------
    # Houses
    # ------------------------------------------------------------------
    def add_house(
        self,
        house_type: HouseType | str,
        position: Position,
        rotation: int = 0,
        storage_capacity: int | None = None,
    ) -> str | None:
        if not is_valid_position(position, self.config.grid_size):
            logger.debug("Rejected house at %s: %s", position, FailureReason.INVALID_POSITION.value)
            return None
        return self.houses.add_house(house_type, position, rotation, storage_capacity)

    def assign_npc_to_house(self, npc_ref: NPC | str, house_id: str) -> ActionResult:
        npc = self._resolve(npc_ref)
        if npc is None:
            return ActionResult.fail(FailureReason.NPC_NOT_FOUND)
        previous = self.houses.get(house_id)
        if previous is None:
            return ActionResult.fail(FailureReason.NO_HOME_ASSIGNED, f"No house {house_id}")
        if previous.npc_id and previous.npc_id != npc.id:
            evicted = self.npcs.get(previous.npc_id)
            if evicted is not None:
                self.houses.unassign_npc(evicted)
        self.houses.assign_npc(house_id, npc)
        return ActionResult.ok(f"{npc.id} lives in {house_id}")

    def remove_house(self, house_id: str) -> bool:
        """Demolish a house and clear its resident's home link."""
        house = self.houses.get(house_id)
        if house is None:
            return False
        resident = self.npcs.get(house.npc_id) if house.npc_id else None
        return self.houses.remove_house(house_id, resident)

    # ------------------------------------------------------------------
    # World generation
    # ------------------------------------------------------------------
    def is_blocked(self, position: Position) -> bool:
        """Whether any resource or house already occupies *position*."""
        return (
            self.trees.is_occupied(position)
            or self.stones.is_occupied(position)
            or self.animals.is_occupied(position)
            or self.houses.get_at(position) is not None
        )

    def generate_chunk(self, chunk_x: int, chunk_z: int) -> dict[str, int]:
        """Populate one chunk with trees, stones and animals. Idempotent."""
        now = self.clock.now_ms
        blocked: Callable[[Position], bool] = self.is_blocked
        return {
            registry.kind: registry.generate_chunk(
                chunk_x, chunk_z, self.rng, now=now, is_blocked=blocked,
            )
            for registry in (self.trees, self.stones, self.animals)
        }

    def populate_world(self) -> dict[str, int]:
        """Generate every chunk that overlaps the world."""
        half = self.config.grid_size // 2
        size = self.config.chunk_size
        first, last = (-half) // size, half // size
        totals = {"tree": 0, "stone": 0, "animal": 0}
        for cx in range(first, last + 1):
            for cz in range(first, last + 1):
                for kind, count in self.generate_chunk(cx, cz).items():
                    totals[kind] += count
        logger.info(
            "World populated: %d trees, %d stones, %d animals",
            totals["tree"], totals["stone"], totals["animal"],
        )
        return totals

    # ------------------------------------------------------------------
    # Tick loop
    # ------------------------------------------------------------------
    def tick(self, dt_ms: int | None = None) -> int:
        """Advance the simulation by one tick. Returns the new timestamp."""
        dt = self.config.tick_interval_ms if dt_ms is None else dt_ms
        now = self.clock.advance(dt)

        for registry in (self.trees, self.stones, self.animals):
            registry.update(now)
        self.animals.wander(now, self.rng, is_blocked=self._blocks_animals)

        self.scheduler.tick(self.npcs.values(), now, self.clock.game_time)
        self.tick_count += 1
        return now

    def run(self, ticks: int, dt_ms: int | None = None) -> int:
        """Run *ticks* ticks and return the final timestamp."""
        now = self.clock.now_ms
        for _ in range(ticks):
            now = self.tick(dt_ms)
        return now

    def _blocks_animals(self, position: Position) -> bool:
        return (
            self.trees.is_occupied(position)
            or self.stones.is_occupied(position)
            or self.houses.get_at(position) is not None
            or any(npc.position == position for npc in self.npcs.values())
        )

    # ------------------------------------------------------------------
    # Command surface
    # ------------------------------------------------------------------
    def move(self, npc_ref: NPC | str, direction: Direction | str | tuple[int, int]) -> ActionResult:
        npc = self._resolve(npc_ref)
        if npc is None:
            return ActionResult.fail(FailureReason.NPC_NOT_FOUND)
        return self.scheduler.move(npc, direction, self.clock.now_ms)

    def request_manual_work(self, npc_ref: NPC | str) -> ActionResult:
        npc = self._resolve(npc_ref)
        if npc is None:
            return ActionResult.fail(FailureReason.NPC_NOT_FOUND)
        return self.scheduler.request_manual_work(npc, self.clock.now_ms)

    def stop_work(self, npc_ref: NPC | str) -> ActionResult:
        npc = self._resolve(npc_ref)
        if npc is None:
            return ActionResult.fail(FailureReason.NPC_NOT_FOUND)
        return self.scheduler.stop_work(npc)

    def set_control_mode(self, npc_ref: NPC | str, mode: ControlMode | str) -> ActionResult:
        npc = self._resolve(npc_ref)
        if npc is None:
            return ActionResult.fail(FailureReason.NPC_NOT_FOUND)
        return self.scheduler.set_control_mode(npc, mode)

    def set_schedule(self, npc_ref: NPC | str, **overrides: Any) -> ActionResult:
        npc = self._resolve(npc_ref)
        if npc is None:
            return ActionResult.fail(FailureReason.NPC_NOT_FOUND)
        self.schedules.set_schedule(npc.id, **overrides)
        return ActionResult.ok(f"Schedule updated for {npc.id}")

    # --- Inventory ---

    def add_item(self, npc_ref: NPC | str, item_id: str, qty: int = 1) -> AddItemResult:
        npc = self._resolve(npc_ref)
        if npc is None:
            return AddItemResult(False, FailureReason.NPC_NOT_FOUND, "NPC not found")
        return self.inventory.add_item(npc, item_id, qty)

    def remove_item(self, npc_ref: NPC | str, item_id: str, qty: int = 1) -> bool:
        npc = self._resolve(npc_ref)
        if npc is None:
            return False
        return self.inventory.remove_item(npc, item_id, qty)

    def equip(self, npc_ref: NPC | str, item_id: str) -> AddItemResult:
        npc = self._resolve(npc_ref)
        if npc is None:
            return AddItemResult(False, FailureReason.NPC_NOT_FOUND, "NPC not found")
        return self.inventory.equip(npc, item_id)

    def unequip(self, npc_ref: NPC | str, item_id: str) -> bool:
        npc = self._resolve(npc_ref)
        if npc is None:
            return False
        return self.inventory.unequip(npc, item_id)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    def snapshot(self) -> dict[str, Any]:
        """Plain-dict view of the whole world, for renderers."""
        now = self.clock.now_ms
        return {
            "time_ms": now,
            "tick": self.tick_count,
            "game_time": self.clock.format_time(),
            "day": self.clock.day_count,
            "npcs": [
                {
                    **npc.to_dict(),
                    "carried_weight": self.inventory.total_weight(npc),
                    "max_carry_weight": self.inventory.max_carry_weight(npc),
                    "is_overweight": self.inventory.is_overweight(npc),
                }
                for npc in self.npcs.values()
            ],
            "trees": [r.to_dict() for r in self.trees],
            "stones": [r.to_dict() for r in self.stones],
            "animals": [r.to_dict() for r in self.animals],
            "houses": [h.to_dict() for h in self.houses],
        }

    def __repr__(self) -> str:
        return (
            f"VillageEngine(npcs={len(self.npcs)}, trees={len(self.trees)}, "
            f"stones={len(self.stones)}, animals={len(self.animals)}, "
            f"time={self.clock.format_time()})"
        )
