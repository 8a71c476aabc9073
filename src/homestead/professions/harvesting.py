"""
Resource-harvesting professions: lumberjack, miner, hunter.

All three share one shape and differ only in the registry they scan, the
task type, the work interval and range, and the item they yield. The
nearest available resource within ``work_range`` wins (ties to the lowest
id). Work happens only while the NPC stands orthogonally adjacent to the
target; one hit of damage is applied per elapsed work interval.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from homestead.core.agent import (
    PRIORITY_ADJACENT,
    PRIORITY_DISTANT,
    Animation,
    NPCState,
    Profession,
    TaskType,
    WorkTask,
)
from homestead.core.grid import are_adjacent, manhattan_distance
from homestead.core.results import FailureReason
from homestead.professions.base import ProfessionBehavior, WorkResult

if TYPE_CHECKING:
    from homestead.core.agent import NPC
    from homestead.core.config import SimulationConfig
    from homestead.core.house import HouseDirectory
    from homestead.core.inventory import CarryCapacityModel
    from homestead.core.resources import HarvestableResource, ResourceRegistry

logger = logging.getLogger(__name__)

ANIMATION_DURATION_MS = 500


class HarvestingProfession(ProfessionBehavior):
    """Finds, walks to and damages resources from one registry."""

    task_type: TaskType = TaskType.CUT_TREE
    animation_type: str = "working"
    damage_per_hit: int = 1

    def __init__(
        self,
        config: SimulationConfig,
        inventory: CarryCapacityModel,
        houses: HouseDirectory,
        registry: ResourceRegistry,
    ) -> None:
        super().__init__(config, inventory, houses)
        self.registry = registry

    # ------------------------------------------------------------------
    # Strategy interface
    # ------------------------------------------------------------------

    def find_work(self, npc: NPC) -> WorkTask | None:
        target = self.registry.find_nearest(
            npc.position,
            self.work_range,
            # A resource under the NPC's feet can never be adjacent
            predicate=lambda r: r.position != npc.position,
        )
        if target is None:
            return None

        adjacent = manhattan_distance(npc.position, target.position) == 1
        return WorkTask(
            type=self.task_type,
            target_id=target.id,
            target_position=target.position,
            progress=0,
            max_progress=target.health,
            priority=PRIORITY_ADJACENT if adjacent else PRIORITY_DISTANT,
            requires_movement=not adjacent,
        )

    def do_work(self, npc: NPC, task: WorkTask, now: int) -> WorkResult:
        resource = self.registry.get(task.target_id)
        if resource is None or not resource.is_available:
            return WorkResult(
                success=False, completed=True, reason=FailureReason.TARGET_VANISHED,
            )
        if not are_adjacent(npc.position, resource.position):
            # Target moved away (animals) or the NPC was moved off it
            return WorkResult(
                success=False, completed=False, reason=FailureReason.INVALID_TASK,
            )

        destroyed = self.registry.damage(resource.id, self.damage_per_hit, now)
        animation = Animation(self.animation_type, now, ANIMATION_DURATION_MS)
        logger.debug(
            "%s hit %s (%d/%d hp left)", npc.id, resource.id,
            resource.health, resource.max_health,
        )

        if not destroyed:
            return WorkResult(
                success=True, completed=False,
                progress_made=self.damage_per_hit,
                new_state=NPCState.WORKING,
                animation=animation,
            )

        result = self.store_yield(npc, self.yield_item, self.yield_amount(resource))
        result.progress_made = self.damage_per_hit
        result.animation = animation
        return result

    def is_work_done(self, npc: NPC, task: WorkTask) -> bool:
        resource = self.registry.get(task.target_id)
        return resource is None or not resource.is_available

    # ------------------------------------------------------------------
    # Yield
    # ------------------------------------------------------------------

    @property
    def yield_item(self) -> str:
        return str(self.settings["yield_item"])

    def yield_amount(self, resource: HarvestableResource) -> int:
        return int(self.settings.get("yield_amount") or 1)


class LumberjackSystem(HarvestingProfession):
    profession = Profession.LUMBERJACK
    task_type = TaskType.CUT_TREE
    animation_type = "chopping"


class MinerSystem(HarvestingProfession):
    profession = Profession.MINER
    task_type = TaskType.MINE_STONE
    animation_type = "mining"


class HunterSystem(HarvestingProfession):
    """Hunts animals; the yield is the animal's meat value unless overridden."""

    profession = Profession.HUNTER
    task_type = TaskType.HUNT_ANIMAL
    animation_type = "hunting"

    def yield_amount(self, resource: HarvestableResource) -> int:
        fixed = self.settings.get("yield_amount")
        if fixed:
            return int(fixed)
        return max(1, resource.meat_value)
