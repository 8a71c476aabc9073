"""
Farmer profession.

Farming has no spatial resource: the farmer works the plot it stands on.
Each work interval adds one unit of progress; when a cycle completes the
harvest goes into the farmer's pack. A full pack sends the farmer home.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homestead.core.agent import (
    PRIORITY_ADJACENT,
    Animation,
    NPCState,
    Profession,
    TaskType,
    WorkTask,
)
from homestead.professions.base import ProfessionBehavior, WorkResult

if TYPE_CHECKING:
    from homestead.core.agent import NPC

FARMING_ANIMATION_MS = 800


class FarmerSystem(ProfessionBehavior):
    profession = Profession.FARMER

    @property
    def cycle_length(self) -> int:
        return max(1, int(self.settings.get("cycle_length", 1)))

    def find_work(self, npc: NPC) -> WorkTask | None:
        return WorkTask(
            type=TaskType.HARVEST,
            target_id=f"plot:{npc.id}",
            target_position=npc.position,
            progress=0,
            max_progress=self.cycle_length,
            priority=PRIORITY_ADJACENT,
            requires_movement=False,
        )

    def do_work(self, npc: NPC, task: WorkTask, now: int) -> WorkResult:
        animation = Animation("farming", now, FARMING_ANIMATION_MS)
        if task.progress + 1 < task.max_progress:
            return WorkResult(
                success=True, completed=False, progress_made=1,
                new_state=NPCState.WORKING, animation=animation,
            )

        result = self.store_yield(
            npc, str(self.settings["yield_item"]), int(self.settings.get("yield_amount") or 1),
        )
        result.progress_made = 1
        result.animation = animation
        return result

    def is_work_done(self, npc: NPC, task: WorkTask) -> bool:
        return task.progress >= task.max_progress
