"""
Base class for profession behaviours.

The scheduler is profession-agnostic: it asks a behaviour to find work,
perform one unit of it, and report whether it is done. Adding a profession
means adding a behaviour and registering it; the scheduler never changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from homestead.core.agent import PROFESSION_SKILLS, NPCState, Profession
from homestead.core.results import FailureReason

if TYPE_CHECKING:
    from homestead.core.agent import NPC, Animation, WorkTask
    from homestead.core.config import SimulationConfig
    from homestead.core.grid import Position
    from homestead.core.house import HouseDirectory
    from homestead.core.inventory import CarryCapacityModel


@dataclass
class WorkResult:
    """Outcome of one :meth:`ProfessionBehavior.do_work` call."""

    success: bool
    completed: bool
    progress_made: int = 0
    new_state: NPCState | None = None
    animation: Animation | None = None
    reason: FailureReason | None = None
    yielded: dict[str, int] = field(default_factory=dict)


class ProfessionBehavior(ABC):
    """
    Abstract base for profession strategies.

    Concrete behaviours receive every collaborator they touch at
    construction time (registries, the carry-capacity model, the house
    directory) and never look anything up globally.
    """

    profession: Profession = Profession.NONE

    def __init__(
        self,
        config: SimulationConfig,
        inventory: CarryCapacityModel,
        houses: HouseDirectory,
    ) -> None:
        self.config = config
        self.inventory = inventory
        self.houses = houses
        self.settings: dict[str, Any] = config.profession_settings(self.profession.value)

    @property
    def name(self) -> str:
        return self.profession.value

    # --- Settings ---

    @property
    def work_range(self) -> int:
        return int(self.settings.get("work_range", 0))

    @property
    def work_interval_ms(self) -> int:
        return int(self.settings.get("work_interval_ms", 1000))

    @property
    def cooldown_ms(self) -> int:
        return int(self.settings.get("cooldown_ms", 2000))

    # --- Strategy interface ---

    @abstractmethod
    def find_work(self, npc: NPC) -> WorkTask | None:
        """Return the best task for *npc*, or None if there is nothing to do."""

    @abstractmethod
    def do_work(self, npc: NPC, task: WorkTask, now: int) -> WorkResult:
        """Apply one unit of work. Called once per elapsed work interval."""

    @abstractmethod
    def is_work_done(self, npc: NPC, task: WorkTask) -> bool:
        """True when the task is finished or its target is gone."""

    def get_home_position(self, npc: NPC) -> Position | None:
        return self.houses.home_position(npc)

    def find_adjacent_work(self, npc: NPC) -> WorkTask | None:
        """A task that can start immediately, for manual (player) commands."""
        task = self.find_work(npc)
        if task is None or task.requires_movement:
            return None
        return task

    # --- Shared yield handling ---

    def store_yield(self, npc: NPC, item_id: str, amount: int) -> WorkResult:
        """
        Try to put a finished task's yield in the NPC's pack.

        Full pack: RETURNING_HOME with the rejection reason. Stored but now
        near capacity: RETURNING_HOME. Otherwise IDLE.
        """
        added = self.inventory.add_item(npc, item_id, amount)
        if not added:
            return WorkResult(
                success=True, completed=True,
                new_state=NPCState.RETURNING_HOME, reason=added.reason,
            )

        skill_cap = self.config.skill_level_cap
        npc.add_experience(int(self.settings.get("experience_per_yield", 0)))
        skill = PROFESSION_SKILLS.get(self.profession)
        if skill is not None:
            npc.train_skill(skill, cap=skill_cap)

        next_state = (
            NPCState.RETURNING_HOME if self.inventory.is_near_capacity(npc)
            else NPCState.IDLE
        )
        return WorkResult(
            success=True, completed=True,
            new_state=next_state, yielded={item_id: amount},
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(profession={self.profession.value})"
