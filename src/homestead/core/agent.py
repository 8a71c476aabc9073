"""
Core NPC dataclass for the Homestead simulation.

NPCs hold a grid position, a profession, a behaviour state and a weighted
inventory. The scheduler mutates them; renderers read them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from homestead.core.grid import Position


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ControlMode(str, Enum):
    """Who drives the NPC: the scheduler or the player."""
    AUTONOMOUS = "autonomous"
    CONTROLLED = "controlled"


class Profession(str, Enum):
    NONE = "none"
    LUMBERJACK = "lumberjack"
    FARMER = "farmer"
    MINER = "miner"
    HUNTER = "hunter"


class NPCState(str, Enum):
    IDLE = "idle"
    MOVING = "moving"
    WORKING = "working"
    RETURNING_HOME = "returning_home"


class TaskType(str, Enum):
    CUT_TREE = "cut_tree"
    MINE_STONE = "mine_stone"
    HUNT_ANIMAL = "hunt_animal"
    HARVEST = "harvest"


# Skill name trained by each profession
PROFESSION_SKILLS: dict[Profession, str] = {
    Profession.LUMBERJACK: "lumberjacking",
    Profession.FARMER: "farming",
    Profession.MINER: "mining",
    Profession.HUNTER: "hunting",
}

# Task priorities (1-10, higher = more important)
PRIORITY_ADJACENT = 8
PRIORITY_DISTANT = 6


# ---------------------------------------------------------------------------
# Task and animation records
# ---------------------------------------------------------------------------

@dataclass
class WorkTask:
    """A bounded unit of work against one resource or a production action."""
    type: TaskType
    target_id: str
    target_position: Position
    progress: int = 0
    max_progress: int = 1
    priority: int = PRIORITY_ADJACENT
    requires_movement: bool = False   # target is not adjacent yet

    @property
    def is_complete(self) -> bool:
        return self.progress >= self.max_progress

    def advance(self, amount: int) -> int:
        """Add progress, clamped to ``max_progress``. Returns units applied."""
        before = self.progress
        self.progress = min(self.max_progress, self.progress + max(0, amount))
        return self.progress - before

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "target_id": self.target_id,
            "target_position": self.target_position.to_dict(),
            "progress": self.progress,
            "max_progress": self.max_progress,
            "priority": self.priority,
        }


@dataclass
class Animation:
    """Transient visual state; irrelevant to simulation correctness."""
    type: str               # chopping, mining, farming, hunting, walking
    start_time: int
    duration: int

    def is_active(self, now: int) -> bool:
        return now - self.start_time < self.duration


@dataclass
class NPCStatistics:
    """Per-NPC counters accumulated by the scheduler."""
    work_completed: int = 0
    time_worked: int = 0          # ms spent WORKING on a harvest/production task
    distance_traveled: int = 0
    tasks_assigned: int = 0

    @property
    def efficiency(self) -> float:
        """work_completed / tasks_assigned as a percentage, capped at 100."""
        if self.tasks_assigned <= 0:
            return 100.0
        return min(100.0, self.work_completed / self.tasks_assigned * 100.0)

    def to_dict(self) -> dict[str, float]:
        return {
            "work_completed": self.work_completed,
            "time_worked": self.time_worked,
            "distance_traveled": self.distance_traveled,
            "tasks_assigned": self.tasks_assigned,
            "efficiency": self.efficiency,
        }


# ---------------------------------------------------------------------------
# NPC
# ---------------------------------------------------------------------------

@dataclass
class NPC:
    """A simulated worker, driven by the scheduler or by the player."""

    # === Identity ===
    id: str
    position: Position

    # === Behaviour ===
    profession: Profession = Profession.NONE
    control_mode: ControlMode = ControlMode.AUTONOMOUS
    state: NPCState = NPCState.IDLE
    current_task: WorkTask | None = None
    current_target_id: str | None = None   # resource being walked to
    target_position: Position | None = None

    # === Movement ===
    is_moving: bool = False
    move_completes_at: int = 0
    last_move_direction: tuple[int, int] | None = None
    last_movement: int = 0
    last_action_time: int = 0

    # === Home (weak reference: id only) ===
    house_id: str | None = None

    # === Inventory ===
    inventory: dict[str, int] = field(default_factory=dict)
    equipped: list[str] = field(default_factory=list)

    # === Presentation ===
    animation: Animation | None = None

    # === Progression ===
    statistics: NPCStatistics = field(default_factory=NPCStatistics)
    skills: dict[str, int] = field(default_factory=dict)
    experience: int = 0
    level: int = 1
    health: int = 100
    energy: int = 100

    @property
    def is_autonomous(self) -> bool:
        return self.control_mode == ControlMode.AUTONOMOUS

    def quantity(self, item_id: str) -> int:
        return self.inventory.get(item_id, 0)

    def add_experience(self, amount: int) -> int:
        """
        Add experience and roll over level thresholds (``level * 100``).

        Each level gained restores 5 health and 3 energy (capped at 100).
        Returns the number of levels gained.
        """
        remaining = self.experience + max(0, amount)
        gained = 0
        while remaining >= self.level * 100:
            remaining -= self.level * 100
            self.level += 1
            gained += 1
        self.experience = remaining
        if gained:
            self.health = min(100, self.health + gained * 5)
            self.energy = min(100, self.energy + gained * 3)
        return gained

    def train_skill(self, skill: str, cap: int = 100) -> int:
        """Raise *skill* by one level, up to *cap*. Returns the new level."""
        level = min(cap, self.skills.get(skill, 1) + 1)
        self.skills[skill] = level
        return level

    def to_dict(self) -> dict[str, Any]:
        """Read-only snapshot for renderers."""
        return {
            "id": self.id,
            "position": self.position.to_dict(),
            "profession": self.profession.value,
            "control_mode": self.control_mode.value,
            "state": self.state.value,
            "current_task": self.current_task.to_dict() if self.current_task else None,
            "is_moving": self.is_moving,
            "house_id": self.house_id,
            "inventory": dict(self.inventory),
            "equipped": list(self.equipped),
            "animation": self.animation.type if self.animation else None,
            "statistics": self.statistics.to_dict(),
            "level": self.level,
            "experience": self.experience,
        }

    def __repr__(self) -> str:
        return (
            f"NPC(id={self.id!r}, pos=({self.position.x}, {self.position.z}), "
            f"profession={self.profession.value}, state={self.state.value}, "
            f"mode={self.control_mode.value})"
        )


def initial_skills(profession: Profession, profession_level: int = 10) -> dict[str, int]:
    """Starting skill levels: *profession_level* for the NPC's trade, 1 otherwise."""
    return {
        skill: (profession_level if prof == profession else 1)
        for prof, skill in PROFESSION_SKILLS.items()
    }
