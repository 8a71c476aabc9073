"""
Structured outcomes for simulation operations.

Nothing in the core raises for a simulation-level failure. Commands and
inventory mutations return one of these records; ``reason`` is a stable
machine-readable code and ``message`` is meant for UI display.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailureReason(str, Enum):
    INVALID_POSITION = "invalid_position"
    STACK_LIMIT_EXCEEDED = "stack_limit_exceeded"
    OVER_CAPACITY = "over_capacity"
    UNKNOWN_ITEM = "unknown_item"
    INSUFFICIENT_QUANTITY = "insufficient_quantity"
    INVALID_QUANTITY = "invalid_quantity"
    NOT_EQUIPPABLE = "not_equippable"
    COOLDOWN_ACTIVE = "cooldown_active"
    INVALID_TASK = "invalid_task"
    TARGET_VANISHED = "target_vanished"
    NO_HOME_ASSIGNED = "no_home_assigned"
    NPC_NOT_FOUND = "npc_not_found"
    ALREADY_MOVING = "already_moving"
    ALREADY_WORKING = "already_working"
    NOT_CONTROLLED = "not_controlled"
    NO_PROFESSION = "no_profession"
    INVALID_PROFESSION = "invalid_profession"
    INVALID_MODE = "invalid_mode"
    NO_ADJACENT_TARGET = "no_adjacent_target"
    NOT_WORKING = "not_working"
    STORAGE_FULL = "storage_full"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a command-surface call (move, manual work, stop...)."""

    success: bool
    message: str = ""
    reason: FailureReason | None = None

    @classmethod
    def ok(cls, message: str = "") -> ActionResult:
        return cls(True, message)

    @classmethod
    def fail(cls, reason: FailureReason, message: str = "") -> ActionResult:
        return cls(False, message or reason.value.replace("_", " "), reason)

    def __bool__(self) -> bool:
        return self.success


@dataclass(frozen=True)
class AddItemResult:
    """Outcome of an inventory insertion."""

    success: bool
    reason: FailureReason | None = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.success
