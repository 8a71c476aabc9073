"""
Work/rest schedule policy.

Each NPC has a work-hours window (hours 0-23). Windows may wrap past
midnight: ``start=22, end=6`` covers 22:00 through 05:59. Outside the
window the scheduler sends autonomous NPCs home.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class WorkSchedule:
    work_start: int = 8
    work_end: int = 18
    rest_start: int = 22
    rest_end: int = 6
    break_duration: int = 30      # minutes
    work_duration: int = 240      # minutes

    def to_dict(self) -> dict[str, Any]:
        return {
            "work_hours": {"start": self.work_start, "end": self.work_end},
            "rest_hours": {"start": self.rest_start, "end": self.rest_end},
            "break_duration": self.break_duration,
            "work_duration": self.work_duration,
        }


def hour_in_window(hour: float, start: int, end: int) -> bool:
    """Whether *hour* falls in ``[start, end)``, wrapping at midnight."""
    if start == end:
        return True
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end


class SchedulePolicy:
    """Per-NPC schedules with a shared default."""

    def __init__(self, default: WorkSchedule | None = None) -> None:
        self.default = default or WorkSchedule()
        self._schedules: dict[str, WorkSchedule] = {}

    @classmethod
    def from_config(cls, config) -> SchedulePolicy:
        return cls(WorkSchedule(
            work_start=config.work_start_hour,
            work_end=config.work_end_hour,
            rest_start=config.rest_start_hour,
            rest_end=config.rest_end_hour,
            break_duration=config.break_duration_minutes,
            work_duration=config.work_duration_minutes,
        ))

    def get(self, npc_id: str) -> WorkSchedule:
        """Schedule for *npc_id*, falling back to the default."""
        return self._schedules.get(npc_id, self.default)

    def set_schedule(self, npc_id: str, **overrides: Any) -> WorkSchedule:
        """Merge *overrides* onto the NPC's current schedule."""
        schedule = replace(self.get(npc_id), **overrides)
        self._schedules[npc_id] = schedule
        return schedule

    def remove(self, npc_id: str) -> None:
        self._schedules.pop(npc_id, None)

    def is_work_time(self, hour: float, schedule: WorkSchedule) -> bool:
        return hour_in_window(hour, schedule.work_start, schedule.work_end)

    def should_work(self, npc_id: str, hour: float) -> bool:
        return self.is_work_time(hour, self.get(npc_id))

    def is_rest_time(self, npc_id: str, hour: float) -> bool:
        schedule = self.get(npc_id)
        return hour_in_window(hour, schedule.rest_start, schedule.rest_end)
