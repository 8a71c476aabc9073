"""
Simulation clock.

A monotonic millisecond counter plus a derived in-game time of day. The
engine advances it once per tick; nothing in the core reads the wall
clock, so every run is reproducible.
"""

from __future__ import annotations

HOURS_PER_DAY = 24


class SimulationClock:
    """Millisecond simulation time with a game-hour view."""

    def __init__(
        self,
        ms_per_game_hour: int = 60_000,
        start_hour: float = 6.0,
        start_ms: int = 0,
    ) -> None:
        if ms_per_game_hour <= 0:
            raise ValueError("ms_per_game_hour must be positive")
        self.ms_per_game_hour = ms_per_game_hour
        self.start_hour = float(start_hour)
        self._now_ms = int(start_ms)
        self._origin_ms = int(start_ms)

    @classmethod
    def from_config(cls, config) -> SimulationClock:
        return cls(
            ms_per_game_hour=config.ms_per_game_hour,
            start_hour=config.start_hour,
        )

    @property
    def now_ms(self) -> int:
        return self._now_ms

    def advance(self, dt_ms: int) -> int:
        """Move time forward by *dt_ms* and return the new timestamp."""
        if dt_ms < 0:
            raise ValueError("Clock cannot move backwards")
        self._now_ms += int(dt_ms)
        return self._now_ms

    # ------------------------------------------------------------------
    # Game time
    # ------------------------------------------------------------------

    @property
    def total_game_hours(self) -> float:
        elapsed = self._now_ms - self._origin_ms
        return elapsed / self.ms_per_game_hour + self.start_hour

    @property
    def game_time(self) -> float:
        """Fractional hour of the current day, in [0, 24)."""
        # Rounded so set_hour(20) reads back as hour 20, not 19.999...
        return round(self.total_game_hours, 9) % HOURS_PER_DAY

    @property
    def game_hour(self) -> int:
        return int(self.game_time)

    @property
    def game_minute(self) -> int:
        return int((self.game_time % 1) * 60)

    @property
    def day_count(self) -> int:
        """Day number, starting at 1."""
        return int(self.total_game_hours // HOURS_PER_DAY) + 1

    @property
    def is_day(self) -> bool:
        return 6 <= self.game_time < 18

    def set_hour(self, hour: float) -> None:
        """
        Jump the time of day to *hour* without touching ``now_ms``.

        Shifts the day origin so throttles keyed on ``now_ms`` are unaffected.
        """
        current = self.total_game_hours
        day_start = current - (current % HOURS_PER_DAY)
        self.start_hour += (day_start + hour % HOURS_PER_DAY) - current

    def format_time(self) -> str:
        hour = self.game_hour
        display = 12 if hour % 12 == 0 else hour % 12
        ampm = "AM" if hour < 12 else "PM"
        return f"{display:02d}:{self.game_minute:02d} {ampm}"

    def time_of_day(self) -> str:
        hour = self.game_hour
        if 5 <= hour < 7:
            return "dawn"
        if 7 <= hour < 11:
            return "morning"
        if 11 <= hour < 14:
            return "noon"
        if 14 <= hour < 17:
            return "afternoon"
        if 17 <= hour < 19:
            return "dusk"
        if 19 <= hour < 23:
            return "night"
        return "midnight"

    def __repr__(self) -> str:
        return f"SimulationClock(now_ms={self._now_ms}, day={self.day_count}, {self.format_time()})"
