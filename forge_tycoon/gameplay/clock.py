"""
Clock - the in-game calendar.
NO UI DEPENDENCIES.

One tick of real time advances `real_seconds * time_multiplier` game
minutes. With the default multiplier of 60 each one-second tick is a game
hour.
"""
import logging
from typing import Dict, Optional

from forge_tycoon.events import (
    ClockStateChanged,
    EventBus,
    HourChanged,
    NewDay,
    TimeMultiplierChanged,
    TimeSkipped,
    TimeTick,
    WorkdayEnd,
    WorkdayStart,
)

from .constants import START_DAY, START_HOUR, TIME_MULTIPLIER, WORKDAY_END, WORKDAY_START

logger = logging.getLogger(__name__)


class Clock:
    """
    Day, hour and minute of the game world.

    Every hour boundary crossed publishes HourChanged, and every midnight
    publishes NewDay, one event per boundary in chronological order even
    when a single tick spans several of them.
    """

    def __init__(self, bus: EventBus, time_multiplier: float = TIME_MULTIPLIER):
        self.bus = bus
        self.time_multiplier = time_multiplier
        self.day = START_DAY
        self.hour = START_HOUR
        self.minute: float = 0
        self.total_minutes: float = 0
        self.running = False
        self.work_start = WORKDAY_START
        self.work_end = WORKDAY_END

    # =========================================================================
    # RUN STATE
    # =========================================================================

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.bus.publish(ClockStateChanged(running=True))

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        self.bus.publish(ClockStateChanged(running=False))

    def set_paused(self, paused: bool) -> None:
        if paused:
            self.stop()
        else:
            self.start()

    # =========================================================================
    # ADVANCING TIME
    # =========================================================================

    def tick(self, real_seconds: float = 1) -> bool:
        """Advance by real_seconds of real time. Does nothing while stopped."""
        if not self.running:
            return False
        self._advance(real_seconds * self.time_multiplier)
        self.bus.publish(TimeTick(time=self.get_time()))
        return True

    def skip_time(self, hours: float = 0, minutes: float = 0) -> None:
        """Jump forward directly, publishing every boundary on the way."""
        self._advance(hours * 60 + minutes)
        self.bus.publish(TimeSkipped(hours=hours, minutes=minutes))

    def _advance(self, game_minutes: float) -> None:
        if game_minutes <= 0:
            return
        self.total_minutes += game_minutes
        self.minute += game_minutes

        while self.minute >= 60:
            self.minute -= 60
            self.hour += 1
            if self.hour >= 24:
                self.hour = 0
                self.day += 1
            self.bus.publish(HourChanged(hour=self.hour))
            if self.hour == 0:
                self.bus.publish(NewDay(day=self.day))

            if self.hour == self.work_start:
                self.bus.publish(WorkdayStart())
            elif self.hour == self.work_end:
                self.bus.publish(WorkdayEnd())

    def set_time_multiplier(self, multiplier: float) -> bool:
        if multiplier <= 0:
            logger.warning(f"Ignoring non-positive time multiplier {multiplier}")
            return False
        self.time_multiplier = multiplier
        self.bus.publish(TimeMultiplierChanged(multiplier=multiplier))
        return True

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_time(self) -> Dict[str, float]:
        return {
            "day": self.day,
            "hour": self.hour,
            "minute": self.minute,
            "total_minutes": self.total_minutes,
        }

    def formatted_time(self) -> str:
        return f"{self.hour:02d}:{int(self.minute):02d}"

    def formatted_datetime(self) -> str:
        ampm = "PM" if self.hour >= 12 else "AM"
        hour12 = self.hour % 12 or 12
        return f"Day {self.day}, {hour12}:{int(self.minute):02d} {ampm}"

    def is_during_work_hours(self) -> bool:
        return self.work_start <= self.hour < self.work_end

    def minutes_until(self, target_hour: int, target_minute: int = 0) -> float:
        """Game minutes until the next occurrence of target_hour:target_minute."""
        now = self.hour * 60 + self.minute
        target = target_hour * 60 + target_minute
        delta = target - now
        if delta <= 0:
            delta += 24 * 60
        return delta

    def time_until(self, target_hour: int) -> Dict[str, int]:
        """Hours and minutes until the start of target_hour."""
        total = int(self.minutes_until(target_hour))
        return {"hours": total // 60, "minutes": total % 60}

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def serialize(self) -> dict:
        return {
            "time": self.get_time(),
            "time_multiplier": self.time_multiplier,
            "work_hours": {"start": self.work_start, "end": self.work_end},
        }

    def deserialize(self, data: Optional[dict]) -> None:
        """Restore time and settings. Whether the clock runs is left to the caller."""
        if not data:
            return
        time = data.get("time") or {}
        self.day = int(time.get("day", self.day))
        self.hour = int(time.get("hour", self.hour))
        self.minute = time.get("minute", self.minute)
        self.total_minutes = time.get("total_minutes", self.total_minutes)

        multiplier = data.get("time_multiplier")
        if multiplier and multiplier > 0:
            self.time_multiplier = multiplier

        work_hours = data.get("work_hours") or {}
        self.work_start = int(work_hours.get("start", self.work_start))
        self.work_end = int(work_hours.get("end", self.work_end))
