"""
Wall-clock helpers.

Contract and event deadlines are real time, not game time, so every
component that stores an expiry reads the clock through a `now` callable
(defaulting to utc_now) and round-trips timestamps through ISO-8601.
NO UI DEPENDENCIES.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Now = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def minutes_from(now: datetime, minutes: float) -> datetime:
    return now + timedelta(minutes=minutes)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def from_iso(value) -> Optional[datetime]:
    """
    Parse an ISO-8601 string back into an aware datetime.

    Naive strings are assumed to be UTC. Datetimes pass through unchanged.
    """
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def deadline_from_iso(value) -> datetime:
    """Like from_iso, but a missing deadline is a ValueError."""
    parsed = from_iso(value)
    if parsed is None:
        raise ValueError("missing deadline")
    return parsed


def seconds_left(expiry: datetime, now: datetime) -> float:
    return max(0.0, (expiry - now).total_seconds())


@dataclass
class TimedModifier:
    """A multiplier that stops applying once its expiry passes."""
    multiplier: float
    expiry: datetime

    def is_active(self, now: datetime) -> bool:
        return self.expiry > now

    def to_dict(self) -> dict:
        return {"multiplier": self.multiplier, "expiry": to_iso(self.expiry)}

    @classmethod
    def from_dict(cls, data: dict) -> "TimedModifier":
        return cls(multiplier=float(data["multiplier"]), expiry=deadline_from_iso(data["expiry"]))
