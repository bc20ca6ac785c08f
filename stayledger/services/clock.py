"""
Clock abstraction.

Booking validation ("check-in cannot be in the past") and status history
timestamps read time through a Clock so the orchestrator can be driven
deterministically in tests.
"""

from datetime import date, datetime, timedelta, timezone


class Clock:
    """Source of the current time."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Reads the system clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock pinned to a given instant; can be moved forward by hand."""

    def __init__(self, fixed_time: datetime):
        if fixed_time.tzinfo is None:
            fixed_time = fixed_time.replace(tzinfo=timezone.utc)
        self._fixed_time = fixed_time

    def now(self) -> datetime:
        return self._fixed_time

    def advance(self, days: int = 0, hours: int = 0, minutes: int = 0) -> None:
        self._fixed_time += timedelta(days=days, hours=hours, minutes=minutes)
