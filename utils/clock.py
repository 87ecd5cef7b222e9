"""Wall-clock access for the reminder engine."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional


class Clock:
    """Local calendar arithmetic on top of :meth:`now`.

    Subclasses only provide ``now``; it must return an aware datetime.
    """

    def now(self) -> datetime:
        raise NotImplementedError

    @property
    def tz(self) -> Optional[tzinfo]:
        return self.now().tzinfo

    def today(self) -> date:
        return self.now().date()

    def start_of_day(self, day: Optional[date] = None) -> datetime:
        return self.at(day or self.today(), 0, 0)

    def at(self, day: date, hour: int, minute: int) -> datetime:
        """Compose ``hour:minute`` onto ``day``. Raises ``ValueError`` on bad input."""

        return datetime.combine(day, time(hour, minute), tzinfo=self.tz)


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now().astimezone()

    def at(self, day: date, hour: int, minute: int) -> datetime:
        # resolve the offset for that wall time, not for "now" (DST)
        return datetime.combine(day, time(hour, minute)).astimezone()


class FixedClock(Clock):
    """Clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, current: datetime) -> None:
        if current.tzinfo is None:
            raise ValueError("FixedClock needs an aware datetime")
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> datetime:
        self.current = self.current + timedelta(**delta)
        return self.current


__all__ = ["Clock", "FixedClock", "SystemClock"]
