"""Half-open booking window [start, end)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from fractions import Fraction

_HOUR = timedelta(hours=1)
_MICROSECOND = timedelta(microseconds=1)


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("window timestamps must be timezone-aware")
        if self.start >= self.end:
            raise ValueError("window start must be before end")

    @property
    def length(self) -> timedelta:
        return self.end - self.start

    @property
    def exact_hours(self) -> Fraction:
        """Exact window length in hours, with no rounding."""
        return Fraction(self.length // _MICROSECOND, _HOUR // _MICROSECOND)

    def duration_hours(self, increment_minutes: int = 60) -> Fraction:
        """Billable duration: the length rounded up to ``increment_minutes``.

        With the default increment a 61-minute window bills as 2 hours;
        with ``increment_minutes=15`` it bills as 1.25 hours.
        """
        if increment_minutes < 1:
            raise ValueError("increment_minutes must be >= 1")
        step = timedelta(minutes=increment_minutes) // _MICROSECOND
        total = self.length // _MICROSECOND
        steps = -(-total // step)
        return Fraction(steps * increment_minutes, 60)

    def localize(self, tz: tzinfo) -> tuple[datetime, datetime]:
        """Return (start, end) as naive wall-clock times in ``tz``.

        Override rules locate their weekly occurrence from the local start.
        Naive local times must not be subtracted to get a length: across a
        DST change that differs from the real elapsed time.
        """
        return (
            self.start.astimezone(tz).replace(tzinfo=None),
            self.end.astimezone(tz).replace(tzinfo=None),
        )
