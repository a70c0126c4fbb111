"""Pricing overrides and the override matcher.

An override replaces the room's default rate table while it is active. Two
rule shapes exist:

- DayRule: a recurring weekly window, e.g. Friday 17:30 to Monday 01:00.
  Days are numbered 0 = Sunday .. 6 = Saturday. When the end falls before the
  start in the week, the window wraps into the following week.
- DateRule: an inclusive calendar range, e.g. 2026-12-24 .. 2026-12-26.

Both are evaluated against the room's local wall-clock time.

Precedence: date rules outrank day rules; within a kind the narrower span
wins; equal best spans are an authoring error. A window that only partly
overlaps an override which would outrank the chosen one is rejected, since the
price would change mid-stay.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Literal, Sequence, Union

from .errors import AmbiguousOverrideError, SpanningWindowError
from .money import Money
from .rate_table import HourlyTier, RateTable
from .time_window import TimeWindow

logger = logging.getLogger(__name__)

WEEK = timedelta(days=7)

OverrideKind = Literal["day", "date"]


def _parse_time(value: time | str) -> time:
    if isinstance(value, time):
        return value
    parts = value.split(":")
    try:
        if len(parts) not in (2, 3):
            raise ValueError(value)
        return time(*(int(part) for part in parts))
    except ValueError as exc:
        raise ValueError(f"invalid time of day {value!r}, expected HH:MM[:SS]") from exc


def _offset(day: int, at: time) -> timedelta:
    return timedelta(
        days=day,
        hours=at.hour,
        minutes=at.minute,
        seconds=at.second,
        microseconds=at.microsecond,
    )


def _instant(wall: datetime, tz: tzinfo) -> datetime:
    # Ambiguous wall times resolve to their first occurrence. Compared in UTC
    # so a window carrying the same tzinfo is not compared by wall time.
    return wall.replace(tzinfo=tz, fold=0).astimezone(timezone.utc)


def week_offset(moment: datetime) -> timedelta:
    """Offset of ``moment`` from Sunday 00:00 of its week."""
    day = (moment.weekday() + 1) % 7  # Python: Monday=0; here: Sunday=0
    return _offset(day, moment.time())


@dataclass(frozen=True)
class DayRule:
    start_day_of_week: int
    start_time: time
    end_day_of_week: int
    end_time: time

    def __post_init__(self) -> None:
        for field_name in ("start_day_of_week", "end_day_of_week"):
            if not 0 <= getattr(self, field_name) <= 6:
                raise ValueError(f"{field_name} must be between 0 (Sunday) and 6 (Saturday)")
        object.__setattr__(self, "start_time", _parse_time(self.start_time))
        object.__setattr__(self, "end_time", _parse_time(self.end_time))
        if self.span == timedelta(0):
            raise ValueError("day rule must not start and end at the same instant")

    @property
    def start_offset(self) -> timedelta:
        return _offset(self.start_day_of_week, self.start_time)

    @property
    def end_offset(self) -> timedelta:
        return _offset(self.end_day_of_week, self.end_time)

    @property
    def wraps(self) -> bool:
        return self.end_offset < self.start_offset

    @property
    def span(self) -> timedelta:
        return (self.end_offset - self.start_offset) % WEEK

    def _occurrence(self, window: TimeWindow, tz: tzinfo) -> tuple[timedelta, datetime, datetime]:
        """Locate the window start in the weekly occurrence that began most recently.

        Returns the wall-clock position of the start inside that occurrence,
        and the occurrence's end and the next occurrence's start as instants.
        The position is modular, so a wrapped rule is one interval.
        """
        local_start, _ = window.localize(tz)
        rel = (week_offset(local_start) - self.start_offset) % WEEK
        begin = local_start.replace(fold=0) - rel
        return rel, _instant(begin + self.span, tz), _instant(begin + WEEK, tz)

    def contains(self, window: TimeWindow, tz: tzinfo) -> bool:
        rel, ends_at, _ = self._occurrence(window, tz)
        return rel < self.span and window.end <= ends_at

    def overlaps(self, window: TimeWindow, tz: tzinfo) -> bool:
        rel, _, next_starts_at = self._occurrence(window, tz)
        return rel < self.span or window.end > next_starts_at


@dataclass(frozen=True)
class DateRule:
    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.start_date, time.min)

    @property
    def ends_at(self) -> datetime:
        return datetime.combine(self.end_date + timedelta(days=1), time.min)

    @property
    def span(self) -> timedelta:
        return self.ends_at - self.starts_at

    def contains(self, window: TimeWindow, tz: tzinfo) -> bool:
        return (
            _instant(self.starts_at, tz) <= window.start
            and window.end <= _instant(self.ends_at, tz)
        )

    def overlaps(self, window: TimeWindow, tz: tzinfo) -> bool:
        return (
            window.start < _instant(self.ends_at, tz)
            and window.end > _instant(self.starts_at, tz)
        )


OverrideRule = Union[DayRule, DateRule]


@dataclass(frozen=True)
class RateOverride:
    """Override rates. Omitted fields fall back to the room default."""

    hourly_tiers: tuple[HourlyTier, ...] | None = None
    included_guests: int | None = None
    extra_guest_charge_per_hour: Money | None = None


@dataclass(frozen=True)
class PricingOverride:
    id: str
    rule: OverrideRule
    name: str = ""
    rates: RateOverride | None = None

    @property
    def kind(self) -> OverrideKind:
        if isinstance(self.rule, DateRule):
            return "date"
        if isinstance(self.rule, DayRule):
            return "day"
        raise TypeError(f"unknown override rule: {type(self.rule).__name__}")


@dataclass(frozen=True)
class OverrideRef:
    id: str
    name: str
    type: OverrideKind

    @classmethod
    def of(cls, override: PricingOverride) -> OverrideRef:
        return cls(id=override.id, name=override.name, type=override.kind)


def _rank(override: PricingOverride) -> tuple[int, timedelta]:
    """Sort key: lower is stronger."""
    kind_rank = 0 if override.kind == "date" else 1
    return kind_rank, override.rule.span


def resolve(
    overrides: Sequence[PricingOverride],
    window: TimeWindow,
    tz: tzinfo = timezone.utc,
) -> PricingOverride | None:
    """Select the single override that prices ``window``, or None.

    Args:
        overrides: The room's overrides, in any order.
        window: Requested booking window.
        tz: The room's timezone; rules are matched in local wall-clock time.

    Raises:
        SpanningWindowError: An override that would win only covers part of
            the window.
        AmbiguousOverrideError: Several overrides tie for precedence.
    """
    candidates: list[PricingOverride] = []
    partial: list[PricingOverride] = []
    for override in overrides:
        if override.rule.contains(window, tz):
            candidates.append(override)
        elif override.rule.overlaps(window, tz):
            partial.append(override)

    selected = None
    if candidates:
        best_rank = min(_rank(o) for o in candidates)
        best = [o for o in candidates if _rank(o) == best_rank]
        if len(best) > 1:
            logger.warning(
                "ambiguous pricing overrides",
                extra={"extra_fields": {"override_ids": [o.id for o in best]}},
            )
            raise AmbiguousOverrideError([o.id for o in best])
        selected = best[0]

    for override in partial:
        if selected is None or _rank(override) <= _rank(selected):
            raise SpanningWindowError(override.id)

    if selected is not None:
        logger.info(
            "pricing override resolved",
            extra={
                "extra_fields": {
                    "override_id": selected.id,
                    "override_type": selected.kind,
                    "candidates": len(candidates),
                }
            },
        )
    return selected


def effective_rate_table(override: PricingOverride | None, default: RateTable) -> RateTable:
    """Merge an override's rates onto the room default, field by field."""
    if override is None or override.rates is None:
        return default

    rates = override.rates
    return RateTable(
        tiers=rates.hourly_tiers if rates.hourly_tiers else default.tiers,
        included_guests=(
            rates.included_guests
            if rates.included_guests is not None
            else default.included_guests
        ),
        extra_guest_charge_per_hour=(
            rates.extra_guest_charge_per_hour
            if rates.extra_guest_charge_per_hour is not None
            else default.extra_guest_charge_per_hour
        ),
    )
