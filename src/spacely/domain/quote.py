"""Quote engine - prices one booking request against a room pricing snapshot.

Pipeline (linear, fail-fast, no retries):
validate → resolve override → tiered base price + extra-guest charge →
modifiers → assemble PriceQuote.

The engine is a pure function of (request, room snapshot, clock). It never
reads shared state; the caller supplies a consistent RoomPricingConfig.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from fractions import Fraction
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from spacely.infra.time import utc_now

from . import modifiers as modifier_engine
from .errors import BelowMinimumStayError, InvalidRequestError
from .modifiers import AppliedModifier, ModifierRule
from .money import Money
from .overrides import OverrideRef, PricingOverride, effective_rate_table, resolve
from .rate_table import RateTable, base_price, extra_guest_charge
from .time_window import TimeWindow

logger = logging.getLogger(__name__)

DISCOUNT_CLAMPED = "discount_clamped"


@dataclass(frozen=True)
class RoomPricingConfig:
    """Immutable pricing snapshot of one room."""

    room_id: str
    default_rates: RateTable
    overrides: tuple[PricingOverride, ...] = ()
    modifiers: tuple[ModifierRule, ...] = ()
    timezone: str = "UTC"
    billing_increment_minutes: int = 60
    max_guests: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "overrides", tuple(self.overrides))
        object.__setattr__(self, "modifiers", tuple(self.modifiers))
        if self.billing_increment_minutes < 1:
            raise ValueError("billing_increment_minutes must be >= 1")
        if self.max_guests is not None and self.max_guests < 1:
            raise ValueError("max_guests must be >= 1")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {self.timezone!r}") from exc

    @property
    def tz(self) -> tzinfo:
        return ZoneInfo(self.timezone)


@dataclass(frozen=True)
class QuoteRequest:
    room_id: str
    start: datetime
    end: datetime
    guests: int


@dataclass(frozen=True)
class PriceBreakdown:
    base_price: Money
    extra_person_charge: Money
    total_discounts: Money
    total_surcharges: Money

    @property
    def final_price(self) -> Money:
        total = (
            self.base_price
            + self.extra_person_charge
            + self.total_surcharges
            - self.total_discounts
        )
        if total.is_negative():
            return Money.zero(total.currency)
        return total


@dataclass(frozen=True)
class PriceQuote:
    room_id: str
    base_price: Money
    applied_override: OverrideRef | None
    breakdown: PriceBreakdown
    final_price: Money
    duration_hours: Fraction
    applied_modifiers: tuple[AppliedModifier, ...]
    warnings: tuple[str, ...]
    calculated_at: datetime

    @property
    def currency(self) -> str:
        return self.final_price.currency


def _validate(request: QuoteRequest, room: RoomPricingConfig) -> TimeWindow:
    if request.room_id != room.room_id:
        raise InvalidRequestError(
            "Pricing snapshot does not belong to the requested room",
            {"room_id": request.room_id, "snapshot_room_id": room.room_id},
        )
    if isinstance(request.guests, bool) or not isinstance(request.guests, int):
        raise InvalidRequestError("guests must be an integer")
    if request.guests < 1:
        raise InvalidRequestError("guests must be at least 1", {"guests": request.guests})
    if room.max_guests is not None and request.guests > room.max_guests:
        raise InvalidRequestError(
            f"Room accepts at most {room.max_guests} guests",
            {"guests": request.guests, "max_guests": room.max_guests},
        )
    try:
        return TimeWindow(request.start, request.end)
    except ValueError as exc:
        raise InvalidRequestError(str(exc)) from exc


def quote(
    request: QuoteRequest,
    room: RoomPricingConfig,
    *,
    clock: Callable[[], datetime] | None = None,
) -> PriceQuote:
    """Compute the itemized price for one booking request.

    Args:
        request: Room, window and guest count to price.
        room: Pricing snapshot for ``request.room_id``.
        clock: Source of ``calculated_at``; defaults to UTC now.

    Returns:
        A frozen PriceQuote whose final price never goes below zero.

    Raises:
        InvalidRequestError: Bad window, guest count or room mismatch.
        BelowMinimumStayError: Window shorter than the cheapest tier.
        SpanningWindowError: Window crosses an override boundary.
        AmbiguousOverrideError: Overrides tie for precedence.
    """
    if clock is None:
        clock = utc_now

    # 1. Validate
    window = _validate(request, room)

    # 2. Resolve the effective rate table
    override = resolve(room.overrides, window, room.tz)
    table = effective_rate_table(override, room.default_rates)

    # 3. Minimum stay is checked on the exact length, pricing on the billable one
    if window.exact_hours < table.minimum_hours:
        raise BelowMinimumStayError(window.exact_hours, table.minimum_hours)
    duration_hours = window.duration_hours(room.billing_increment_minutes)
    base = base_price(table, duration_hours)
    extra = extra_guest_charge(table, request.guests, duration_hours)

    # 4. Modifiers
    result = modifier_engine.apply(
        table,
        window,
        request.guests,
        room.modifiers,
        base,
        extra,
        increment_minutes=room.billing_increment_minutes,
    )

    quote_warnings: tuple[str, ...] = ()
    if result.clamp is not None:
        quote_warnings = (DISCOUNT_CLAMPED,)
        logger.warning(
            "discounts clamped",
            extra={
                "extra_fields": {
                    "room_id": room.room_id,
                    "requested_discount_cents": result.clamp.requested_cents,
                    "applied_discount_cents": result.clamp.applied_cents,
                }
            },
        )

    # 5. Assemble
    breakdown = PriceBreakdown(
        base_price=base,
        extra_person_charge=extra,
        total_discounts=result.total_discounts,
        total_surcharges=result.total_surcharges,
    )
    return PriceQuote(
        room_id=room.room_id,
        base_price=base,
        applied_override=OverrideRef.of(override) if override is not None else None,
        breakdown=breakdown,
        final_price=breakdown.final_price,
        duration_hours=duration_hours,
        applied_modifiers=result.applied,
        warnings=quote_warnings,
        calculated_at=clock(),
    )
