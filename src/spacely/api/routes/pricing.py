"""Pricing endpoints.

POST /pricing/quote: price a booking request for a room
GET /pricing/rooms/{room_id}: read the room's pricing snapshot
"""

from __future__ import annotations

from datetime import datetime, time
from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from spacely.domain.errors import (
    AmbiguousOverrideError,
    BelowMinimumStayError,
    InvalidRequestError,
    QuoteError,
    SpanningWindowError,
)
from spacely.domain.modifiers import DurationDiscount, FixedAmount, ModifierRule
from spacely.domain.money import Money
from spacely.domain.overrides import DateRule, DayRule, PricingOverride
from spacely.domain.quote import PriceQuote, QuoteRequest, RoomPricingConfig, quote
from spacely.domain.rate_table import HourlyTier
from spacely.infra.db import snapshot
from spacely.infra.repositories.pricing_repository import fetch_room_pricing_config
from spacely.infra.time import to_utc_iso
from spacely.observability.logging import get_logger

router = APIRouter(prefix="/pricing", tags=["pricing"])

logger = get_logger(__name__)

PRICING_UNAVAILABLE = "pricing_unavailable"
ROOM_NOT_FOUND = "room_not_found"

_HOURS_SCALE = Decimal("0.0001")


# ── Schemas ───────────────────────────────────────────────


class QuoteRequestBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(alias="roomId", min_length=1)
    start_at: datetime = Field(alias="startAt")
    end_at: datetime = Field(alias="endAt")
    guests: int


# ── Serialization ─────────────────────────────────────────


def _money(value: Money) -> str:
    return value.to_decimal_string()


def _hours(value: Fraction) -> str:
    """Hours as a fixed-point string, at most four decimal places."""
    if value.denominator == 1:
        return str(value.numerator)
    exact = Decimal(value.numerator) / Decimal(value.denominator)
    return format(exact.quantize(_HOURS_SCALE, rounding=ROUND_HALF_UP).normalize(), "f")


def _clock(value: time) -> str:
    return value.strftime("%H:%M:%S" if value.second else "%H:%M")


def _tiers(tiers: tuple[HourlyTier, ...] | None) -> list[dict] | None:
    if tiers is None:
        return None
    return [
        {"hours": _hours(t.threshold_hours), "price": _money(t.price_per_booking)}
        for t in tiers
    ]


def serialize_quote(q: PriceQuote) -> dict:
    """Wire shape of a quote. Money is always a fixed-point decimal string."""
    return {
        "roomId": q.room_id,
        "currency": q.currency,
        "basePrice": _money(q.base_price),
        "appliedOverride": (
            {
                "id": q.applied_override.id,
                "name": q.applied_override.name,
                "type": q.applied_override.type,
            }
            if q.applied_override is not None
            else None
        ),
        "finalPrice": _money(q.final_price),
        "breakdown": {
            "basePrice": _money(q.breakdown.base_price),
            "extraPersonCharge": _money(q.breakdown.extra_person_charge),
            "totalDiscounts": _money(q.breakdown.total_discounts),
            "totalSurcharges": _money(q.breakdown.total_surcharges),
        },
        "appliedModifiers": [
            {"id": m.id, "name": m.name, "type": m.type, "amount": _money(m.amount)}
            for m in q.applied_modifiers
        ],
        "durationHours": _hours(q.duration_hours),
        "warnings": list(q.warnings),
        "calculatedAt": to_utc_iso(q.calculated_at),
    }


def _serialize_override(o: PricingOverride) -> dict:
    out: dict = {
        "id": o.id,
        "name": o.name,
        "type": o.kind,
        "startDayOfWeek": None,
        "startTime": None,
        "endDayOfWeek": None,
        "endTime": None,
        "startDate": None,
        "endDate": None,
    }
    if isinstance(o.rule, DayRule):
        out.update(
            startDayOfWeek=o.rule.start_day_of_week,
            startTime=_clock(o.rule.start_time),
            endDayOfWeek=o.rule.end_day_of_week,
            endTime=_clock(o.rule.end_time),
        )
    elif isinstance(o.rule, DateRule):
        out.update(
            startDate=o.rule.start_date.isoformat(),
            endDate=o.rule.end_date.isoformat(),
        )

    rates = o.rates
    out["hourlyTiers"] = _tiers(rates.hourly_tiers) if rates else None
    out["includedGuests"] = rates.included_guests if rates else None
    out["extraPersonChargePerHour"] = (
        _money(rates.extra_guest_charge_per_hour)
        if rates and rates.extra_guest_charge_per_hour is not None
        else None
    )
    return out


def _serialize_modifier(m: ModifierRule) -> dict:
    out: dict = {
        "id": m.id,
        "name": m.name,
        "type": m.type,
        "isActive": m.is_active,
    }
    if isinstance(m.amount, FixedAmount):
        out.update(discountType="fixed", discountValue=_money(m.amount.amount))
    else:
        out.update(discountType="percentage", discountValue=format(m.amount.percent, "f"))

    if isinstance(m, DurationDiscount):
        out.update(
            minHours=_hours(m.min_hours),
            maxHours=_hours(m.max_hours) if m.max_hours is not None else None,
        )
    else:
        out.update(minGuests=m.min_guests, maxGuests=m.max_guests)
    return out


def serialize_room_pricing(config: RoomPricingConfig) -> dict:
    rates = config.default_rates
    return {
        "roomId": config.room_id,
        "currency": rates.currency,
        "timezone": config.timezone,
        "billingIncrementMinutes": config.billing_increment_minutes,
        "maxGuests": config.max_guests,
        "defaultPricing": {
            "includedGuests": rates.included_guests,
            "hourlyTiers": _tiers(rates.tiers),
            "extraPersonChargePerHour": _money(rates.extra_guest_charge_per_hour),
        },
        "overrides": [_serialize_override(o) for o in config.overrides],
        "modifiers": [_serialize_modifier(m) for m in config.modifiers],
    }


# ── Helpers ───────────────────────────────────────────────


def _detail(reason_code: str, message: str, meta: dict | None = None) -> dict:
    return {"reason_code": reason_code, "message": message, "meta": meta or {}}


def _error_detail(exc: QuoteError) -> dict:
    return _detail(exc.reason_code, str(exc), exc.meta)


def _unavailable(room_id: str) -> HTTPException:
    # Override ids and config defects are logged, never returned.
    return HTTPException(
        status_code=503,
        detail=_detail(
            PRICING_UNAVAILABLE,
            "Pricing is temporarily unavailable for this room",
            {"room_id": room_id},
        ),
    )


def _load_room_config(room_id: str) -> RoomPricingConfig:
    """Fetch a consistent pricing snapshot or raise HTTPException."""
    try:
        with snapshot() as cur:
            config = fetch_room_pricing_config(cur, room_id)
    except ValueError:
        # Stored rates that fail domain validation are a listing defect.
        logger.exception(
            "room pricing config invalid",
            extra={"extra_fields": {"room_id": room_id}},
        )
        raise _unavailable(room_id)

    if config is None:
        raise HTTPException(
            status_code=404,
            detail=_detail(ROOM_NOT_FOUND, "Room not found", {"room_id": room_id}),
        )
    return config


# ── POST /pricing/quote ───────────────────────────────────


@router.post("/quote")
def post_quote(body: QuoteRequestBody) -> dict:
    """Price a booking request.

    The returned finalPrice is the amount checkout charges; it is computed
    once here and never recomputed implicitly.
    """
    config = _load_room_config(body.room_id)

    request = QuoteRequest(
        room_id=body.room_id,
        start=body.start_at,
        end=body.end_at,
        guests=body.guests,
    )

    try:
        result = quote(request, config)
    except (InvalidRequestError, BelowMinimumStayError) as exc:
        raise HTTPException(status_code=400, detail=_error_detail(exc))
    except SpanningWindowError as exc:
        raise HTTPException(status_code=409, detail=_error_detail(exc))
    except AmbiguousOverrideError as exc:
        logger.error(
            "pricing unavailable: ambiguous overrides",
            extra={
                "extra_fields": {
                    "room_id": body.room_id,
                    "override_ids": exc.override_ids,
                }
            },
        )
        raise _unavailable(body.room_id)

    logger.info(
        "quote calculated",
        extra={
            "extra_fields": {
                "room_id": result.room_id,
                "guests": body.guests,
                "duration_hours": str(result.duration_hours),
                "applied_override_id": (
                    result.applied_override.id if result.applied_override else None
                ),
                "final_price_cents": result.final_price.amount_cents,
                "currency": result.currency,
            }
        },
    )

    return {"quote": serialize_quote(result)}


# ── GET /pricing/rooms/{room_id} ──────────────────────────


@router.get("/rooms/{room_id}")
def get_room_pricing(room_id: str) -> dict:
    """Return default pricing, overrides and modifiers for a room."""
    config = _load_room_config(room_id)
    return serialize_room_pricing(config)
