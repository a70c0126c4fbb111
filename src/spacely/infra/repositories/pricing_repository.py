"""Room pricing repository - loads a RoomPricingConfig snapshot.

Read-only. Listing edits are written elsewhere; this module only maps rows
from rooms, room_pricing_overrides and room_pricing_modifiers onto the
immutable domain types.
"""

from __future__ import annotations

import os
from decimal import Decimal
from fractions import Fraction
from typing import Any

from psycopg2.extensions import cursor as PgCursor

from spacely.domain.modifiers import (
    DurationDiscount,
    FixedAmount,
    GuestDiscount,
    GuestSurcharge,
    ModifierRule,
    Percentage,
)
from spacely.domain.money import Money
from spacely.domain.overrides import DateRule, DayRule, PricingOverride, RateOverride
from spacely.domain.quote import RoomPricingConfig
from spacely.domain.rate_table import HourlyTier, RateTable
from spacely.infra.db import fetchall, fetchone


def _default_timezone() -> str:
    return os.environ.get("ROOM_DEFAULT_TIMEZONE", "UTC")


def _money(value: Any, currency: str) -> Money:
    # jsonb numbers arrive as float, numeric columns as Decimal
    return Money.from_decimal(Decimal(str(value)), currency)


def tiers_from_json(raw: list[dict] | None, currency: str) -> tuple[HourlyTier, ...]:
    """Map ``[{"hours": 3, "price": 90}, ...]`` to HourlyTier values."""
    if not raw:
        return ()
    return tuple(
        HourlyTier(
            threshold_hours=Fraction(str(item["hours"])),
            price_per_booking=_money(item["price"], currency),
        )
        for item in raw
    )


def _minutes_to_hours(minutes: int | None) -> Fraction | None:
    if minutes is None:
        return None
    return Fraction(minutes, 60)


def override_from_row(row: tuple, currency: str) -> PricingOverride:
    (
        override_id,
        name,
        override_type,
        start_day_of_week,
        start_time,
        end_day_of_week,
        end_time,
        start_date,
        end_date,
        hourly_tiers,
        included_guests,
        extra_charge,
    ) = row

    if override_type == "day":
        rule = DayRule(
            start_day_of_week=start_day_of_week,
            start_time=start_time,
            end_day_of_week=end_day_of_week,
            end_time=end_time,
        )
    elif override_type == "date":
        rule = DateRule(start_date=start_date, end_date=end_date)
    else:
        raise ValueError(f"unknown override type {override_type!r} on override {override_id}")

    rates = None
    if hourly_tiers or included_guests is not None or extra_charge is not None:
        rates = RateOverride(
            hourly_tiers=tiers_from_json(hourly_tiers, currency) or None,
            included_guests=included_guests,
            extra_guest_charge_per_hour=(
                _money(extra_charge, currency) if extra_charge is not None else None
            ),
        )

    return PricingOverride(id=str(override_id), name=name or "", rule=rule, rates=rates)


def modifier_from_row(row: tuple, currency: str) -> ModifierRule:
    (
        modifier_id,
        name,
        modifier_type,
        discount_type,
        discount_value,
        min_duration_minutes,
        max_duration_minutes,
        min_guests,
        max_guests,
        is_active,
    ) = row

    if discount_type == "percentage":
        amount = Percentage(Decimal(str(discount_value)))
    elif discount_type == "fixed":
        amount = FixedAmount(_money(discount_value, currency))
    else:
        raise ValueError(f"unknown discount type {discount_type!r} on modifier {modifier_id}")

    common = {"id": str(modifier_id), "name": name or "", "amount": amount, "is_active": bool(is_active)}

    if modifier_type == "duration_discount":
        return DurationDiscount(
            min_hours=_minutes_to_hours(min_duration_minutes) or Fraction(0),
            max_hours=_minutes_to_hours(max_duration_minutes),
            **common,
        )
    if modifier_type == "guest_discount":
        return GuestDiscount(min_guests=min_guests or 0, max_guests=max_guests, **common)
    if modifier_type == "guest_surcharge":
        return GuestSurcharge(min_guests=min_guests or 0, max_guests=max_guests, **common)
    raise ValueError(f"unknown modifier type {modifier_type!r} on modifier {modifier_id}")


def fetch_room_pricing_config(cur: PgCursor, room_id: str) -> RoomPricingConfig | None:
    """Load the pricing snapshot for a room.

    Call inside ``snapshot()`` so the three reads see one version of the data.

    Returns:
        RoomPricingConfig, or None if the room does not exist.
    """
    room = fetchone(
        cur,
        """
        SELECT id, currency, hourly_tiers, included_guests,
               extra_person_charge_per_hour, max_guests,
               billing_increment_minutes, timezone
        FROM rooms
        WHERE id = %s
        """,
        (room_id,),
    )
    if room is None:
        return None

    (
        _,
        currency,
        hourly_tiers,
        included_guests,
        extra_charge,
        max_guests,
        increment,
        timezone,
    ) = room
    currency = currency or "USD"

    default_rates = RateTable(
        tiers=tiers_from_json(hourly_tiers, currency),
        included_guests=included_guests or 1,
        extra_guest_charge_per_hour=_money(extra_charge or 0, currency),
    )

    override_rows = fetchall(
        cur,
        """
        SELECT id, name, type,
               start_day_of_week, start_time, end_day_of_week, end_time,
               start_date, end_date,
               hourly_tiers, included_guests, extra_person_charge_per_hour
        FROM room_pricing_overrides
        WHERE room_id = %s
        ORDER BY id
        """,
        (room_id,),
    )

    modifier_rows = fetchall(
        cur,
        """
        SELECT id, name, type, discount_type, discount_value,
               min_duration_minutes, max_duration_minutes,
               min_guests, max_guests, is_active
        FROM room_pricing_modifiers
        WHERE room_id = %s
        ORDER BY id
        """,
        (room_id,),
    )

    return RoomPricingConfig(
        room_id=str(room_id),
        default_rates=default_rates,
        overrides=tuple(override_from_row(r, currency) for r in override_rows),
        modifiers=tuple(modifier_from_row(r, currency) for r in modifier_rows),
        timezone=timezone or _default_timezone(),
        billing_increment_minutes=increment or 60,
        max_guests=max_guests,
    )
