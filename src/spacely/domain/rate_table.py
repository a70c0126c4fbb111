"""Hourly tier tables and the tiered base-price lookup.

Tiers are flat-rate bands, not per-hour multipliers: the highest tier whose
threshold does not exceed the stay prices the entire booking.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Union

from .errors import BelowMinimumStayError
from .money import Money

Hours = Union[int, Fraction]


@dataclass(frozen=True)
class HourlyTier:
    threshold_hours: Fraction
    price_per_booking: Money

    def __post_init__(self) -> None:
        object.__setattr__(self, "threshold_hours", Fraction(self.threshold_hours))
        if self.threshold_hours <= 0:
            raise ValueError("threshold_hours must be > 0")
        if self.price_per_booking.is_negative():
            raise ValueError("price_per_booking must be >= 0")


@dataclass(frozen=True)
class RateTable:
    tiers: tuple[HourlyTier, ...]
    included_guests: int = 1
    extra_guest_charge_per_hour: Money | None = None

    def __post_init__(self) -> None:
        tiers = tuple(sorted(self.tiers, key=lambda t: t.threshold_hours))
        if not tiers:
            raise ValueError("rate table needs at least one tier")
        currency = tiers[0].price_per_booking.currency

        for prev, cur in zip(tiers, tiers[1:]):
            if cur.threshold_hours == prev.threshold_hours:
                raise ValueError(f"duplicate tier threshold: {cur.threshold_hours}h")
            # Longer stays never cost less than shorter ones.
            if cur.price_per_booking < prev.price_per_booking:
                raise ValueError(
                    f"tier {cur.threshold_hours}h is cheaper than tier {prev.threshold_hours}h"
                )
        if any(t.price_per_booking.currency != currency for t in tiers):
            raise ValueError("all tiers must share one currency")

        if self.included_guests < 1:
            raise ValueError("included_guests must be >= 1")

        charge = self.extra_guest_charge_per_hour
        if charge is None:
            charge = Money.zero(currency)
        if charge.currency != currency:
            raise ValueError("extra guest charge currency differs from tier currency")
        if charge.is_negative():
            raise ValueError("extra_guest_charge_per_hour must be >= 0")

        object.__setattr__(self, "tiers", tiers)
        object.__setattr__(self, "extra_guest_charge_per_hour", charge)

    @property
    def currency(self) -> str:
        return self.tiers[0].price_per_booking.currency

    @property
    def minimum_tier(self) -> HourlyTier:
        return self.tiers[0]

    @property
    def minimum_hours(self) -> Fraction:
        return self.tiers[0].threshold_hours


def tier_for(table: RateTable, duration_hours: Hours) -> HourlyTier:
    """Return the highest tier whose threshold is <= ``duration_hours``."""
    if duration_hours < table.minimum_hours:
        raise BelowMinimumStayError(Fraction(duration_hours), table.minimum_hours)

    selected = table.minimum_tier
    for tier in table.tiers:
        if tier.threshold_hours > duration_hours:
            break
        selected = tier
    return selected


def base_price(table: RateTable, duration_hours: Hours) -> Money:
    """Flat price for a stay of ``duration_hours``.

    Raises:
        BelowMinimumStayError: If the stay is shorter than the minimum tier.
    """
    return tier_for(table, duration_hours).price_per_booking


def extra_guest_charge(table: RateTable, guests: int, duration_hours: Hours) -> Money:
    """Charge for guests beyond ``included_guests``, per hour, rounded once."""
    extra_guests = max(0, guests - table.included_guests)
    if extra_guests == 0:
        return Money.zero(table.currency)
    return table.extra_guest_charge_per_hour.multiply(extra_guests * Fraction(duration_hours))
