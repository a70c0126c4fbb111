"""Duration and guest modifiers (discounts and surcharges).

Each rule is evaluated on its own against (duration, guests). Percentage
amounts are always taken from the base price, so the totals do not depend on
the order the rules are listed in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from fractions import Fraction
from typing import Literal, Sequence, Union

from .errors import DiscountClampedWarning
from .money import Money
from .rate_table import RateTable
from .time_window import TimeWindow

ModifierType = Literal["duration_discount", "guest_discount", "guest_surcharge"]


@dataclass(frozen=True)
class Percentage:
    percent: Decimal

    def __post_init__(self) -> None:
        if isinstance(self.percent, float):
            raise TypeError("percent must be Decimal, int or str")
        value = Decimal(self.percent)
        if value < 0 or value > 100:
            raise ValueError("percent must be between 0 and 100")
        object.__setattr__(self, "percent", value)

    def of(self, base: Money) -> Money:
        return base.percentage(self.percent)


@dataclass(frozen=True)
class FixedAmount:
    amount: Money

    def __post_init__(self) -> None:
        if self.amount.is_negative():
            raise ValueError("fixed modifier amount must be >= 0")

    def of(self, base: Money) -> Money:
        return self.amount


ModifierAmount = Union[Percentage, FixedAmount]


def _check_band(low, high, label: str) -> None:
    if low < 0:
        raise ValueError(f"min_{label} must be >= 0")
    if high is not None and high < low:
        raise ValueError(f"max_{label} must be >= min_{label}")


@dataclass(frozen=True)
class DurationDiscount:
    id: str
    amount: ModifierAmount
    min_hours: Fraction
    max_hours: Fraction | None = None
    name: str = ""
    is_active: bool = True

    type = "duration_discount"

    def __post_init__(self) -> None:
        object.__setattr__(self, "min_hours", Fraction(self.min_hours))
        if self.max_hours is not None:
            object.__setattr__(self, "max_hours", Fraction(self.max_hours))
        _check_band(self.min_hours, self.max_hours, "hours")

    def fires(self, duration_hours: Fraction, guests: int) -> bool:
        if duration_hours < self.min_hours:
            return False
        return self.max_hours is None or duration_hours <= self.max_hours


@dataclass(frozen=True)
class _GuestBand:
    id: str
    amount: ModifierAmount
    min_guests: int
    max_guests: int | None = None
    name: str = ""
    is_active: bool = True

    def __post_init__(self) -> None:
        _check_band(self.min_guests, self.max_guests, "guests")

    def fires(self, duration_hours: Fraction, guests: int) -> bool:
        if guests < self.min_guests:
            return False
        return self.max_guests is None or guests <= self.max_guests


@dataclass(frozen=True)
class GuestDiscount(_GuestBand):
    type = "guest_discount"


@dataclass(frozen=True)
class GuestSurcharge(_GuestBand):
    type = "guest_surcharge"


ModifierRule = Union[DurationDiscount, GuestDiscount, GuestSurcharge]


def is_discount(rule: ModifierRule) -> bool:
    if isinstance(rule, (DurationDiscount, GuestDiscount)):
        return True
    if isinstance(rule, GuestSurcharge):
        return False
    raise TypeError(f"unknown modifier rule: {type(rule).__name__}")


@dataclass(frozen=True)
class AppliedModifier:
    id: str
    name: str
    type: ModifierType
    amount: Money


@dataclass(frozen=True)
class ModifierResult:
    total_discounts: Money
    total_surcharges: Money
    applied: tuple[AppliedModifier, ...] = ()
    clamp: DiscountClampedWarning | None = field(default=None, compare=False)

    @property
    def clamped(self) -> bool:
        return self.clamp is not None


def apply(
    table: RateTable,
    window: TimeWindow,
    guests: int,
    rules: Sequence[ModifierRule],
    base_price: Money,
    extra_person_charge: Money | None = None,
    increment_minutes: int = 60,
) -> ModifierResult:
    """Evaluate every active rule and total discounts and surcharges.

    Discounts are clamped so they never exceed ``base_price +
    extra_person_charge``; when that happens the result carries a
    DiscountClampedWarning instead of raising.
    """
    currency = table.currency
    duration_hours = window.duration_hours(increment_minutes)
    if extra_person_charge is None:
        extra_person_charge = Money.zero(currency)

    discounts = Money.zero(currency)
    surcharges = Money.zero(currency)
    applied: list[AppliedModifier] = []

    for rule in rules:
        if not rule.is_active or not rule.fires(duration_hours, guests):
            continue
        amount = rule.amount.of(base_price)
        if is_discount(rule):
            discounts = discounts + amount
        else:
            surcharges = surcharges + amount
        applied.append(AppliedModifier(id=rule.id, name=rule.name, type=rule.type, amount=amount))

    # Stable order for the breakdown regardless of input order.
    applied.sort(key=lambda m: (m.type, m.id))

    clamp = None
    ceiling = base_price + extra_person_charge
    if discounts > ceiling:
        clamp = DiscountClampedWarning(discounts.amount_cents, ceiling.amount_cents)
        discounts = ceiling

    return ModifierResult(
        total_discounts=discounts,
        total_surcharges=surcharges,
        applied=tuple(applied),
        clamp=clamp,
    )
