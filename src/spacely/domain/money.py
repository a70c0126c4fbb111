"""Fixed-point money value type.

Amounts are held as integer minor units (cents). Every derived quantity is
rounded half-up exactly once, at the point it is produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from fractions import Fraction
from typing import Union

Scalar = Union[int, Fraction, Decimal]

_CENT = Decimal("0.01")


def round_half_up(value: Fraction) -> int:
    """Round an exact rational to the nearest integer, halves away from zero."""
    if value < 0:
        return -round_half_up(-value)
    return (2 * value.numerator + value.denominator) // (2 * value.denominator)


def _as_fraction(value: Scalar) -> Fraction:
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"unsupported scalar type: {type(value).__name__}")
    if isinstance(value, (int, Fraction, Decimal)):
        return Fraction(value)
    raise TypeError(f"unsupported scalar type: {type(value).__name__}")


@dataclass(frozen=True, order=False)
class Money:
    amount_cents: int
    currency: str = "USD"

    def __post_init__(self) -> None:
        if isinstance(self.amount_cents, bool) or not isinstance(self.amount_cents, int):
            raise TypeError("amount_cents must be an int")
        if not self.currency or len(self.currency) != 3:
            raise ValueError(f"invalid currency code: {self.currency!r}")
        object.__setattr__(self, "currency", self.currency.upper())

    # ── Constructors ──────────────────────────────────────

    @classmethod
    def zero(cls, currency: str = "USD") -> Money:
        return cls(0, currency)

    @classmethod
    def from_decimal(cls, value: Decimal | str | int, currency: str = "USD") -> Money:
        """Build Money from a major-unit decimal ("12.50" -> 1250 cents).

        Sub-cent input is rounded half-up. Floats are rejected; pass
        ``Decimal(str(x))`` when the source is a JSON number.
        """
        if isinstance(value, float):
            raise TypeError("floats are not accepted as money, use Decimal or str")
        try:
            dec = Decimal(value)
        except InvalidOperation as exc:
            raise ValueError(f"invalid money amount: {value!r}") from exc
        if not dec.is_finite():
            raise ValueError(f"invalid money amount: {value!r}")
        cents = (dec.quantize(_CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value()
        return cls(int(cents), currency)

    # ── Arithmetic ────────────────────────────────────────

    def _check(self, other: Money) -> None:
        if not isinstance(other, Money):
            raise TypeError(f"expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise ValueError(f"currency mismatch: {self.currency} vs {other.currency}")

    def __add__(self, other: Money) -> Money:
        self._check(other)
        return Money(self.amount_cents + other.amount_cents, self.currency)

    def __sub__(self, other: Money) -> Money:
        self._check(other)
        return Money(self.amount_cents - other.amount_cents, self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount_cents, self.currency)

    def multiply(self, factor: Scalar) -> Money:
        """Multiply by an exact scalar, rounding the product once."""
        exact = Fraction(self.amount_cents) * _as_fraction(factor)
        return Money(round_half_up(exact), self.currency)

    def __mul__(self, factor: Scalar) -> Money:
        return self.multiply(factor)

    __rmul__ = __mul__

    def percentage(self, percent: Scalar) -> Money:
        """Return ``percent``% of this amount (e.g. ``percentage(15)``)."""
        return self.multiply(_as_fraction(percent) / 100)

    # ── Comparison ────────────────────────────────────────

    def __lt__(self, other: Money) -> bool:
        self._check(other)
        return self.amount_cents < other.amount_cents

    def __le__(self, other: Money) -> bool:
        self._check(other)
        return self.amount_cents <= other.amount_cents

    def __gt__(self, other: Money) -> bool:
        self._check(other)
        return self.amount_cents > other.amount_cents

    def __ge__(self, other: Money) -> bool:
        self._check(other)
        return self.amount_cents >= other.amount_cents

    def is_zero(self) -> bool:
        return self.amount_cents == 0

    def is_negative(self) -> bool:
        return self.amount_cents < 0

    # ── Rendering ─────────────────────────────────────────

    def to_decimal(self) -> Decimal:
        return Decimal(self.amount_cents).scaleb(-2).quantize(_CENT)

    def to_decimal_string(self) -> str:
        """Fixed-point string for the wire, e.g. ``"70.00"``."""
        return format(self.to_decimal(), "f")

    def __str__(self) -> str:
        return f"{self.to_decimal_string()} {self.currency}"
