"""Tests for the Money value type."""

from decimal import Decimal
from fractions import Fraction

import pytest

from spacely.domain.money import Money, round_half_up


class TestRoundHalfUp:
    def test_rounds_half_away_from_zero(self):
        assert round_half_up(Fraction(5, 2)) == 3
        assert round_half_up(Fraction(-5, 2)) == -3

    def test_rounds_below_half_down(self):
        assert round_half_up(Fraction(249, 100)) == 2

    def test_integers_unchanged(self):
        assert round_half_up(Fraction(7)) == 7


class TestMoneyConstruction:
    def test_from_decimal_string(self):
        assert Money.from_decimal("12.50").amount_cents == 1250

    def test_from_decimal_rounds_sub_cent_half_up(self):
        assert Money.from_decimal(Decimal("0.005")).amount_cents == 1
        assert Money.from_decimal(Decimal("0.004")).amount_cents == 0

    def test_rejects_float(self):
        with pytest.raises(TypeError):
            Money.from_decimal(12.5)

    def test_rejects_float_cents(self):
        with pytest.raises(TypeError):
            Money(12.5)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            Money.from_decimal("twelve")

    def test_currency_normalized(self):
        assert Money(100, "eur").currency == "EUR"

    def test_rejects_bad_currency(self):
        with pytest.raises(ValueError):
            Money(100, "DOLLARS")


class TestMoneyArithmetic:
    def test_add_and_subtract(self):
        assert Money(500) + Money(250) == Money(750)
        assert Money(500) - Money(750) == Money(-250)

    def test_currency_mismatch(self):
        with pytest.raises(ValueError):
            Money(100, "USD") + Money(100, "EUR")

    def test_multiply_by_fraction_rounds_once(self):
        # 333 * 1/2 = 166.5 -> 167
        assert Money(333).multiply(Fraction(1, 2)) == Money(167)

    def test_multiply_rejects_float(self):
        with pytest.raises(TypeError):
            Money(100) * 1.5

    def test_percentage(self):
        assert Money(3000).percentage(50) == Money(1500)
        assert Money(999).percentage(Decimal("12.5")) == Money(125)  # 124.875

    def test_comparisons(self):
        assert Money(100) < Money(200)
        assert Money(200) >= Money(200)


class TestMoneyRendering:
    def test_decimal_string(self):
        assert Money(7000).to_decimal_string() == "70.00"
        assert Money(5).to_decimal_string() == "0.05"
        assert Money(-150).to_decimal_string() == "-1.50"

    def test_str(self):
        assert str(Money(1234, "USD")) == "12.34 USD"
