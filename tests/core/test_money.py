"""
Tests for core.primitives.money — Decimal helpers.
"""

from decimal import Decimal

import pytest

from core.primitives.money import ZERO, money_sum, percentage_of, round_currency, to_money


class TestToMoney:
    def test_float_goes_through_str(self):
        assert to_money(25.5) == Decimal("25.5")
        assert to_money(0.1) == Decimal("0.1")

    def test_accepts_str_int_decimal(self):
        assert to_money("10.00") == Decimal("10.00")
        assert to_money(3) == Decimal("3")
        assert to_money(Decimal("1.25")) == Decimal("1.25")

    def test_rejects_bool(self):
        with pytest.raises(ValueError, match="Boolean"):
            to_money(True)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError, match="Invalid monetary amount"):
            to_money("ten")

    def test_rejects_non_finite(self):
        with pytest.raises(ValueError, match="finite"):
            to_money("NaN")
        with pytest.raises(ValueError, match="finite"):
            to_money(float("inf"))


class TestRounding:
    def test_half_up(self):
        assert round_currency(Decimal("2.345")) == Decimal("2.35")
        assert round_currency(Decimal("2.344")) == Decimal("2.34")
        assert round_currency(Decimal("0.005")) == Decimal("0.01")

    def test_places(self):
        assert round_currency(Decimal("2.5"), places=0) == Decimal("3")

    def test_money_sum(self):
        assert money_sum([Decimal("1.10"), Decimal("2.205")]) == Decimal("3.31")
        assert money_sum([]) == ZERO

    def test_percentage_of(self):
        assert percentage_of(Decimal("2"), Decimal("20")) == Decimal("10.00")
        assert percentage_of(Decimal("1"), Decimal("3")) == Decimal("33.33")
        assert percentage_of(Decimal("1"), ZERO) == ZERO
