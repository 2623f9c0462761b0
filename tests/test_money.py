"""Tests for cent conversion and rounding."""

from decimal import Decimal

import pytest

from bill_split.money import format_money, from_cents, percentage_of, quantize, to_cents


class TestToCents:
    """Dollar to cent conversion uses ROUND_HALF_UP."""

    @pytest.mark.parametrize(
        ("amount", "cents"),
        [
            ("0", 0),
            ("12.34", 1234),
            ("12.505", 1251),
            ("12.504", 1250),
            ("-12.505", -1251),
            ("0.005", 1),
            ("33.333", 3333),
            ("1000000.99", 100000099),
        ],
    )
    def test_conversion(self, amount, cents):
        assert to_cents(Decimal(amount)) == cents

    def test_accepts_int(self):
        assert to_cents(5) == 500


class TestFromCents:
    """Cents back to two-decimal Decimals."""

    def test_positive(self):
        assert str(from_cents(3334)) == "33.34"

    def test_negative(self):
        assert str(from_cents(-1)) == "-0.01"

    def test_zero_has_two_places(self):
        assert str(from_cents(0)) == "0.00"


class TestQuantize:
    def test_half_up(self):
        assert quantize(Decimal("2.675")) == Decimal("2.68")

    def test_pads(self):
        assert str(quantize(Decimal("5"))) == "5.00"


class TestPercentageOf:
    def test_share(self):
        assert percentage_of(Decimal("33.34"), Decimal("100")) == Decimal("33.34")

    def test_zero_whole(self):
        assert percentage_of(Decimal("0"), Decimal("0")) == Decimal("0")


class TestFormatMoney:
    """Accounting-style formatting."""

    def test_positive(self):
        assert format_money(Decimal("1234.5")) == "$1,234.50"

    def test_negative(self):
        assert format_money(Decimal("-85.02")) == "($85.02)"

    def test_color_markup(self):
        assert format_money(Decimal("12.5"), use_color=True) == "[green]$12.50[/green]"

    def test_negative_color_markup(self):
        assert format_money(Decimal("-3"), use_color=True) == "($[red]3.00[/red])"
