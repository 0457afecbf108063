"""Tests for Decimal parsing, rounding and export formatting."""

from decimal import Decimal

import pytest

from payroll_kernel.domain.values import format_amount, parse_decimal, round_money


class TestParseDecimal:
    """Raw cells -> Decimal or None, never raising."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("12.5", Decimal("12.5")),
            ("  10 ", Decimal("10")),
            ("£1,234.56", Decimal("1234.56")),
            ("(12.50)", Decimal("-12.50")),
            ("-3", Decimal("-3")),
            (7, Decimal("7")),
            (Decimal("0.01"), Decimal("0.01")),
        ],
    )
    def test_numeric_inputs(self, raw, expected):
        assert parse_decimal(raw) == expected

    def test_float_goes_through_repr(self):
        """0.1 must not become 0.1000000000000000055511151231257827."""
        assert parse_decimal(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "12..5", "NaN", "Infinity", True])
    def test_unusable_inputs_return_none(self, raw):
        assert parse_decimal(raw) is None


class TestRoundMoney:
    """Half away from zero, to pence."""

    def test_half_up(self):
        assert round_money(Decimal("0.005")) == Decimal("0.01")
        assert round_money(Decimal("2.675")) == Decimal("2.68")

    def test_negative_half_rounds_away_from_zero(self):
        assert round_money(Decimal("-0.005")) == Decimal("-0.01")

    def test_already_rounded_unchanged(self):
        assert round_money(Decimal("125.00")) == Decimal("125.00")


class TestFormatAmount:
    """Export text for DEBIT/CREDIT cells."""

    def test_none_is_blank(self):
        assert format_amount(None) == ""

    def test_integer_padded_to_pence(self):
        assert format_amount(Decimal("125")) == "125.00"

    def test_one_decimal_padded(self):
        assert format_amount(Decimal("12.5")) == "12.50"

    def test_extra_precision_kept(self):
        assert format_amount(Decimal("1.005")) == "1.005"
