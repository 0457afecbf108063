"""Tests for UK financial-period mapping and journal metadata."""

import pytest

from payroll_kernel.domain.journal import JournalType
from payroll_kernel.domain.periods import (
    build_journal_meta,
    financial_period,
    financial_year,
    month_number,
)
from payroll_kernel.exceptions import InvalidMonthError


class TestFinancialPeriod:
    """April is period 01, March is period 12."""

    @pytest.mark.parametrize(
        "month, period",
        [
            ("April", "01"),
            ("May", "02"),
            ("June", "03"),
            ("December", "09"),
            ("January", "10"),
            ("March", "12"),
        ],
    )
    def test_month_names(self, month, period):
        assert financial_period(month) == period

    @pytest.mark.parametrize("month", ["sept", "Sep", "SEPTEMBER", " september ", "9", 9])
    def test_spellings_of_september(self, month):
        assert financial_period(month) == "06"

    @pytest.mark.parametrize("month", ["", "Smarch", "13", 0, 13])
    def test_invalid_month_raises(self, month):
        with pytest.raises(InvalidMonthError) as exc_info:
            month_number(month)
        assert exc_info.value.code == "INVALID_MONTH"


class TestFinancialYear:

    def test_april_onwards_is_same_year(self):
        assert financial_year("April", 2025) == 2025
        assert financial_year("December", 2025) == 2025

    def test_january_to_march_belong_to_previous_year(self):
        assert financial_year("January", 2026) == 2025
        assert financial_year("March", 2026) == 2025


class TestBuildJournalMeta:
    """Per-run display metadata."""

    def test_hourly_june(self):
        meta = build_journal_meta(
            JournalType.HOURLY, "June", 2025, label="Hourly Payroll", journal="PAYHR"
        )
        assert meta.period == "03"
        assert meta.period_label == "P03"
        assert meta.financial_year == 2025
        assert meta.date == "30/06/2025"
        assert meta.description == "P03 2025 Hourly Payroll"
        assert meta.memo == "June 2025 Hourly Payroll"
        assert meta.document == "PAYHR-202506"
        assert meta.yyyymm == "202506"
        assert meta.reverse_date == ""

    def test_february_leap_year_last_day(self):
        meta = build_journal_meta(JournalType.SALARIED, "Feb", 2024)
        assert meta.date == "29/02/2024"
        assert meta.financial_year == 2023
        assert meta.period == "11"

    def test_accrual_reverses_first_of_next_month(self):
        meta = build_journal_meta(JournalType.HOURLY_ACCRUAL, "June", 2025, reverses=True)
        assert meta.reverse_date == "01/07/2025"

    def test_december_accrual_reverses_into_next_year(self):
        meta = build_journal_meta(
            JournalType.HOURLY_ACCRUAL, "December", 2025, reverses=True
        )
        assert meta.reverse_date == "01/01/2026"

    def test_invalid_month_raises(self):
        with pytest.raises(InvalidMonthError):
            build_journal_meta(JournalType.HOURLY, "Juno", 2025)
