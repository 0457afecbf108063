"""
Tests for the journal assembler and balance validator.

Covers:
- Noise and placeholder filtering
- Dense LINE_NO sequencing
- DESCRIPTION fill-down
- Metadata stamping and export rows
- Balance tolerance: warning, never an exception
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from payroll_engines.assembler import (
    assemble,
    check_balance,
    fill_down_descriptions,
)
from payroll_kernel.domain.journal import JOURNAL_FIELDS, JournalLine, LineSide


def _debit(amount, **kwargs):
    return JournalLine.of(LineSide.DEBIT, Decimal(amount), **kwargs)


def _credit(amount, **kwargs):
    return JournalLine.of(LineSide.CREDIT, Decimal(amount), **kwargs)


class TestFillDown:

    def test_description_carries_forward(self):
        lines = [
            _debit("1", description="P03 2025"),
            _debit("1", description=None),
            _debit("1", description=None),
        ]
        filled = fill_down_descriptions(lines)
        assert [line.description for line in filled] == ["P03 2025"] * 3

    def test_new_value_replaces_carried_value(self):
        lines = [
            _debit("1", description="A"),
            _debit("1"),
            _debit("1", description="B"),
            _debit("1"),
        ]
        assert [line.description for line in fill_down_descriptions(lines)] == [
            "A",
            "A",
            "B",
            "B",
        ]

    def test_seed_used_before_first_value(self):
        filled = fill_down_descriptions([_debit("1"), _debit("1", description="X")], seed="P03")
        assert [line.description for line in filled] == ["P03", "X"]


class TestAssemble:

    def test_line_numbers_dense_from_one(self, june_meta):
        lines = [
            replace(_debit("10", memo="a"), line_no=7),
            JournalLine(memo="placeholder"),
            replace(_credit("10", memo="b"), line_no=3),
        ]
        journal = assemble(lines, june_meta)
        assert [line.line_no for line in journal.lines] == [1, 2]
        assert journal.dropped_placeholders == 1

    def test_noise_memos_dropped(self, june_meta):
        lines = [
            _debit("10", memo="Basic Pay"),
            _debit("5", memo="Tips Paid Via Tronc June"),
            _credit("10", memo="Net Pay"),
        ]
        journal = assemble(lines, june_meta, noise_memo_prefixes=("Tips Paid Via Tronc",))
        assert [line.memo for line in journal.lines] == ["Basic Pay", "Net Pay"]
        assert journal.dropped_noise == 1
        assert journal.balance.is_balanced

    def test_description_seeded_from_meta(self, june_meta):
        journal = assemble([_debit("1"), _credit("1")], june_meta)
        assert {line.description for line in journal.lines} == {"P03 2025 Hourly Payroll"}

    def test_metadata_stamped(self, june_meta):
        journal = assemble([_debit("1", memo=""), _credit("1", memo="Net Pay")], june_meta)
        first, second = journal.lines
        assert first.date == "30/06/2025"
        assert first.journal == "PAYHR"
        assert first.document == "PAYHR-202506"
        assert first.memo == "June 2025 Hourly Payroll"
        assert second.memo == "Net Pay"

    def test_export_rows_in_column_order(self, june_meta):
        journal = assemble([_debit("125"), _credit("125")], june_meta)
        rows = journal.export_rows()
        assert tuple(rows[0]) == JOURNAL_FIELDS
        assert rows[0]["LINE_NO"] == "1"
        assert rows[0]["DEBIT"] == "125.00"
        assert rows[0]["CREDIT"] == ""
        assert rows[1]["CREDIT"] == "125.00"

    def test_empty_input(self, june_meta):
        journal = assemble([], june_meta)
        assert journal.line_count == 0
        assert journal.balance.is_balanced


class TestBalance:

    def test_within_tolerance_is_balanced(self, captured_logs):
        check = check_balance([_debit("100.00"), _credit("99.98")])
        assert check.difference == Decimal("0.02")
        assert check.is_balanced
        assert any(r["message"] == "journal_balanced" for r in captured_logs())

    def test_over_tolerance_warns_without_raising(self, june_meta, captured_logs):
        journal = assemble([_debit("100.00"), _credit("99.97")], june_meta)
        assert not journal.balance.is_balanced
        assert journal.line_count == 2
        warnings = [r for r in captured_logs() if r["message"] == "journal_unbalanced"]
        assert warnings[0]["level"] == "WARNING"
        assert warnings[0]["difference"] == "0.03"

    def test_credit_heavy_difference_is_negative(self):
        check = check_balance([_debit("10"), _credit("10.50")])
        assert check.difference == Decimal("-0.50")
        assert not check.is_balanced

    @pytest.mark.parametrize("tolerance, balanced", [("0.00", False), ("0.05", True)])
    def test_tolerance_is_configurable(self, june_meta, tolerance, balanced):
        journal = assemble(
            [_debit("100.00"), _credit("99.97")], june_meta, tolerance=Decimal(tolerance)
        )
        assert journal.balance.is_balanced is balanced
