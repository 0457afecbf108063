"""
Pure domain layer.

Immutable data types and pure functions with no I/O and no clock access
(except the ``SystemClock`` boundary).
"""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.journal import (
    JOURNAL_FIELDS,
    AllocationEntry,
    CodeMap,
    JournalLine,
    JournalMeta,
    JournalType,
    LineSide,
    RawRow,
)
from payroll_kernel.domain.outcome import Derived, Fatal, Recovered, RowResult
from payroll_kernel.domain.periods import (
    build_journal_meta,
    financial_period,
    financial_year,
    month_number,
)
from payroll_kernel.domain.values import format_amount, parse_decimal, round_money

__all__ = [
    "JOURNAL_FIELDS",
    "AllocationEntry",
    "Clock",
    "CodeMap",
    "DeterministicClock",
    "Derived",
    "Fatal",
    "JournalLine",
    "JournalMeta",
    "JournalType",
    "LineSide",
    "RawRow",
    "Recovered",
    "RowResult",
    "SystemClock",
    "build_journal_meta",
    "financial_period",
    "financial_year",
    "format_amount",
    "month_number",
    "parse_decimal",
    "round_money",
]
