"""
Journal domain types.

Responsibility:
    Immutable records flowing through the engine: the canonical
    ``JournalLine`` export record, the per-run ``JournalMeta``, the
    levy ``AllocationEntry`` and the ``JournalType`` identifiers.

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Invariants enforced:
    - ``JOURNAL_FIELDS`` is the one and only export column order.
    - Amounts are ``Decimal``; a line is a placeholder when neither side
      is populated and is filtered before output.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum
from typing import Any

from payroll_kernel.domain.values import format_amount

# Source-file column name -> raw cell text.
RawRow = Mapping[str, Any]

# Canonical lowercase key -> canonical code.
CodeMap = dict[str, str]

JOURNAL_FIELDS: tuple[str, ...] = (
    "DONOTIMPORT",
    "LINE_NO",
    "DOCUMENT",
    "JOURNAL",
    "DATE",
    "REVERSEDATE",
    "DESCRIPTION",
    "ACCT_NO",
    "LOCATION_ID",
    "DEPT_ID",
    "MEMO",
    "DEBIT",
    "CREDIT",
    "SOURCEENTITY",
)


class JournalType(str, Enum):
    """Journal-type identifiers accepted by the dispatcher."""

    INVESTMENT = "investment"
    HOURLY = "hourly"
    SALARIED = "salaried"
    HOURLY_ACCRUAL = "hourlyAccrual"
    CROSS_CHARGE = "crossCharge"
    AP_LEVY = "apLevy"
    PT_CLASSES = "ptClasses"

    @classmethod
    def identifiers(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)


class LineSide(str, Enum):
    """Which amount column a line populates."""

    DEBIT = "debit"
    CREDIT = "credit"


@dataclass(frozen=True)
class JournalLine:
    """
    One general-ledger import line.

    Contract:
        Attribute order matches ``JOURNAL_FIELDS``; ``as_export_row``
        produces the uppercase column mapping in that order.
    Guarantees:
        - Derivation and allocation only ever populate one of
          ``debit``/``credit``.
    Non-goals:
        - Does not validate that ``acct_no`` exists in any ledger.
    """

    donotimport: str = ""
    line_no: int | None = None
    document: str = ""
    journal: str = ""
    date: str = ""
    reverse_date: str = ""
    description: str | None = None
    acct_no: str = ""
    location_id: str = ""
    dept_id: str = ""
    memo: str = ""
    debit: Decimal | None = None
    credit: Decimal | None = None
    source_entity: str = ""

    @classmethod
    def of(
        cls,
        side: LineSide,
        amount: Decimal,
        **kwargs: Any,
    ) -> JournalLine:
        """Build a line carrying ``amount`` on ``side``."""
        if side is LineSide.DEBIT:
            return cls(debit=amount, credit=None, **kwargs)
        return cls(debit=None, credit=amount, **kwargs)

    @property
    def side(self) -> LineSide | None:
        if self.debit is not None and self.credit is None:
            return LineSide.DEBIT
        if self.credit is not None and self.debit is None:
            return LineSide.CREDIT
        return None

    @property
    def is_placeholder(self) -> bool:
        """True when neither amount column is populated."""
        return self.debit is None and self.credit is None

    @property
    def amount(self) -> Decimal | None:
        return self.debit if self.debit is not None else self.credit

    def as_export_row(self) -> dict[str, str]:
        """Uppercase column -> cell text, in ``JOURNAL_FIELDS`` order."""
        values = [getattr(self, f.name) for f in fields(self)]
        row: dict[str, str] = {}
        for column, value in zip(JOURNAL_FIELDS, values):
            if column in ("DEBIT", "CREDIT"):
                row[column] = format_amount(value)
            elif value is None:
                row[column] = ""
            else:
                row[column] = str(value)
        return row


@dataclass(frozen=True)
class JournalMeta:
    """
    Display metadata computed once per run and stamped on every line.

    ``period`` is the two-digit UK financial period (April = "01").
    """

    journal_type: JournalType
    month: str
    year: int
    period: str
    financial_year: int
    date: str
    description: str
    memo: str
    journal: str = ""
    document: str = ""
    reverse_date: str = ""
    source_entity: str = ""
    month_index: int = 0

    @property
    def period_label(self) -> str:
        return f"P{self.period}"

    @property
    def yyyymm(self) -> str:
        """Calendar year and month, e.g. "202506"."""
        return f"{self.year}{self.month_index:02d}"


@dataclass(frozen=True)
class AllocationEntry:
    """
    One cost center's driver value for proportional allocation.

    ``driver_value`` is kept raw; the allocator decides whether it is a
    usable positive number.
    """

    location_id: str
    dept_id: str
    driver_value: Any
    label: str = ""
