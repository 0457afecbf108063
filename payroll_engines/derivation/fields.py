"""
Source-row field access with fallback column names.

Payroll exports are produced by several tools and hand-edited
spreadsheets, so the same value arrives under different headers
("Hours Worked " with a trailing space, "Hours Worked", "Hours").
Each logical field lists its accepted headers in preference order.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from payroll_kernel.domain.journal import LineSide, RawRow
from payroll_kernel.domain.outcome import Recovered
from payroll_kernel.domain.values import parse_decimal, round_money

ACCOUNT_FIELDS = ("ACCT_NO", "Account", "Account Code", "GL Code")
LOCATION_FIELDS = ("LOCATION_ID", "Location", "Location Name", "Site")
DEPARTMENT_FIELDS = ("DEPT_ID", "Department", "Department Name", "Dept")
MEMO_FIELDS = ("MEMO", "Memo", "Pay Element")
DESCRIPTION_FIELDS = ("DESCRIPTION", "Description")
SIDE_FIELDS = ("Dr/Cr", "Side", "Debit/Credit")

HOURS_FIELDS = ("Hours Worked ", "Hours Worked", "Hours")
RATE_FIELDS = ("Rate of Pay Per Hour", "Rate of Pay Per Hour ", "Hourly Rate", "Rate")
AMOUNT_FIELDS = ("Amount", "Monthly Pay", "Gross Pay")

FROM_LOCATION_FIELDS = ("From Location", "Charge From Location", "From Site")
TO_LOCATION_FIELDS = ("To Location", "Charge To Location", "To Site")
FROM_DEPARTMENT_FIELDS = ("From Department", "Charge From Department", "From Dept")
TO_DEPARTMENT_FIELDS = ("To Department", "Charge To Department", "To Dept")

DRIVER_FIELDS = ("Employer NI", "Employers NI", "Employer's NI", "ER NI")
LEVY_FIELDS = ("Apprenticeship Levy", "AP Levy", "Levy")

_CREDIT_MARKERS = frozenset({"c", "cr", "credit"})


def find_field(row: RawRow, names: tuple[str, ...]) -> str | None:
    """First header from ``names`` present in ``row`` (exact, then stripped)."""
    for name in names:
        if name in row:
            return name
    stripped = {str(k).strip(): k for k in row}
    for name in names:
        key = stripped.get(name.strip())
        if key is not None:
            return key
    return None


def field_value(row: RawRow, names: tuple[str, ...]) -> str:
    """Cell text for the first present header, stripped; "" when absent."""
    key = find_field(row, names)
    if key is None:
        return ""
    value = row.get(key)
    return "" if value is None else str(value).strip()


def parse_side(row: RawRow) -> LineSide:
    """Read the Dr/Cr indicator; anything but a credit marker is a debit."""
    marker = field_value(row, SIDE_FIELDS).lower()
    return LineSide.CREDIT if marker in _CREDIT_MARKERS else LineSide.DEBIT


def _check_positive(amount: Decimal, details: dict[str, Any]) -> Decimal | Recovered:
    if amount <= 0:
        return Recovered("non_positive_amount", (), {**details, "amount": str(amount)})
    return amount


def hours_times_rate(row: RawRow) -> Decimal | Recovered:
    """
    Amount = hours x rate, rounded to pence.

    Returns a ``Recovered`` drop reason when either input is missing or
    non-numeric, or when the amount is not positive.
    """
    hours_raw = field_value(row, HOURS_FIELDS)
    rate_raw = field_value(row, RATE_FIELDS)
    hours = parse_decimal(hours_raw)
    rate = parse_decimal(rate_raw)
    details = {"hours": hours_raw, "rate": rate_raw}
    if hours is None or rate is None:
        return Recovered("non_numeric_amount", (), details)
    return _check_positive(round_money(hours * rate), details)


def stated_amount(row: RawRow) -> Decimal | Recovered:
    """
    Amount from an explicit amount column, else hours x rate.

    Salaried exports carry the monthly figure directly; some carry
    contracted hours and an hourly equivalent instead.
    """
    key = find_field(row, AMOUNT_FIELDS)
    if key is None or not str(row.get(key) or "").strip():
        return hours_times_rate(row)
    raw = str(row.get(key)).strip()
    amount = parse_decimal(raw)
    if amount is None:
        return Recovered("non_numeric_amount", (), {"amount": raw})
    return _check_positive(round_money(amount), {"amount_column": key})
