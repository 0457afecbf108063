"""
Values -- Decimal parsing and rounding for payroll amounts.

Responsibility:
    Converts raw text cells into ``Decimal`` and rounds monetary amounts
    to pence. Every amount in the engine flows through these helpers so
    floats never enter a journal.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Failure modes:
    - ``parse_decimal`` returns None for blank or non-numeric text; it
      never raises. Callers decide whether a missing value drops a row.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

PENNY = Decimal("0.01")
ZERO = Decimal("0")

# Thousands separators and currency symbols seen in payroll exports.
_NUMERIC_NOISE = re.compile(r"[,£\s]")


def parse_decimal(value: Any) -> Decimal | None:
    """
    Parse a raw cell into a finite Decimal.

    Accepts ``Decimal``/``int``/``float``/``str``. Strips thousands
    separators and a leading pound sign; a value wrapped in brackets is
    read as negative (accounting notation).

    Postconditions:
        Returns None for None, blank, non-numeric, NaN or infinite input.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        value = repr(value)

    s = _NUMERIC_NOISE.sub("", str(value))
    if not s:
        return None
    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]
    try:
        result = Decimal(s)
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return -result if negative else result


def round_money(amount: Decimal) -> Decimal:
    """Round to two decimal places, half away from zero."""
    return amount.quantize(PENNY, rounding=ROUND_HALF_UP)


def format_amount(amount: Decimal | None) -> str:
    """Format an amount for export; None becomes an empty cell."""
    if amount is None:
        return ""
    if -amount.as_tuple().exponent <= 2:
        return str(amount.quantize(PENNY))
    return str(amount)
