"""
Periods -- UK financial-period mapping and journal metadata.

The financial year starts in April: April is period 01 and March is
period 12. Months January to March belong to the financial year that
started the previous calendar year.
"""

from __future__ import annotations

import calendar

from payroll_kernel.domain.journal import JournalMeta, JournalType
from payroll_kernel.exceptions import InvalidMonthError

FINANCIAL_YEAR_START_MONTH = 4

_MONTH_NUMBERS: dict[str, int] = {}
for _number in range(1, 13):
    _MONTH_NUMBERS[calendar.month_name[_number].lower()] = _number
    _MONTH_NUMBERS[calendar.month_abbr[_number].lower()] = _number
_MONTH_NUMBERS["sept"] = 9


def month_number(month: str | int) -> int:
    """Calendar month number for a month name, abbreviation or number."""
    if isinstance(month, int):
        if 1 <= month <= 12:
            return month
        raise InvalidMonthError(str(month))
    key = (month or "").strip().lower()
    if key.isdigit() and 1 <= int(key) <= 12:
        return int(key)
    try:
        return _MONTH_NUMBERS[key]
    except KeyError:
        raise InvalidMonthError(month) from None


def financial_period(month: str | int) -> str:
    """Two-digit UK financial period: April -> "01" ... March -> "12"."""
    number = month_number(month)
    return f"{(number - FINANCIAL_YEAR_START_MONTH) % 12 + 1:02d}"


def financial_year(month: str | int, year: int) -> int:
    """Calendar year in which the month's financial year began."""
    if month_number(month) >= FINANCIAL_YEAR_START_MONTH:
        return year
    return year - 1


def build_journal_meta(
    journal_type: JournalType,
    month: str | int,
    year: int,
    *,
    label: str = "",
    journal: str = "",
    source_entity: str = "",
    reverses: bool = False,
) -> JournalMeta:
    """
    Compute the per-run display metadata.

    ``date`` is the last day of the target month (dd/mm/yyyy). When
    ``reverses`` is set the reverse date is the first day of the
    following month, for accruals.
    """
    number = month_number(month)
    period = financial_period(number)
    fy = financial_year(number, year)
    last_day = calendar.monthrange(year, number)[1]
    month_name = calendar.month_name[number]

    reverse_date = ""
    if reverses:
        next_month, next_year = (1, year + 1) if number == 12 else (number + 1, year)
        reverse_date = f"01/{next_month:02d}/{next_year}"

    description = f"P{period} {fy}"
    if label:
        description = f"{description} {label}"
    document = f"{year}{number:02d}"
    if journal:
        document = f"{journal}-{document}"

    return JournalMeta(
        journal_type=journal_type,
        month=month_name,
        year=year,
        period=period,
        financial_year=fy,
        date=f"{last_day:02d}/{number:02d}/{year}",
        description=description,
        memo=f"{month_name} {year} {label}".strip(),
        journal=journal,
        document=document,
        reverse_date=reverse_date,
        source_entity=source_entity,
        month_index=number,
    )
