"""
Levy inputs -- turn Employer NI rows into allocation entries.

Each source row becomes one ``AllocationEntry``: its location and
department are resolved through the run's code maps and its Employer NI
figure is the driver. Driver validation (non-numeric, zero, negative)
is left to the allocator, which skips and logs such entries.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from payroll_engines.derivation.context import DerivationContext
from payroll_engines.derivation.fields import (
    DEPARTMENT_FIELDS,
    DRIVER_FIELDS,
    LEVY_FIELDS,
    LOCATION_FIELDS,
    field_value,
    find_field,
)
from payroll_kernel.domain.journal import AllocationEntry, RawRow
from payroll_kernel.domain.values import ZERO, parse_decimal


def allocation_entries(
    rows: Sequence[RawRow], context: DerivationContext
) -> list[AllocationEntry]:
    entries: list[AllocationEntry] = []
    for row_number, row in enumerate(rows, start=1):
        location_label = field_value(row, LOCATION_FIELDS)
        department_label = field_value(row, DEPARTMENT_FIELDS)
        entries.append(
            AllocationEntry(
                location_id=context.resolve_location(
                    location_label, row_number=row_number
                ),
                dept_id=(
                    context.resolve_department(department_label, row_number=row_number)
                    if department_label
                    else ""
                ),
                driver_value=field_value(row, DRIVER_FIELDS),
                label=location_label,
            )
        )
    return entries


def levy_total_from_rows(rows: Sequence[RawRow]) -> Decimal | None:
    """
    Sum the numeric cells of the levy column.

    Returns None when no levy cell holds a number (column absent, blank
    or text), so the caller can tell "no levy figure" apart from a
    stated levy of zero.
    """
    total = ZERO
    found = False
    for row in rows:
        if find_field(row, LEVY_FIELDS) is None:
            continue
        amount = parse_decimal(field_value(row, LEVY_FIELDS))
        if amount is not None:
            total += amount
            found = True
    return total if found else None
