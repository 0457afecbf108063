"""
Module: payroll_engines.allocation
Responsibility:
    Spread one lump-sum cost (the apprenticeship levy) across cost
    centers in proportion to each center's share of a driver total
    (employer NI contributions).

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Each allocation is total x driver / driver_total, rounded to pence
      independently (ROUND_HALF_UP). There is no penny redistribution:
      |sum(allocations) - total| <= N x 0.005 and the drift is reported on
      the result for the balance validator to surface.
    - Output order: one CREDIT line for the full total (unrounded),
      then one DEBIT line per included entry, in input order.
    - Entries with a non-numeric or non-positive driver are excluded from
      both the driver total and the output, and logged.

Failure modes:
    - ZeroDriverTotalError when no entry has a positive driver.
    - ValueError when the total itself is not numeric.

Usage:
    from payroll_engines.allocation import allocate

    result = allocate(
        total_amount=Decimal("1000.00"),
        entries=entries,
        credit_account="2250",
        debit_account="6215",
    )
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.journal import AllocationEntry, JournalLine, LineSide
from payroll_kernel.domain.values import ZERO, parse_decimal, round_money
from payroll_kernel.exceptions import ZeroDriverTotalError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


@dataclass(frozen=True)
class AllocationShare:
    """One entry's rounded share of the total."""

    entry: AllocationEntry
    driver: Decimal
    amount: Decimal


@dataclass(frozen=True)
class AllocationResult:
    """
    Complete allocation result.

    Guarantees:
        - ``lines[0]`` is the CREDIT for ``total_amount``.
        - ``rounding_drift == allocated_total - total_amount``.
    """

    total_amount: Decimal
    driver_total: Decimal
    shares: tuple[AllocationShare, ...]
    skipped: tuple[AllocationEntry, ...]
    lines: tuple[JournalLine, ...]

    @property
    def allocated_total(self) -> Decimal:
        return sum((share.amount for share in self.shares), ZERO)

    @property
    def rounding_drift(self) -> Decimal:
        return self.allocated_total - self.total_amount


@traced_engine("allocation", "1.0", fingerprint_fields=("total_amount", "credit_account", "debit_account"))
def allocate(
    *,
    total_amount: Any,
    entries: Sequence[AllocationEntry],
    credit_account: str,
    debit_account: str,
    memo: str = "",
    credit_location: str = "",
    credit_department: str = "",
) -> AllocationResult:
    """
    Allocate ``total_amount`` across ``entries`` by driver value.

    Args:
        total_amount: Lump sum to spread (Decimal or numeric text).
        entries: Cost centers with their raw driver values.
        credit_account: Account credited with the full total.
        debit_account: Account debited per cost center.
        memo: Memo stamped on every line.
        credit_location: Location for the credit line.
        credit_department: Department for the credit line.

    Returns:
        AllocationResult with lines and diagnostics.
    """
    t0 = time.monotonic()
    total = parse_decimal(total_amount)
    if total is None:
        raise ValueError(f"total_amount is not numeric: {total_amount!r}")

    included: list[tuple[AllocationEntry, Decimal]] = []
    skipped: list[AllocationEntry] = []
    for entry in entries:
        driver = parse_decimal(entry.driver_value)
        if driver is None or driver <= 0:
            skipped.append(entry)
            logger.warning(
                "allocation_entry_skipped",
                extra={
                    "label": entry.label,
                    "location_id": entry.location_id,
                    "dept_id": entry.dept_id,
                    "driver_value": str(entry.driver_value),
                    "reason": "non_numeric_driver" if driver is None else "non_positive_driver",
                },
            )
            continue
        included.append((entry, driver))

    driver_total = sum((driver for _, driver in included), ZERO)
    if driver_total == 0:
        logger.error(
            "allocation_zero_driver_total",
            extra={"total_amount": str(total), "entry_count": len(entries)},
        )
        raise ZeroDriverTotalError(str(total), len(entries), len(skipped))

    logger.info(
        "allocation_started",
        extra={
            "total_amount": str(total),
            "driver_total": str(driver_total),
            "entry_count": len(included),
            "skipped_count": len(skipped),
        },
    )

    shares = tuple(
        AllocationShare(entry, driver, round_money(total * (driver / driver_total)))
        for entry, driver in included
    )

    lines: list[JournalLine] = [
        JournalLine.of(
            LineSide.CREDIT,
            total,
            acct_no=credit_account,
            location_id=credit_location,
            dept_id=credit_department,
            memo=memo,
        )
    ]
    lines.extend(
        JournalLine.of(
            LineSide.DEBIT,
            share.amount,
            acct_no=debit_account,
            location_id=share.entry.location_id,
            dept_id=share.entry.dept_id,
            memo=memo,
        )
        for share in shares
    )

    result = AllocationResult(
        total_amount=total,
        driver_total=driver_total,
        shares=shares,
        skipped=tuple(skipped),
        lines=tuple(lines),
    )
    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info(
        "allocation_completed",
        extra={
            "total_amount": str(total),
            "allocated_total": str(result.allocated_total),
            "rounding_drift": str(result.rounding_drift),
            "line_count": len(lines),
            "duration_ms": duration_ms,
        },
    )
    return result
