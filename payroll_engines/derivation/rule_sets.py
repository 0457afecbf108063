"""
Row derivation rule sets, one per row-by-row journal type.

Each rule set turns a single source row into journal lines:

    result = HourlyRuleSet().derive(raw_row, context, row_number=7)
    if isinstance(result, Derived):
        lines.extend(result.lines)

Rows with missing/non-numeric hours or rate, or a non-positive amount,
come back as ``Recovered`` with an empty fallback (the row is dropped and
logged). Lookup misses never drop a row: the line carries the default
code ("UNKNOWN") as a visible marker for manual correction.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from payroll_engines.derivation.context import DerivationContext
from payroll_engines.derivation.fields import (
    ACCOUNT_FIELDS,
    DEPARTMENT_FIELDS,
    DESCRIPTION_FIELDS,
    FROM_DEPARTMENT_FIELDS,
    FROM_LOCATION_FIELDS,
    LOCATION_FIELDS,
    MEMO_FIELDS,
    TO_DEPARTMENT_FIELDS,
    TO_LOCATION_FIELDS,
    field_value,
    hours_times_rate,
    parse_side,
    stated_amount,
)
from payroll_engines.derivation.rules import apply_memo_rules
from payroll_kernel.domain.journal import JournalLine, JournalType, LineSide, RawRow
from payroll_kernel.domain.outcome import Derived, Recovered, RowResult
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.derivation")


class RowRuleSet:
    """
    Standard single-line derivation.

    Contract:
        ``derive`` reads the row, computes the amount, resolves location
        and department through the fuzzy resolver, then applies the memo
        rules. Subclasses override ``amount`` and ``finalize``.
    """

    journal_type: JournalType = JournalType.HOURLY

    def amount(self, raw_row: RawRow) -> Decimal | Recovered:
        return hours_times_rate(raw_row)

    def finalize(self, line: JournalLine, context: DerivationContext) -> JournalLine:
        return line

    def derive(
        self,
        raw_row: RawRow | None,
        context: DerivationContext,
        row_number: int | None = None,
    ) -> RowResult:
        if raw_row is None:
            return self._drop(Recovered("null_row"), row_number)

        amount = self.amount(raw_row)
        if isinstance(amount, Recovered):
            return self._drop(amount, row_number)

        line = JournalLine.of(
            parse_side(raw_row),
            amount,
            acct_no=field_value(raw_row, ACCOUNT_FIELDS) or context.default_account,
            location_id=self._location(raw_row, context, row_number),
            dept_id=self._department(raw_row, context, row_number),
            memo=self._memo(raw_row, context),
            description=field_value(raw_row, DESCRIPTION_FIELDS) or None,
        )
        line, fired = apply_memo_rules(line)
        if fired:
            logger.debug(
                "memo_rules_applied",
                extra={"rules": list(fired), "memo": line.memo, "row": row_number},
            )
        return Derived((self.finalize(line, context),))

    def _location(
        self, raw_row: RawRow, context: DerivationContext, row_number: int | None
    ) -> str:
        return context.resolve_location(
            field_value(raw_row, LOCATION_FIELDS), row_number=row_number
        )

    def _department(
        self, raw_row: RawRow, context: DerivationContext, row_number: int | None
    ) -> str:
        label = field_value(raw_row, DEPARTMENT_FIELDS)
        if not label:
            return ""
        return context.resolve_department(label, row_number=row_number)

    def _memo(self, raw_row: RawRow, context: DerivationContext) -> str:
        return field_value(raw_row, MEMO_FIELDS)

    def _drop(self, recovered: Recovered, row_number: int | None) -> Recovered:
        logger.warning(
            "row_dropped",
            extra={
                "journal_type": self.journal_type.value,
                "reason": recovered.warning,
                "row": row_number,
                "details": recovered.details,
            },
        )
        return recovered


class HourlyRuleSet(RowRuleSet):
    journal_type = JournalType.HOURLY


class HourlyAccrualRuleSet(RowRuleSet):
    """Hourly rules; every line reverses on the first day of next month."""

    journal_type = JournalType.HOURLY_ACCRUAL

    def finalize(self, line: JournalLine, context: DerivationContext) -> JournalLine:
        return replace(line, reverse_date=context.meta.reverse_date)


class SalariedRuleSet(RowRuleSet):
    """Amount from the stated monthly amount when present."""

    journal_type = JournalType.SALARIED

    def amount(self, raw_row: RawRow) -> Decimal | Recovered:
        return stated_amount(raw_row)


class PtClassesRuleSet(RowRuleSet):
    """
    Personal-training class sessions.

    A blank memo becomes "Classes P<period>" so the classes department
    and location rules still apply.
    """

    journal_type = JournalType.PT_CLASSES

    def _memo(self, raw_row: RawRow, context: DerivationContext) -> str:
        return field_value(raw_row, MEMO_FIELDS) or f"Classes {context.meta.period_label}"


class CrossChargeRuleSet(RowRuleSet):
    """
    Recharge between two cost centers: one row, two lines.

    CREDIT at the "from" cost center, DEBIT of the same amount at the
    "to" cost center. The four lookups are independent; a miss on any of
    them is tallied as a mapping failure and the line still goes out
    carrying the default code. Memo rules do not apply here.
    """

    journal_type = JournalType.CROSS_CHARGE

    def derive(
        self,
        raw_row: RawRow | None,
        context: DerivationContext,
        row_number: int | None = None,
    ) -> RowResult:
        if raw_row is None:
            return self._drop(Recovered("null_row"), row_number)

        amount = hours_times_rate(raw_row)
        if isinstance(amount, Recovered):
            return self._drop(amount, row_number)

        from_location = context.resolve_location(
            field_value(raw_row, FROM_LOCATION_FIELDS),
            field_name="from_location",
            row_number=row_number,
        )
        to_location = context.resolve_location(
            field_value(raw_row, TO_LOCATION_FIELDS),
            field_name="to_location",
            row_number=row_number,
        )
        from_department = context.resolve_department(
            field_value(raw_row, FROM_DEPARTMENT_FIELDS),
            field_name="from_department",
            row_number=row_number,
        )
        to_department = context.resolve_department(
            field_value(raw_row, TO_DEPARTMENT_FIELDS),
            field_name="to_department",
            row_number=row_number,
        )

        unknown = [
            name
            for name, code in (
                ("from_location", from_location),
                ("to_location", to_location),
                ("from_department", from_department),
                ("to_department", to_department),
            )
            if code == context.default_code
        ]
        if unknown:
            logger.warning(
                "cross_charge_mapping_failed",
                extra={"row": row_number, "fields": unknown},
            )

        account = field_value(raw_row, ACCOUNT_FIELDS) or context.default_account
        memo = field_value(raw_row, MEMO_FIELDS) or (
            f"Cross charge {from_location}/{from_department} "
            f"to {to_location}/{to_department}"
        )
        description = field_value(raw_row, DESCRIPTION_FIELDS) or None

        credit = JournalLine.of(
            LineSide.CREDIT,
            amount,
            acct_no=account,
            location_id=from_location,
            dept_id=from_department,
            memo=memo,
            description=description,
        )
        debit = JournalLine.of(
            LineSide.DEBIT,
            amount,
            acct_no=account,
            location_id=to_location,
            dept_id=to_department,
            memo=memo,
        )
        return Derived((credit, debit))


RULE_SETS: dict[JournalType, RowRuleSet] = {
    JournalType.HOURLY: HourlyRuleSet(),
    JournalType.HOURLY_ACCRUAL: HourlyAccrualRuleSet(),
    JournalType.SALARIED: SalariedRuleSet(),
    JournalType.PT_CLASSES: PtClassesRuleSet(),
    JournalType.CROSS_CHARGE: CrossChargeRuleSet(),
}


def rule_set_for(journal_type: JournalType) -> RowRuleSet:
    """Rule set for a row-by-row journal type; KeyError for the others."""
    return RULE_SETS[journal_type]
