"""
Module: payroll_engines.assembler
Responsibility:
    Turn the derived lines of one run into the final journal: drop noise
    and placeholder lines, number the lines, fill descriptions down,
    stamp the run metadata, and check that debits equal credits.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - LINE_NO is a dense 1-based sequence over the surviving lines,
      independent of any upstream numbering.
    - DESCRIPTION, once set, carries forward to following lines that lack
      one. The first line falls back to the run description.
    - Imbalance never raises. A difference above the tolerance is a
      ``journal_unbalanced`` warning; within it, ``journal_balanced``.

Failure modes:
    None raised. Upstream data errors surface in the BalanceCheck.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from decimal import Decimal

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.journal import JournalLine, JournalMeta
from payroll_kernel.domain.values import ZERO
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.assembler")

DEFAULT_TOLERANCE = Decimal("0.02")


@dataclass(frozen=True)
class BalanceCheck:
    """Debit/credit totals for one journal."""

    total_debit: Decimal
    total_credit: Decimal
    tolerance: Decimal

    @property
    def difference(self) -> Decimal:
        return self.total_debit - self.total_credit

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) <= self.tolerance


@dataclass(frozen=True)
class AssembledJournal:
    """The journal ready for the writer, plus assembly diagnostics."""

    meta: JournalMeta
    lines: tuple[JournalLine, ...]
    balance: BalanceCheck
    dropped_noise: int = 0
    dropped_placeholders: int = 0

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def export_rows(self) -> list[dict[str, str]]:
        return [line.as_export_row() for line in self.lines]


def check_balance(
    lines: Iterable[JournalLine], tolerance: Decimal = DEFAULT_TOLERANCE
) -> BalanceCheck:
    """Sum both sides and log whether they agree within ``tolerance``."""
    total_debit = ZERO
    total_credit = ZERO
    for line in lines:
        if line.debit is not None:
            total_debit += line.debit
        if line.credit is not None:
            total_credit += line.credit

    check = BalanceCheck(total_debit, total_credit, tolerance)
    payload = {
        "total_debit": str(total_debit),
        "total_credit": str(total_credit),
        "difference": str(check.difference),
        "tolerance": str(tolerance),
    }
    if check.is_balanced:
        logger.info("journal_balanced", extra=payload)
    else:
        logger.warning("journal_unbalanced", extra=payload)
    return check


def is_noise(line: JournalLine, noise_memo_prefixes: tuple[str, ...]) -> bool:
    return any(line.memo.startswith(prefix) for prefix in noise_memo_prefixes if prefix)


def fill_down_descriptions(
    lines: Iterable[JournalLine], seed: str | None = None
) -> list[JournalLine]:
    """Carry the most recent non-empty DESCRIPTION onto lines lacking one."""
    current = seed or None
    filled: list[JournalLine] = []
    for line in lines:
        if line.description:
            current = line.description
            filled.append(line)
        else:
            filled.append(replace(line, description=current))
    return filled


@traced_engine("assembler", "1.0", fingerprint_fields=("tolerance",))
def assemble(
    lines: Iterable[JournalLine],
    meta: JournalMeta,
    *,
    noise_memo_prefixes: tuple[str, ...] = (),
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> AssembledJournal:
    """
    Assemble one run's lines into a journal.

    Steps, in order: concatenate; drop noise memos and placeholder lines;
    number from 1; fill DESCRIPTION down; stamp metadata; check balance.
    """
    collected = list(lines)

    kept: list[JournalLine] = []
    dropped_noise = 0
    dropped_placeholders = 0
    for line in collected:
        if is_noise(line, noise_memo_prefixes):
            dropped_noise += 1
            continue
        if line.is_placeholder:
            dropped_placeholders += 1
            continue
        kept.append(line)

    numbered = [replace(line, line_no=index) for index, line in enumerate(kept, start=1)]
    described = fill_down_descriptions(numbered, seed=meta.description)

    stamped = tuple(
        replace(
            line,
            document=line.document or meta.document,
            journal=line.journal or meta.journal,
            date=line.date or meta.date,
            reverse_date=line.reverse_date or meta.reverse_date,
            memo=line.memo or meta.memo,
            source_entity=line.source_entity or meta.source_entity,
        )
        for line in described
    )

    balance = check_balance(stamped, tolerance)
    logger.info(
        "journal_assembled",
        extra={
            "input_lines": len(collected),
            "output_lines": len(stamped),
            "dropped_noise": dropped_noise,
            "dropped_placeholders": dropped_placeholders,
        },
    )
    return AssembledJournal(
        meta=meta,
        lines=stamped,
        balance=balance,
        dropped_noise=dropped_noise,
        dropped_placeholders=dropped_placeholders,
    )
