"""
payroll_services.pipeline -- run one journal end to end.

Responsibility:
    ``run_journal`` loads settings, builds the run context, dispatches
    the journal type and drives its pipeline to a written file, returning
    a ``RunOutcome`` that reports what happened.

Architecture position:
    Services -- the only place that combines ingestion, engines and the
    writer.

Invariants enforced:
    - Row-level problems (bad numbers, lookup misses) never abort a run;
      they are counted on the outcome.
    - Resource-level problems (missing source, unreadable reference
      table, zero driver total, bad levy total, bad month, unwritable
      output directory) abort the run. The outcome
      carries a ``Fatal`` and no file is written.
    - An unbalanced journal is still written; the outcome says so.

Usage:
    outcome = run_journal(
        "hourly", "June", 2025,
        source_dir=Path("inbox"), output_dir=Path("out"),
    )
    if outcome.fatal:
        ...
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import uuid4

from payroll_config import get_active_config
from payroll_config.schema import EngineSettings
from payroll_engines.allocation import allocate
from payroll_engines.assembler import AssembledJournal, BalanceCheck, assemble
from payroll_engines.derivation import allocation_entries, levy_total_from_rows
from payroll_engines.derivation.context import MappingFailure
from payroll_ingestion.discovery import SourceRepository
from payroll_ingestion.writers import CsvJournalWriter
from payroll_kernel.domain.clock import Clock
from payroll_kernel.domain.journal import JournalLine, JournalType, RawRow
from payroll_kernel.domain.outcome import Fatal, Recovered
from payroll_kernel.exceptions import (
    InvalidLevyTotalError,
    MissingLevyTotalError,
    PayrollJournalError,
)
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_services.context import RunContext, build_run_context
from payroll_services.dispatcher import (
    PipelineBinding,
    PipelineMode,
    PipelineParams,
    dispatch,
    mode_for,
    parse_journal_type,
)

logger = get_logger("services.pipeline")


@dataclass(frozen=True)
class RunOutcome:
    """
    What one run did.

    ``fatal`` is set when the run aborted; in that case ``output_path``
    is None and the counts reflect only the work done before the abort.
    """

    run_id: str
    journal_type: str
    rows_loaded: int = 0
    rows_dropped: int = 0
    lookup_misses: int = 0
    mapping_failures: tuple[MappingFailure, ...] = ()
    drop_reasons: dict[str, int] = field(default_factory=dict)
    line_count: int = 0
    dropped_noise: int = 0
    balance: BalanceCheck | None = None
    output_path: Path | None = None
    fatal: Fatal | None = None

    @property
    def succeeded(self) -> bool:
        return self.fatal is None and self.output_path is not None

    @property
    def is_balanced(self) -> bool:
        return self.balance is None or self.balance.is_balanced

    @property
    def difference(self) -> Decimal | None:
        return None if self.balance is None else self.balance.difference

    def summary(self) -> dict[str, Any]:
        """Flat dict for logs and the CLI."""
        return {
            "run_id": self.run_id,
            "journal_type": self.journal_type,
            "rows_loaded": self.rows_loaded,
            "rows_dropped": self.rows_dropped,
            "lookup_misses": self.lookup_misses,
            "line_count": self.line_count,
            "dropped_noise": self.dropped_noise,
            "difference": None if self.difference is None else str(self.difference),
            "is_balanced": self.is_balanced,
            "output_path": None if self.output_path is None else str(self.output_path),
            "fatal": None if self.fatal is None else self.fatal.code,
        }


@dataclass
class _Progress:
    rows_loaded: int = 0
    rows_dropped: int = 0
    drop_reasons: Counter = field(default_factory=Counter)

    def drop(self, reason: str) -> None:
        self.rows_dropped += 1
        self.drop_reasons[reason] += 1


def _derive_lines(
    binding: PipelineBinding, rows: list[RawRow], progress: _Progress
) -> list[JournalLine]:
    lines: list[JournalLine] = []
    for row_number, row in enumerate(rows, start=1):
        with LogContext.bind(row_number=str(row_number)):
            result = binding.transformer(row, row_number)
        if isinstance(result, Recovered):
            progress.drop(result.warning)
        lines.extend(result.lines)
    return lines


def _allocate_lines(
    context: RunContext,
    rows: list[RawRow],
    levy_total: Decimal | None,
    progress: _Progress,
) -> list[JournalLine]:
    total = levy_total if levy_total is not None else levy_total_from_rows(rows)
    if total is None:
        raise MissingLevyTotalError(context.journal_def.source_keyword)
    if total <= 0:
        raise InvalidLevyTotalError(str(total))

    result = allocate(
        total_amount=total,
        entries=allocation_entries(rows, context.derivation),
        credit_account=context.journal_def.credit_account,
        debit_account=context.journal_def.debit_account,
        memo=context.meta.memo,
    )
    for _ in result.skipped:
        progress.drop("unusable_driver")
    return list(result.lines)


def _passthrough(binding: PipelineBinding, rows: list[RawRow]) -> Path:
    columns: dict[str, None] = {}
    for row in rows:
        for key in row:
            columns.setdefault(str(key), None)
    return binding.exporter(rows, columns=tuple(columns))


def _outcome(
    run_id: str,
    journal_type: str,
    progress: _Progress,
    context: RunContext | None,
    **kwargs: Any,
) -> RunOutcome:
    tally = context.derivation.tally if context is not None else None
    return RunOutcome(
        run_id=run_id,
        journal_type=journal_type,
        rows_loaded=progress.rows_loaded,
        rows_dropped=progress.rows_dropped,
        lookup_misses=tally.misses if tally is not None else 0,
        mapping_failures=tuple(tally.failures) if tally is not None else (),
        drop_reasons=dict(progress.drop_reasons),
        **kwargs,
    )


def run_journal(
    journal_type: str | JournalType,
    month: str | int,
    year: int,
    *,
    source_dir: Path | str,
    output_dir: Path | str,
    settings: EngineSettings | None = None,
    config_path: Path | None = None,
    levy_total: Decimal | None = None,
    clock: Clock | None = None,
    run_id: str | None = None,
) -> RunOutcome:
    """
    Produce one journal file for ``journal_type`` and ``month``/``year``.

    Args:
        journal_type: Journal-type identifier (``JournalType`` value).
        month: Month name ("June", "Sept") or number.
        year: Calendar year of the month.
        source_dir: Directory holding source extracts and reference tables.
        output_dir: Directory the journal CSV is written to.
        settings: Pre-loaded settings; loaded from ``config_path`` when None.
        config_path: Settings file (packaged defaults when None).
        levy_total: Lump sum for the levy journal; read from the extract's
            levy column when None.
        clock: Clock for the output filename timestamp.
        run_id: Correlation id; generated when None.

    Returns:
        RunOutcome. Never raises for payroll errors; they become ``fatal``.
    """
    run_id = run_id or str(uuid4())
    type_label = journal_type.value if isinstance(journal_type, JournalType) else str(journal_type)
    progress = _Progress()
    context: RunContext | None = None

    with LogContext.bind(run_id=run_id, journal_type=type_label):
        logger.info(
            "journal_run_started",
            extra={"month": str(month), "year": year, "source_dir": str(source_dir)},
        )
        try:
            jtype = parse_journal_type(journal_type)
            mode = mode_for(jtype)
            active = settings if settings is not None else get_active_config(config_path)
            repository = SourceRepository(source_dir)
            context = build_run_context(
                jtype,
                month,
                year,
                settings=active,
                repository=repository,
                run_id=run_id,
                load_reference_tables=mode is not PipelineMode.PASSTHROUGH,
            )
            binding = dispatch(
                jtype,
                PipelineParams(context=context, writer=CsvJournalWriter(output_dir, clock)),
            )

            with LogContext.bind(source_id=context.journal_def.source_keyword):
                rows = binding.loader()
            progress.rows_loaded = len(rows)

            if mode is PipelineMode.PASSTHROUGH:
                path = _passthrough(binding, rows)
                outcome = _outcome(
                    run_id, type_label, progress, context,
                    line_count=len(rows), output_path=path,
                )
                logger.info("journal_run_completed", extra=outcome.summary())
                return outcome

            if mode is PipelineMode.ALLOCATION:
                lines = _allocate_lines(context, rows, levy_total, progress)
            else:
                lines = _derive_lines(binding, rows, progress)

            journal: AssembledJournal = assemble(
                lines,
                context.meta,
                noise_memo_prefixes=active.noise_memo_prefixes,
                tolerance=active.balance.tolerance,
            )
            path = binding.exporter(journal.export_rows())
        except PayrollJournalError as exc:
            fatal = Fatal.from_exception(exc)
            logger.error(
                "journal_run_failed",
                extra={"code": fatal.code, "reason": fatal.reason},
            )
            return _outcome(run_id, type_label, progress, context, fatal=fatal)

        outcome = _outcome(
            run_id,
            type_label,
            progress,
            context,
            line_count=journal.line_count,
            dropped_noise=journal.dropped_noise,
            balance=journal.balance,
            output_path=path,
        )
        logger.info("journal_run_completed", extra=outcome.summary())
        return outcome
