"""
payroll_services.dispatcher -- journal type -> pipeline binding.

Responsibility:
    Maps a journal-type identifier to the loader, transformer and
    exporter that process it. The mapping is a table, not a chain of
    conditionals; adding a journal type means adding a row to
    ``_MODES`` and a rule set to ``payroll_engines.derivation.RULE_SETS``.

Architecture position:
    Services. ``dispatch`` builds closures over the run context and
    writer but performs no I/O itself.

Contract (standard mode):
    rows = binding.loader()
    results = [binding.transformer(row, n) for n, row in enumerate(rows, 1)]
    path = binding.exporter(export_rows)

    Allocation (apLevy) and pass-through (investment) bindings have no
    transformer; the runner special-cases them.

Failure modes:
    - UnsupportedJournalTypeError naming the identifier received.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from payroll_engines.derivation import rule_set_for
from payroll_ingestion.writers import CsvJournalWriter, WriteMetadata
from payroll_kernel.domain.journal import JOURNAL_FIELDS, JournalType, RawRow
from payroll_kernel.domain.outcome import RowResult
from payroll_kernel.exceptions import UnsupportedJournalTypeError
from payroll_kernel.logging_config import get_logger
from payroll_services.context import RunContext

logger = get_logger("services.dispatcher")


class PipelineMode(str, Enum):
    """How the runner drives a journal type."""

    STANDARD = "standard"
    ALLOCATION = "allocation"
    PASSTHROUGH = "passthrough"


_MODES: dict[JournalType, PipelineMode] = {
    JournalType.INVESTMENT: PipelineMode.PASSTHROUGH,
    JournalType.HOURLY: PipelineMode.STANDARD,
    JournalType.SALARIED: PipelineMode.STANDARD,
    JournalType.HOURLY_ACCRUAL: PipelineMode.STANDARD,
    JournalType.CROSS_CHARGE: PipelineMode.STANDARD,
    JournalType.AP_LEVY: PipelineMode.ALLOCATION,
    JournalType.PT_CLASSES: PipelineMode.STANDARD,
}

Loader = Callable[[], list[RawRow]]
Transformer = Callable[[RawRow, int], RowResult]
Exporter = Callable[..., Path]


@dataclass(frozen=True)
class PipelineParams:
    """What ``dispatch`` binds the pipeline to."""

    context: RunContext
    writer: CsvJournalWriter


@dataclass(frozen=True)
class PipelineBinding:
    """The callables that process one journal type."""

    journal_type: JournalType
    mode: PipelineMode
    loader: Loader
    transformer: Transformer | None
    exporter: Exporter


def parse_journal_type(identifier: str | JournalType) -> JournalType:
    """Identifier -> JournalType; raises UnsupportedJournalTypeError."""
    if isinstance(identifier, JournalType):
        return identifier
    try:
        return JournalType(identifier)
    except ValueError:
        raise UnsupportedJournalTypeError(
            str(identifier), JournalType.identifiers()
        ) from None


def mode_for(journal_type: JournalType) -> PipelineMode:
    return _MODES[journal_type]


def dispatch(journal_type: str | JournalType, params: PipelineParams) -> PipelineBinding:
    """
    Bind ``journal_type`` to its pipeline.

    Args:
        journal_type: One of ``JournalType.identifiers()``.
        params: Run context and writer the callables close over.

    Returns:
        PipelineBinding for the runner.
    """
    jtype = parse_journal_type(journal_type)
    mode = _MODES[jtype]
    context = params.context
    writer = params.writer
    source_keyword = context.journal_def.source_keyword
    exclude = context.journal_def.exclude_keywords

    def loader() -> list[RawRow]:
        return context.repository.load_rows(source_keyword, exclude)

    transformer: Transformer | None = None
    if mode is PipelineMode.STANDARD:
        rule_set = rule_set_for(jtype)

        def derive(raw_row: RawRow, row_number: int) -> RowResult:
            return rule_set.derive(raw_row, context.derivation, row_number)

        transformer = derive

    def exporter(
        rows: Sequence[Mapping[str, Any]],
        columns: tuple[str, ...] = JOURNAL_FIELDS,
    ) -> Path:
        metadata = WriteMetadata(
            journal_type=jtype.value,
            period=context.meta.yyyymm,
            columns=columns,
        )
        return writer.write(rows, metadata)

    logger.debug(
        "pipeline_dispatched",
        extra={"mode": mode.value, "source_keyword": source_keyword},
    )
    return PipelineBinding(
        journal_type=jtype,
        mode=mode,
        loader=loader,
        transformer=transformer,
        exporter=exporter,
    )
