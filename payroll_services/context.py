"""
payroll_services.context -- run-scoped state for one journal run.

Responsibility:
    Builds the ``RunContext`` a pipeline run works against: the loaded
    settings, the journal metadata, the location and department code
    maps (rebuilt from their reference tables on every run) and the
    ``DerivationContext`` handed to the rule sets.

Architecture position:
    Services -- bridges payroll_config and payroll_ingestion to the pure
    engines. Nothing built here is shared between runs.

Failure modes:
    - MissingSourceError: a reference table file is not in the source
      directory.
    - ReferenceTableError: the reference table file cannot be parsed.
    - MissingColumnsError: name/code columns absent and settings demand
      them (``require_reference_columns``); otherwise a warning and an
      empty map.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import uuid4

from payroll_config.schema import EngineSettings, JournalDef, ResolverSettings
from payroll_engines.code_map import CodeMapBuild, build_code_map
from payroll_engines.derivation.context import DerivationContext
from payroll_engines.resolver import MatchThresholds
from payroll_ingestion.discovery import SourceRepository
from payroll_kernel.domain.journal import JournalMeta, JournalType
from payroll_kernel.domain.periods import build_journal_meta
from payroll_kernel.exceptions import (
    MissingColumnsError,
    ReferenceTableError,
    UnreadableSourceError,
)
from payroll_kernel.logging_config import get_logger

logger = get_logger("services.context")

REFERENCE_CATEGORIES: tuple[str, ...] = ("location", "department")


def thresholds_from_settings(resolver: ResolverSettings) -> MatchThresholds:
    return MatchThresholds(
        min_word_key_length=resolver.min_word_key_length,
        min_substring_key_length=resolver.min_substring_key_length,
    )


@dataclass
class RunContext:
    """
    Everything one run owns.

    ``code_maps`` holds the build diagnostics per category; the maps
    themselves are also wired into ``derivation``.
    """

    run_id: str
    journal_type: JournalType
    settings: EngineSettings
    journal_def: JournalDef
    meta: JournalMeta
    repository: SourceRepository
    derivation: DerivationContext
    code_maps: dict[str, CodeMapBuild] = field(default_factory=dict)

    @property
    def tolerance(self) -> Decimal:
        return self.settings.balance.tolerance


def load_code_map(
    repository: SourceRepository,
    settings: EngineSettings,
    category: str,
) -> CodeMapBuild:
    """Load one reference table and build its code map."""
    table = settings.reference_table(category)
    if table is None:
        logger.warning("reference_table_not_configured", extra={"category": category})
        return CodeMapBuild(category=category)

    try:
        rows = repository.load_rows(table.source_keyword)
    except UnreadableSourceError as exc:
        raise ReferenceTableError(category, exc.path, exc.reason) from exc

    build = build_code_map(
        rows,
        name_column=table.name_column,
        code_column=table.code_column,
        overrides=table.override_map,
        category=category,
    )
    if build.missing_columns and settings.require_reference_columns:
        raise MissingColumnsError(
            category, build.missing_columns, build.observed_columns
        )
    return build


def build_run_context(
    journal_type: JournalType,
    month: str | int,
    year: int,
    *,
    settings: EngineSettings,
    repository: SourceRepository,
    run_id: str | None = None,
    load_reference_tables: bool = True,
) -> RunContext:
    """
    Build the run context: metadata first, then fresh code maps.

    Pass-through runs skip the reference tables (nothing is resolved).
    """
    journal_def = settings.journal_def(journal_type.value)
    meta = build_journal_meta(
        journal_type,
        month,
        year,
        label=journal_def.label,
        journal=journal_def.journal,
        source_entity=journal_def.source_entity,
        reverses=journal_type is JournalType.HOURLY_ACCRUAL,
    )

    code_maps: dict[str, CodeMapBuild] = {}
    if load_reference_tables:
        for category in REFERENCE_CATEGORIES:
            code_maps[category] = load_code_map(repository, settings, category)

    derivation = DerivationContext(
        meta=meta,
        location_map=code_maps["location"].code_map if "location" in code_maps else {},
        department_map=(
            code_maps["department"].code_map if "department" in code_maps else {}
        ),
        thresholds=thresholds_from_settings(settings.resolver),
        default_code=settings.resolver.default_code,
        default_account=journal_def.default_account,
    )

    context = RunContext(
        run_id=run_id or str(uuid4()),
        journal_type=journal_type,
        settings=settings,
        journal_def=journal_def,
        meta=meta,
        repository=repository,
        derivation=derivation,
        code_maps=code_maps,
    )
    logger.info(
        "run_context_built",
        extra={
            "period": meta.period,
            "financial_year": meta.financial_year,
            "document": meta.document,
            "code_map_sizes": {k: len(v.code_map) for k, v in code_maps.items()},
            "settings_checksum": settings.checksum,
        },
    )
    return context
