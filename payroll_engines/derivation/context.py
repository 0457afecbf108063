"""
Derivation context -- the run-scoped state rule sets read from.

Holds the code maps built for this run, the journal metadata and the
lookup tally. A fresh context is built for every run; nothing here
outlives it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from payroll_engines.resolver import (
    DEFAULT_THRESHOLDS,
    UNKNOWN,
    MatchStage,
    MatchThresholds,
    Resolution,
    resolve_with_stage,
)
from payroll_kernel.domain.journal import CodeMap, JournalMeta


@dataclass(frozen=True)
class MappingFailure:
    """A lookup that fell back to the default code."""

    category: str
    field: str
    raw_key: str
    row_number: int | None = None


@dataclass
class LookupTally:
    """Counts lookups and records every miss for the run outcome."""

    lookups: int = 0
    fuzzy_matches: int = 0
    failures: list[MappingFailure] = field(default_factory=list)

    @property
    def misses(self) -> int:
        return len(self.failures)

    def record(
        self,
        resolution: Resolution,
        category: str,
        field_name: str,
        row_number: int | None,
    ) -> None:
        self.lookups += 1
        if not resolution.matched:
            self.failures.append(
                MappingFailure(category, field_name, resolution.raw_key, row_number)
            )
        elif resolution.stage is not MatchStage.EXACT:
            self.fuzzy_matches += 1


@dataclass
class DerivationContext:
    """Everything a rule set needs besides the row itself."""

    meta: JournalMeta
    location_map: CodeMap = field(default_factory=dict)
    department_map: CodeMap = field(default_factory=dict)
    thresholds: MatchThresholds = DEFAULT_THRESHOLDS
    default_code: str = UNKNOWN
    default_account: str = ""
    tally: LookupTally = field(default_factory=LookupTally)

    def _resolve(
        self,
        raw_key: Any,
        code_map: CodeMap,
        category: str,
        field_name: str,
        row_number: int | None,
    ) -> str:
        resolution = resolve_with_stage(
            raw_key, code_map, category, self.default_code, thresholds=self.thresholds
        )
        self.tally.record(resolution, category, field_name, row_number)
        return resolution.code

    def resolve_location(
        self, raw_key: Any, *, field_name: str = "location", row_number: int | None = None
    ) -> str:
        return self._resolve(raw_key, self.location_map, "location", field_name, row_number)

    def resolve_department(
        self, raw_key: Any, *, field_name: str = "department", row_number: int | None = None
    ) -> str:
        return self._resolve(
            raw_key, self.department_map, "department", field_name, row_number
        )
