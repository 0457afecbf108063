"""
Module: payroll_engines.code_map
Responsibility:
    Build a name -> code lookup table (CodeMap) from reference-table rows,
    with manual overrides layered on top.

Architecture position:
    Engines -- pure calculation layer, zero I/O. The rows come from the
    ingestion layer; this module only sees dicts.

Invariants enforced:
    - Every key is normalized with ``normalize_key`` before insertion.
    - Both the name and the code of a row map to the code, so a lookup
      that already holds a valid code passes through unchanged.
    - A name reappearing with a different code is logged as a duplicate
      and the later row wins.
    - Overrides are applied after the table and always win.

Failure modes:
    - Missing name/code columns: logged with the observed columns; an
      empty map is returned (non-fatal). Callers resolving against it
      will see every lookup fall back to the default code.
    - Rows with a blank name or code are skipped and counted.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from payroll_engines.normalizer import normalize_key
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.journal import CodeMap
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.code_map")


@dataclass(frozen=True)
class DuplicateEntry:
    """A name that was seen again with a different code."""

    key: str
    previous_code: str
    new_code: str
    row_number: int


@dataclass(frozen=True)
class CodeMapBuild:
    """
    Result of building a code map.

    ``code_map`` is the lookup table; the rest is diagnostics for the
    run outcome.
    """

    category: str
    code_map: CodeMap = field(default_factory=dict)
    duplicates: tuple[DuplicateEntry, ...] = ()
    skipped_rows: int = 0
    missing_columns: tuple[str, ...] = ()
    observed_columns: tuple[str, ...] = ()
    override_count: int = 0

    @property
    def is_complete(self) -> bool:
        return not self.missing_columns


def _cell(row: Mapping[str, Any], column: str) -> str:
    value = row.get(column)
    if value is None:
        # Tolerate header whitespace drift ("Location Name " vs "Location Name")
        for key, candidate in row.items():
            if isinstance(key, str) and key.strip() == column.strip():
                value = candidate
                break
    return "" if value is None else str(value).strip()


def _observed_columns(rows: list[Mapping[str, Any]]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(str(key), None)
    return tuple(seen)


@traced_engine("code_map", "1.0", fingerprint_fields=("category", "name_column", "code_column"))
def build_code_map(
    reference_rows: Iterable[Mapping[str, Any]],
    name_column: str,
    code_column: str,
    overrides: Mapping[str, str] | None = None,
    *,
    category: str = "code",
) -> CodeMapBuild:
    """
    Build a CodeMap from reference rows.

    Args:
        reference_rows: Rows of the reference table.
        name_column: Column holding the free-text name.
        code_column: Column holding the canonical code.
        overrides: Explicit corrections applied last (name -> code). The
            override code is also added as its own key.
        category: Label for logs ("location", "department").

    Returns:
        CodeMapBuild with the map and diagnostics.
    """
    rows = list(reference_rows)
    observed = _observed_columns(rows)
    stripped = {c.strip() for c in observed}
    missing = tuple(
        c for c in (name_column, code_column) if c.strip() not in stripped
    )

    code_map: CodeMap = {}
    duplicates: list[DuplicateEntry] = []
    skipped = 0

    if missing and rows:
        logger.warning(
            "code_map_columns_missing",
            extra={
                "category": category,
                "expected_columns": [name_column, code_column],
                "missing_columns": list(missing),
                "observed_columns": list(observed),
            },
        )
    elif not rows:
        logger.warning("code_map_reference_empty", extra={"category": category})
    else:
        for row_number, row in enumerate(rows, start=1):
            name = normalize_key(_cell(row, name_column))
            code = _cell(row, code_column)
            if not name or not code:
                skipped += 1
                logger.debug(
                    "code_map_row_skipped",
                    extra={
                        "category": category,
                        "row_number": row_number,
                        "has_name": bool(name),
                        "has_code": bool(code),
                    },
                )
                continue

            previous = code_map.get(name)
            if previous is not None and previous != code:
                duplicates.append(DuplicateEntry(name, previous, code, row_number))
                logger.warning(
                    "duplicate_code_map_entry",
                    extra={
                        "category": category,
                        "key": name,
                        "previous_code": previous,
                        "new_code": code,
                        "row_number": row_number,
                    },
                )
            code_map[name] = code
            code_map[normalize_key(code)] = code

    override_count = 0
    for raw_name, code in (overrides or {}).items():
        name = normalize_key(raw_name)
        if not name or not str(code).strip():
            continue
        code_map[name] = str(code).strip()
        code_map[normalize_key(code)] = str(code).strip()
        override_count += 1

    logger.info(
        "code_map_built",
        extra={
            "category": category,
            "row_count": len(rows),
            "key_count": len(code_map),
            "skipped_rows": skipped,
            "duplicate_count": len(duplicates),
            "override_count": override_count,
        },
    )
    return CodeMapBuild(
        category=category,
        code_map=code_map,
        duplicates=tuple(duplicates),
        skipped_rows=skipped,
        missing_columns=missing if rows else (),
        observed_columns=observed,
        override_count=override_count,
    )
