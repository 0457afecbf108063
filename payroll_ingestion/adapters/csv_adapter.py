"""
CSV source adapter.

Uses csv.DictReader. Configurable: delimiter, encoding, skip_rows.
Handles BOM via utf-8-sig when encoding is utf-8. Header names are kept
verbatim, trailing whitespace included ("Hours Worked "); field lookup
downstream tolerates the variants. Streams rows.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterator

from payroll_ingestion.adapters.base import SourceProbe


def _get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() == "utf-8":
        return "utf-8-sig"  # Strip BOM if present
    return enc


def _clean(row: dict[str | None, Any]) -> dict[str, str]:
    """Drop DictReader's overflow key and turn missing cells into ""."""
    return {
        key: ("" if value is None else str(value))
        for key, value in row.items()
        if key is not None
    }


def _is_blank(row: dict[str, str]) -> bool:
    return not any(value.strip() for value in row.values())


class CsvSourceAdapter:
    """Read CSV files as one dict per row. Streams; does not load entire file."""

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, str]]:
        encoding = _get_encoding(options)
        delimiter = options.get("delimiter", ",")
        skip_rows = int(options.get("skip_rows", 0))

        with source_path.open("r", encoding=encoding, newline="") as f:
            for _ in range(skip_rows):
                next(f, None)
            reader = csv.DictReader(f, delimiter=delimiter)
            for row in reader:
                cleaned = _clean(row)
                if not _is_blank(cleaned):
                    yield cleaned

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        encoding = _get_encoding(options)
        delimiter = options.get("delimiter", ",")
        skip_rows = int(options.get("skip_rows", 0))
        sample_size = 5

        with source_path.open("r", encoding=encoding, newline="") as f:
            for _ in range(skip_rows):
                next(f, None)
            reader = csv.DictReader(f, delimiter=delimiter)
            columns_tuple = tuple(reader.fieldnames or ())
            sample: list[dict[str, Any]] = []
            count = 0
            for row in reader:
                cleaned = _clean(row)
                if _is_blank(cleaned):
                    continue
                count += 1
                if len(sample) < sample_size:
                    sample.append(cleaned)

        return SourceProbe(
            row_count=count,
            columns=columns_tuple,
            sample_rows=tuple(sample),
            encoding=encoding,
            detected_delimiter=delimiter,
        )
