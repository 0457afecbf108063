"""
Source discovery: locate the most recent payroll extract by keyword.

Payroll exports are dropped into a shared folder with names such as
``Hourly Pay June 2025 (2).csv``. A run asks for a keyword ("hourly",
"location") and gets the newest matching file in a supported format.

Contract:
    SourceRepository.find_latest(keyword, exclude=()) -> Path
    SourceRepository.load_rows(keyword, exclude=())   -> list[dict[str, str]]
    SourceRepository.probe(keyword, exclude=())       -> SourceProbe

    ``exclude`` lists keywords that disqualify a file even when it
    contains ``keyword`` ("accrual" keeps "Hourly Accrual June.csv" out
    of an hourly run).

Failure modes:
    - No matching file            -> MissingSourceError (directory + patterns tried).
    - File found but not parseable -> UnreadableSourceError.

Architecture: payroll_ingestion. File I/O only; no payroll semantics.
"""

from __future__ import annotations

import csv
import zipfile
from pathlib import Path
from typing import Any

from openpyxl.utils.exceptions import InvalidFileException

from payroll_ingestion.adapters import ADAPTERS_BY_SUFFIX, adapter_for
from payroll_ingestion.adapters.base import SourceProbe
from payroll_kernel.exceptions import MissingSourceError, UnreadableSourceError
from payroll_kernel.logging_config import get_logger

logger = get_logger("ingestion.discovery")


_READ_ERRORS: tuple[type[BaseException], ...] = (
    csv.Error,
    UnicodeDecodeError,
    OSError,
    zipfile.BadZipFile,
    InvalidFileException,
)


class SourceRepository:
    """
    Directory of payroll extracts, searched by case-insensitive keyword.

    The newest file (modification time) wins; ties break on file name so
    discovery is deterministic.
    """

    def __init__(self, directory: Path | str, options: dict[str, Any] | None = None):
        self.directory = Path(directory)
        self.options: dict[str, Any] = dict(options or {})

    def _patterns(self, keyword: str) -> tuple[str, ...]:
        return tuple(f"*{keyword}*{suffix}" for suffix in sorted(ADAPTERS_BY_SUFFIX))

    def candidates(self, keyword: str, exclude: tuple[str, ...] = ()) -> list[Path]:
        """
        Supported files whose name contains ``keyword`` and none of
        ``exclude``, newest first.
        """
        if not self.directory.is_dir():
            return []
        needle = keyword.strip().lower()
        excluded = tuple(e.strip().lower() for e in exclude if e.strip())
        matches = [
            path
            for path in self.directory.iterdir()
            if path.is_file()
            and not path.name.startswith(("~$", "."))
            and adapter_for(path.suffix) is not None
            and needle in path.name.lower()
            and not any(e in path.name.lower() for e in excluded)
        ]
        return sorted(matches, key=lambda p: (-p.stat().st_mtime, p.name))

    def find_latest(self, keyword: str, exclude: tuple[str, ...] = ()) -> Path:
        """Newest file matching ``keyword``; raises MissingSourceError if none."""
        matches = self.candidates(keyword, exclude)
        if not matches:
            patterns = self._patterns(keyword)
            logger.error(
                "source_not_found",
                extra={
                    "source_id": keyword,
                    "directory": str(self.directory),
                    "patterns": list(patterns),
                    "exclude": list(exclude),
                },
            )
            raise MissingSourceError(keyword, str(self.directory), patterns)

        chosen = matches[0]
        logger.info(
            "source_located",
            extra={
                "source_id": keyword,
                "path": str(chosen),
                "candidate_count": len(matches),
            },
        )
        return chosen

    def load_rows(
        self, source_id: str, exclude: tuple[str, ...] = ()
    ) -> list[dict[str, str]]:
        """Read every non-blank row of the newest ``source_id`` file."""
        path = self.find_latest(source_id, exclude)
        adapter = adapter_for(path.suffix)
        try:
            rows = list(adapter.read(path, self.options))
        except _READ_ERRORS as exc:
            logger.error(
                "source_unreadable",
                extra={"source_id": source_id, "path": str(path), "error": str(exc)},
            )
            raise UnreadableSourceError(source_id, str(path), str(exc)) from exc

        logger.info(
            "source_loaded",
            extra={"source_id": source_id, "path": str(path), "row_count": len(rows)},
        )
        return rows

    def probe(self, source_id: str, exclude: tuple[str, ...] = ()) -> SourceProbe:
        """Row count, columns and sample rows of the newest ``source_id`` file."""
        path = self.find_latest(source_id, exclude)
        adapter = adapter_for(path.suffix)
        try:
            return adapter.probe(path, self.options)
        except _READ_ERRORS as exc:
            raise UnreadableSourceError(source_id, str(path), str(exc)) from exc
