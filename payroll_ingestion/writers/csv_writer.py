"""
CSV journal writer.

Writes one journal file per run into the output directory as
``{journal_type}_{yyyymm}_{timestamp}.csv``. The file is written to a
temporary sibling first and moved into place, so a failed run never
leaves a half-written journal behind.

Architecture: payroll_ingestion/writers. File I/O only.
"""

from __future__ import annotations

import csv
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.journal import JOURNAL_FIELDS
from payroll_kernel.exceptions import OutputWriteError
from payroll_kernel.logging_config import get_logger

logger = get_logger("ingestion.writer")


@dataclass(frozen=True)
class WriteMetadata:
    """
    What is being written.

    ``period`` is the calendar ``yyyymm`` of the journal, not the
    financial period. ``columns`` defaults to the journal export order;
    pass-through runs supply the source header instead.
    """

    journal_type: str
    period: str
    columns: tuple[str, ...] = JOURNAL_FIELDS


class CsvJournalWriter:
    """Write journal rows to a timestamped CSV file."""

    def __init__(self, output_dir: Path | str, clock: Clock | None = None):
        self.output_dir = Path(output_dir)
        self._clock = clock or SystemClock()

    def filename_for(self, metadata: WriteMetadata) -> str:
        timestamp = self._clock.now().strftime("%Y%m%d%H%M%S")
        return f"{metadata.journal_type}_{metadata.period}_{timestamp}.csv"

    def write(self, rows: Iterable[Mapping[str, Any]], metadata: WriteMetadata) -> Path:
        """
        Write ``rows`` with ``metadata.columns`` as the header.

        Columns missing from a row are written blank; keys outside
        ``metadata.columns`` are ignored.

        Returns:
            Path of the written file.

        Raises:
            OutputWriteError: the directory cannot be created or the file
                cannot be written. No partial file is left behind.
        """
        target = self.output_dir / self.filename_for(metadata)
        tmp = target.with_name(target.name + ".tmp")

        count = 0
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8", newline="") as f:
                writer = csv.DictWriter(
                    f,
                    fieldnames=list(metadata.columns),
                    extrasaction="ignore",
                    restval="",
                    lineterminator="\n",
                )
                writer.writeheader()
                for row in rows:
                    writer.writerow(row)
                    count += 1
            os.replace(tmp, target)
        except OSError as exc:
            if tmp.exists():
                tmp.unlink()
            logger.error(
                "journal_write_failed",
                extra={"path": str(target), "error": str(exc)},
            )
            raise OutputWriteError(str(target), str(exc)) from exc

        logger.info(
            "journal_file_written",
            extra={
                "journal_type": metadata.journal_type,
                "path": str(target),
                "row_count": count,
            },
        )
        return target
