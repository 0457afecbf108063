"""
XLSX source adapter for payroll extracts and reference tables.

Supports flexible layout:
  - sheet by index (0-based) or name
  - header row by index or auto-detect (scans first N rows for payroll-like column names)
  - skip_rows before header
  - at most max_rows rows read (default 100,000); a longer sheet is cut
    short with a source_truncated warning
  - cell values returned as text (blank -> empty string) to match CSV rows

Auto-detect looks for a row containing at least 2 of: location, department,
hours worked, rate of pay per hour, memo, account, employer ni, amount, ...
so title rows and report banners above the table are skipped.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterator

from payroll_ingestion.adapters.base import SourceProbe
from payroll_kernel.logging_config import get_logger

logger = get_logger("ingestion.xlsx")

# Payroll-like column keywords (normalized: strip, lower); row with >=2 matches is header candidate
_HEADER_KEYWORDS = frozenset({
    "location", "location name", "location code", "site",
    "department", "department name", "department code", "dept",
    "hours", "hours worked", "rate", "rate of pay per hour", "hourly rate",
    "amount", "gross pay", "monthly pay", "employer ni", "employers ni",
    "acct_no", "account", "location_id", "dept_id",
    "memo", "description", "pay element", "dr/cr",
    "from location", "to location", "from department", "to department",
    "employee", "employee name", "employee number",
})

_MAX_ROWS = 100_000


def _normalize_header_cell(value: Any) -> str:
    """Header text with internal whitespace runs collapsed; edges kept trimmed."""
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if value == int(value):
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def _cell_value(row: Any, col_idx: int) -> str:
    """Cell text from an openpyxl row (0-based column index)."""
    try:
        cell = row[col_idx]
    except (IndexError, TypeError):
        return ""
    if cell is None:
        return ""
    return _as_text(cell.value)


def _row_to_keywords(row: Any, max_cols: int = 30) -> set[str]:
    """Extract normalized keywords from a row for header scoring."""
    keywords = set()
    for c in range(max_cols):
        v = _cell_value(row, c)
        if not v:
            continue
        v_lower = _normalize_header_cell(v).lower()
        if v_lower in _HEADER_KEYWORDS:
            keywords.add(v_lower)
    return keywords


def _detect_header_row(rows: list, max_search: int = 15, min_keywords: int = 2) -> int:
    """Return 0-based row index of the first row that looks like a header."""
    for i, row in enumerate(rows[:max_search]):
        if len(_row_to_keywords(row)) >= min_keywords:
            return i
    return 0


def _column_count(row: Any) -> int:
    """Number of cells up to the last non-empty one."""
    n = 0
    for c in range(50):
        if _cell_value(row, c) != "":
            n = c + 1
    return max(n, 1)


def _headers(header_row: Any) -> list[str]:
    ncols = _column_count(header_row)
    headers: list[str] = []
    for c in range(ncols):
        key = _normalize_header_cell(_cell_value(header_row, c)) or f"Column_{c+1}"
        # Dedupe duplicate headers
        base = key
        cnt = 0
        while key in headers:
            cnt += 1
            key = f"{base}_{cnt}"
        headers.append(key)
    return headers


def _load_workbook(source_path: Path) -> Any:
    try:
        import openpyxl
    except ImportError as e:
        raise ImportError("XLSX support requires openpyxl. Install with: pip install openpyxl") from e
    return openpyxl.load_workbook(source_path, read_only=True, data_only=True)


class XlsxSourceAdapter:
    """
    Read .xlsx files as one dict per row, using the first row (or the
    auto-detected header row) as column names.

    source_options:
      sheet: 0-based sheet index (int) or sheet name (str). Default: active sheet.
      skip_rows: rows to skip at the top of the sheet. Default: 0.
      header_row: 0-based row index (after skip_rows) to use as header.
      auto_detect_header: if true (default), scan the first 15 rows for a header row.
      max_rows: rows read from the sheet (after skip_rows). Default: 100,000.
    """

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, str]]:
        wb = _load_workbook(source_path)
        try:
            sheet = self._get_sheet(wb, options)
            rows = self._rows(sheet, options, source_path)
            if not rows:
                return
            hi = self._header_index(rows, options)
            headers = _headers(rows[hi])
            for row in rows[hi + 1 :]:
                vals = [_cell_value(row, c) for c in range(len(headers))]
                if not any(vals):
                    continue
                yield dict(zip(headers, vals))
        finally:
            wb.close()

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        wb = _load_workbook(source_path)
        try:
            sheet = self._get_sheet(wb, options)
            rows = self._rows(sheet, options, source_path)
            if not rows:
                return SourceProbe(row_count=0, columns=(), sample_rows=())
            hi = self._header_index(rows, options)
            headers = _headers(rows[hi])
            data = []
            for row in rows[hi + 1 :]:
                vals = [_cell_value(row, c) for c in range(len(headers))]
                if any(vals):
                    data.append(dict(zip(headers, vals)))
            return SourceProbe(
                row_count=len(data),
                columns=tuple(headers),
                sample_rows=tuple(data[:5]),
            )
        finally:
            wb.close()

    def _rows(self, sheet: Any, options: dict[str, Any], source_path: Path) -> list:
        skip_rows = int(options.get("skip_rows", 0))
        max_rows = int(options.get("max_rows", _MAX_ROWS))
        # One extra row tells a full sheet apart from a truncated one.
        rows = list(
            sheet.iter_rows(min_row=1 + skip_rows, max_row=skip_rows + max_rows + 1)
        )
        if len(rows) > max_rows:
            logger.warning(
                "source_truncated",
                extra={"path": str(source_path), "max_rows": max_rows},
            )
            rows = rows[:max_rows]
        return rows

    def _header_index(self, rows: list, options: dict[str, Any]) -> int:
        header_row_idx = options.get("header_row")
        if header_row_idx is not None:
            return int(header_row_idx)
        if options.get("auto_detect_header", True):
            return _detect_header_row(rows, max_search=15, min_keywords=2)
        return 0

    def _get_sheet(self, wb: Any, options: dict[str, Any]) -> Any:
        sheet_ref = options.get("sheet")
        if sheet_ref is None:
            return wb.active
        if isinstance(sheet_ref, int):
            return wb.worksheets[sheet_ref]
        return wb[sheet_ref]
