"""Source adapters for payroll extracts (file I/O only)."""

from payroll_ingestion.adapters.base import SourceAdapter, SourceProbe
from payroll_ingestion.adapters.csv_adapter import CsvSourceAdapter
from payroll_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter

ADAPTERS_BY_SUFFIX: dict[str, SourceAdapter] = {
    ".csv": CsvSourceAdapter(),
    ".txt": CsvSourceAdapter(),
    ".xlsx": XlsxSourceAdapter(),
    ".xlsm": XlsxSourceAdapter(),
}


def adapter_for(suffix: str) -> SourceAdapter | None:
    """Adapter for a file suffix (case-insensitive); None when unsupported."""
    return ADAPTERS_BY_SUFFIX.get(suffix.lower())


__all__ = [
    "ADAPTERS_BY_SUFFIX",
    "CsvSourceAdapter",
    "SourceAdapter",
    "SourceProbe",
    "XlsxSourceAdapter",
    "adapter_for",
]
