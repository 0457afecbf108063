"""Journal writers (file I/O only)."""

from payroll_ingestion.writers.csv_writer import CsvJournalWriter, WriteMetadata

__all__ = ["CsvJournalWriter", "WriteMetadata"]
