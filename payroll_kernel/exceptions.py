"""
Typed Exception Hierarchy for the Payroll Journal Engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A payroll run must tell an operator precisely why it stopped. Generic
exceptions force callers to parse message strings; typed exceptions let
the runner catch by class, log a machine-readable ``code`` and keep the
structured context (file names, column names, journal type) as attributes.

Only resource-level conditions are raised. Row-level data problems and
lookup misses never raise -- they are returned as ``Recovered`` results
(see ``payroll_kernel.domain.outcome``) so one bad row cannot abort a run.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollJournalError (base)
    |
    +-- ConfigurationError
    |   +-- MissingSourceError
    |   +-- UnreadableSourceError
    |   +-- ReferenceTableError
    |   +-- MissingColumnsError
    |   +-- InvalidSettingsError
    |   +-- OutputWriteError
    |
    +-- DispatchError
    |   +-- UnsupportedJournalTypeError
    |
    +-- AllocationError
    |   +-- ZeroDriverTotalError
    |   +-- MissingLevyTotalError
    |   +-- InvalidLevyTotalError
    |
    +-- PeriodError
        +-- InvalidMonthError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Configuration   | MISSING_SOURCE              | No file matches the source keyword
                | SOURCE_UNREADABLE           | Source file cannot be parsed
                | REFERENCE_TABLE_UNREADABLE  | Reference table cannot be parsed
                | MISSING_COLUMNS             | Required columns absent from a table
                | INVALID_SETTINGS            | Settings file is malformed
                | OUTPUT_WRITE_FAILED         | Journal file cannot be written
----------------|-----------------------------|-----------------------------------------
Dispatch        | UNSUPPORTED_JOURNAL_TYPE    | Unknown journal-type identifier
----------------|-----------------------------|-----------------------------------------
Allocation      | ZERO_DRIVER_TOTAL           | Levy driver values sum to zero
                | MISSING_LEVY_TOTAL          | No levy amount supplied or found
                | INVALID_LEVY_TOTAL          | Levy total is zero or negative
----------------|-----------------------------|-----------------------------------------
Period          | INVALID_MONTH               | Month name not recognised
"""


class PayrollJournalError(Exception):
    """
    Base exception for all payroll journal errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_JOURNAL_ERROR"


# Configuration / missing-resource exceptions (fatal for the run)


class ConfigurationError(PayrollJournalError):
    """Base exception for missing or unreadable resources."""

    code: str = "CONFIGURATION_ERROR"


class MissingSourceError(ConfigurationError):
    """No source file matched the keyword in the source directory."""

    code: str = "MISSING_SOURCE"

    def __init__(self, source_id: str, directory: str, patterns: tuple[str, ...]):
        self.source_id = source_id
        self.directory = directory
        self.patterns = patterns
        super().__init__(
            f"No source file for {source_id!r} in {directory} "
            f"(patterns tried: {', '.join(patterns)})"
        )


class UnreadableSourceError(ConfigurationError):
    """A source file was found but cannot be parsed."""

    code: str = "SOURCE_UNREADABLE"

    def __init__(self, source_id: str, path: str, reason: str):
        self.source_id = source_id
        self.path = path
        self.reason = reason
        super().__init__(f"Source {source_id!r} at {path} unreadable: {reason}")


class ReferenceTableError(ConfigurationError):
    """A reference table exists but cannot be read or parsed."""

    code: str = "REFERENCE_TABLE_UNREADABLE"

    def __init__(self, table: str, path: str, reason: str):
        self.table = table
        self.path = path
        self.reason = reason
        super().__init__(f"Reference table {table!r} at {path} unreadable: {reason}")


class MissingColumnsError(ConfigurationError):
    """Required columns are absent from a table."""

    code: str = "MISSING_COLUMNS"

    def __init__(
        self,
        table: str,
        expected: tuple[str, ...],
        observed: tuple[str, ...],
    ):
        self.table = table
        self.expected = expected
        self.observed = observed
        super().__init__(
            f"Table {table!r} is missing columns {list(expected)}; "
            f"observed {list(observed)}"
        )


class InvalidSettingsError(ConfigurationError):
    """The settings file is malformed or carries invalid values."""

    code: str = "INVALID_SETTINGS"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid settings in {path}: {reason}")


class OutputWriteError(ConfigurationError):
    """The journal file cannot be written to the output directory."""

    code: str = "OUTPUT_WRITE_FAILED"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write journal to {path}: {reason}")


# Dispatch exceptions


class DispatchError(PayrollJournalError):
    """Base exception for pipeline dispatch errors."""

    code: str = "DISPATCH_ERROR"


class UnsupportedJournalTypeError(DispatchError):
    """Journal-type identifier is not in the dispatch table."""

    code: str = "UNSUPPORTED_JOURNAL_TYPE"

    def __init__(self, journal_type: str, supported: tuple[str, ...] = ()):
        self.journal_type = journal_type
        self.supported = supported
        message = f"Unsupported journal type: {journal_type!r}"
        if supported:
            message += f" (supported: {', '.join(supported)})"
        super().__init__(message)


# Allocation exceptions


class AllocationError(PayrollJournalError):
    """Base exception for proportional allocation errors."""

    code: str = "ALLOCATION_ERROR"


class ZeroDriverTotalError(AllocationError):
    """
    The driver values sum to zero, so proportions are undefined.

    Fatal for the levy run only.
    """

    code: str = "ZERO_DRIVER_TOTAL"

    def __init__(self, total_amount: str, entry_count: int, skipped_count: int):
        self.total_amount = total_amount
        self.entry_count = entry_count
        self.skipped_count = skipped_count
        super().__init__(
            f"Cannot allocate {total_amount}: driver total is zero "
            f"({entry_count} entries, {skipped_count} skipped)"
        )


class MissingLevyTotalError(AllocationError):
    """No lump sum was supplied and the source carries no levy column."""

    code: str = "MISSING_LEVY_TOTAL"

    def __init__(self, source_id: str):
        self.source_id = source_id
        super().__init__(
            f"No levy total supplied and no levy column found in {source_id!r}"
        )


class InvalidLevyTotalError(AllocationError):
    """The levy total is zero or negative, so there is nothing to allocate."""

    code: str = "INVALID_LEVY_TOTAL"

    def __init__(self, total_amount: str):
        self.total_amount = total_amount
        super().__init__(f"Levy total must be positive, got {total_amount}")


# Period exceptions


class PeriodError(PayrollJournalError):
    """Base exception for financial-period errors."""

    code: str = "PERIOD_ERROR"


class InvalidMonthError(PeriodError):
    """Month name cannot be mapped to a financial period."""

    code: str = "INVALID_MONTH"

    def __init__(self, month: str):
        self.month = month
        super().__init__(f"Unrecognised month name: {month!r}")
