"""
Engine settings schema.

Frozen dataclasses parsed from the YAML settings file by
``payroll_config.loader``. Thresholds that were historically hardcoded
(balance tolerance, substring-match minimum lengths) live here so they
can be tuned without code changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Engine thresholds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolverSettings:
    """Fuzzy code resolver thresholds."""

    default_code: str = "UNKNOWN"
    min_word_key_length: int = 3
    min_substring_key_length: int = 5

    def __post_init__(self) -> None:
        if self.min_word_key_length < 1:
            raise ValueError("min_word_key_length must be positive")
        if self.min_substring_key_length < 1:
            raise ValueError("min_substring_key_length must be positive")


@dataclass(frozen=True)
class BalanceSettings:
    """Balance validation tolerance (absolute, in pounds)."""

    tolerance: Decimal = Decimal("0.02")

    def __post_init__(self) -> None:
        if self.tolerance < 0:
            raise ValueError("tolerance cannot be negative")


# ---------------------------------------------------------------------------
# Reference tables and journals
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReferenceTableDef:
    """Where a code map's reference table lives and which columns it uses."""

    category: str  # "location", "department"
    source_keyword: str
    name_column: str
    code_column: str
    overrides: tuple[tuple[str, str], ...] = ()

    @property
    def override_map(self) -> dict[str, str]:
        return dict(self.overrides)


@dataclass(frozen=True)
class JournalDef:
    """Per-journal-type settings."""

    journal_type: str
    source_keyword: str
    exclude_keywords: tuple[str, ...] = ()
    journal: str = ""
    label: str = ""
    source_entity: str = ""
    debit_account: str = ""
    credit_account: str = ""
    default_account: str = ""


@dataclass(frozen=True)
class EngineSettings:
    """Complete settings for one payroll journal run."""

    resolver: ResolverSettings = field(default_factory=ResolverSettings)
    balance: BalanceSettings = field(default_factory=BalanceSettings)
    reference_tables: tuple[ReferenceTableDef, ...] = ()
    journals: tuple[JournalDef, ...] = ()
    noise_memo_prefixes: tuple[str, ...] = ()
    require_reference_columns: bool = False
    checksum: str = ""

    def journal_def(self, journal_type: str) -> JournalDef:
        """Settings for a journal type; an empty definition when absent."""
        for definition in self.journals:
            if definition.journal_type == journal_type:
                return definition
        return JournalDef(journal_type=journal_type, source_keyword=journal_type)

    def reference_table(self, category: str) -> ReferenceTableDef | None:
        for table in self.reference_tables:
            if table.category == category:
                return table
        return None
