"""
Settings Loader (``payroll_config.loader``).

Responsibility
--------------
Loads the YAML settings file and parses it into the frozen dataclasses
of ``payroll_config.schema``. Runtime code obtains settings through
``payroll_config.get_active_config()`` only.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid threshold values  -> ``ValueError`` from the schema.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import (
    BalanceSettings,
    EngineSettings,
    JournalDef,
    ReferenceTableDef,
    ResolverSettings,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_resolver(data: dict[str, Any]) -> ResolverSettings:
    """Parse ResolverSettings; absent keys keep their defaults."""
    defaults = ResolverSettings()
    return ResolverSettings(
        default_code=str(data.get("default_code", defaults.default_code)),
        min_word_key_length=int(
            data.get("min_word_key_length", defaults.min_word_key_length)
        ),
        min_substring_key_length=int(
            data.get("min_substring_key_length", defaults.min_substring_key_length)
        ),
    )


def parse_balance(data: dict[str, Any]) -> BalanceSettings:
    """Parse BalanceSettings. Tolerance is read through str to stay exact."""
    tolerance = data.get("tolerance", "0.02")
    return BalanceSettings(tolerance=Decimal(str(tolerance)))


def parse_reference_table(category: str, data: dict[str, Any]) -> ReferenceTableDef:
    """
    Parse a ReferenceTableDef.

    Raises:
        KeyError: if ``source_keyword``, ``name_column`` or
            ``code_column`` is missing.
    """
    overrides = data.get("overrides") or {}
    return ReferenceTableDef(
        category=category,
        source_keyword=data["source_keyword"],
        name_column=data["name_column"],
        code_column=data["code_column"],
        overrides=tuple((str(k), str(v)) for k, v in overrides.items()),
    )


def parse_journal(journal_type: str, data: dict[str, Any]) -> JournalDef:
    """
    Parse a JournalDef; ``source_keyword`` defaults to the type name.

    ``exclude_keywords`` rule out files that also contain the keyword
    but belong to another journal ("Hourly Accrual" for hourly).
    """
    return JournalDef(
        journal_type=journal_type,
        source_keyword=data.get("source_keyword", journal_type),
        exclude_keywords=tuple(str(k) for k in data.get("exclude_keywords") or ()),
        journal=str(data.get("journal", "")),
        label=str(data.get("label", "")),
        source_entity=str(data.get("source_entity", "")),
        debit_account=str(data.get("debit_account", "")),
        credit_account=str(data.get("credit_account", "")),
        default_account=str(data.get("default_account", "")),
    )


def parse_settings(data: dict[str, Any]) -> EngineSettings:
    """Parse a whole settings document into EngineSettings."""
    tables = tuple(
        parse_reference_table(category, table)
        for category, table in (data.get("reference_tables") or {}).items()
    )
    journals = tuple(
        parse_journal(journal_type, journal or {})
        for journal_type, journal in (data.get("journals") or {}).items()
    )
    return EngineSettings(
        resolver=parse_resolver(data.get("resolver") or {}),
        balance=parse_balance(data.get("balance") or {}),
        reference_tables=tables,
        journals=journals,
        noise_memo_prefixes=tuple(data.get("noise_memo_prefixes") or ()),
        require_reference_columns=bool(data.get("require_reference_columns", False)),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    SHA-256 checksum of the canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
