"""
payroll_config -- single public entrypoint for engine settings.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains
    settings. The YAML file is parsed once per call into a frozen
    ``EngineSettings``; nothing is cached across runs.

Failure modes:
    - ``InvalidSettingsError`` -- the file is missing, malformed, or
      carries invalid values. The concrete path is named.

Audit relevance:
    Every successful call emits a ``PAYROLL_CONFIG_TRACE`` log entry with
    the settings path and checksum, tying each journal back to the exact
    settings that produced it.
"""

from __future__ import annotations

import logging
from decimal import InvalidOperation
from pathlib import Path

import yaml

from payroll_config.loader import load_yaml_file, parse_settings
from payroll_config.schema import (
    BalanceSettings,
    EngineSettings,
    JournalDef,
    ReferenceTableDef,
    ResolverSettings,
)
from payroll_kernel.exceptions import InvalidSettingsError

_logger = logging.getLogger("payroll_kernel.config")

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | None = None) -> EngineSettings:
    """Load and parse the settings file (the packaged defaults when None)."""
    path = Path(config_path) if config_path is not None else DEFAULT_SETTINGS_PATH
    try:
        data = load_yaml_file(path)
        settings = parse_settings(data)
    except FileNotFoundError:
        raise InvalidSettingsError(str(path), "file not found") from None
    except yaml.YAMLError as exc:
        raise InvalidSettingsError(str(path), f"malformed YAML: {exc}") from exc
    except (KeyError, ValueError, TypeError, AttributeError, InvalidOperation) as exc:
        raise InvalidSettingsError(str(path), f"{type(exc).__name__}: {exc}") from exc

    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "config_path": str(path),
            "checksum": settings.checksum,
            "journal_count": len(settings.journals),
            "reference_table_count": len(settings.reference_tables),
        },
    )
    return settings


__all__ = [
    "BalanceSettings",
    "DEFAULT_SETTINGS_PATH",
    "EngineSettings",
    "JournalDef",
    "ReferenceTableDef",
    "ResolverSettings",
    "get_active_config",
]
