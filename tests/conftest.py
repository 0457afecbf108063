"""
Pytest fixtures for the payroll journal engine test suite.

Provides:
- Structured logging configured for every test session
- ``captured_logs`` to assert on JSON log records
- Journal metadata, code maps and derivation contexts
- ``write_csv`` for building source directories under tmp_path
"""

import csv
import json
import logging
import os
from io import StringIO
from pathlib import Path

import pytest

from payroll_config import get_active_config
from payroll_engines.derivation.context import DerivationContext
from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.domain.journal import JournalType
from payroll_kernel.domain.periods import build_journal_meta
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture payroll_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            resolve("Unknown City", {}, "location")
            logs = captured_logs()
            assert any(r["message"] == "code_resolution_failed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    handler.setLevel(logging.DEBUG)
    root = logging.getLogger("payroll_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


LOCATION_MAP = {
    "leisure ops": "501",
    "501": "501",
    "central": "500",
    "500": "500",
    "manchester arena": "125",
    "125": "125",
    "gym": "310",
    "310": "310",
}

DEPARTMENT_MAP = {
    "front of house": "100",
    "100": "100",
    "kitchen": "200",
    "200": "200",
    "classes": "501",
    "501": "501",
}


@pytest.fixture
def june_meta():
    return build_journal_meta(
        JournalType.HOURLY,
        "June",
        2025,
        label="Hourly Payroll",
        journal="PAYHR",
    )


@pytest.fixture
def location_map():
    return dict(LOCATION_MAP)


@pytest.fixture
def department_map():
    return dict(DEPARTMENT_MAP)


@pytest.fixture
def derivation_context(june_meta, location_map, department_map):
    return DerivationContext(
        meta=june_meta,
        location_map=location_map,
        department_map=department_map,
        default_account="6100",
    )


@pytest.fixture
def default_settings():
    return get_active_config()


@pytest.fixture
def fixed_clock():
    return DeterministicClock()


# =============================================================================
# File fixtures
# =============================================================================


@pytest.fixture
def write_csv(tmp_path):
    """
    Write a CSV under tmp_path (or a given directory) and return its path.

    ``mtime`` pins the modification time so "most recent file" tests are
    deterministic.
    """

    def _write(
        name: str,
        header: list[str],
        rows: list[list[str]],
        directory: Path | None = None,
        mtime: float | None = None,
    ) -> Path:
        target_dir = directory or tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _write


@pytest.fixture
def reference_tables(write_csv, tmp_path):
    """Location and department reference tables in ``tmp_path / "inbox"``."""
    inbox = tmp_path / "inbox"
    write_csv(
        "Location List.csv",
        ["Location Name", "Location Code"],
        [
            ["Leisure Ops", "501"],
            ["Central", "500"],
            ["Manchester Arena", "125"],
            ["Gym", "310"],
        ],
        directory=inbox,
    )
    write_csv(
        "Department List.csv",
        ["Department Name", "Department Code"],
        [
            ["Front of House", "100"],
            ["Kitchen", "200"],
            ["Classes", "501"],
        ],
        directory=inbox,
    )
    return inbox


def read_csv(path: Path) -> list[dict[str, str]]:
    with path.open(encoding="utf-8", newline="") as f:
        return list(csv.DictReader(f))


@pytest.fixture
def read_output():
    return read_csv
