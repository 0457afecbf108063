#!/usr/bin/env python3
"""
Build one payroll journal: locate the extract, derive lines, balance, write CSV.

Settings come from payroll_config (the packaged defaults.yaml unless
--config is given). Reference tables (locations, departments) and the
payroll extract are found by keyword in --source-dir; the most recently
modified match wins.

Usage:
    python3 scripts/run_journal.py --type <journal type> --month <month> --year <yyyy> \\
        --source-dir <dir> --output-dir <dir> [options]

Examples:
    # Hourly payroll for June 2025
    python3 scripts/run_journal.py --type hourly --month June --year 2025 \\
        --source-dir inbox --output-dir out

    # Apprenticeship levy, lump sum supplied on the command line
    python3 scripts/run_journal.py --type apLevy --month June --year 2025 \\
        --source-dir inbox --output-dir out --levy-total 1234.56

    # Probe the source extract (row count, columns, sample) without building
    python3 scripts/run_journal.py --type hourly --month June --year 2025 \\
        --source-dir inbox --output-dir out --probe-only

Exit codes:
    0  journal written and balanced
    1  journal written but unbalanced (review before import)
    2  run aborted (missing source, unreadable table, zero driver total, ...)
"""

from __future__ import annotations

import argparse
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

EXIT_OK = 0
EXIT_UNBALANCED = 1
EXIT_FATAL = 2


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value.replace(",", "").replace("£", "").strip())
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build a balanced payroll journal CSV from a payroll extract.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--type",
        dest="journal_type",
        required=True,
        help="Journal type: investment, hourly, salaried, hourlyAccrual, "
        "crossCharge, apLevy or ptClasses.",
    )
    parser.add_argument("--month", required=True, help="Month name (e.g. June, Sept).")
    parser.add_argument("--year", required=True, type=int, help="Calendar year (e.g. 2025).")
    parser.add_argument(
        "--source-dir",
        required=True,
        type=Path,
        help="Directory holding the payroll extract and reference tables.",
    )
    parser.add_argument(
        "--output-dir",
        required=True,
        type=Path,
        help="Directory the journal CSV is written to.",
    )
    parser.add_argument(
        "--levy-total",
        type=_decimal,
        default=None,
        help="Apprenticeship levy lump sum (apLevy only). Default: levy column of the extract.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings YAML (default: packaged payroll_config/defaults.yaml).",
    )
    parser.add_argument(
        "--probe-only",
        action="store_true",
        help="Probe the source extract (row count, columns, sample rows) and exit.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Log level for the JSON log on stderr (default: INFO).",
    )
    return parser.parse_args(argv)


def _probe(args: argparse.Namespace) -> int:
    from payroll_config import get_active_config
    from payroll_ingestion.discovery import SourceRepository
    from payroll_kernel.exceptions import PayrollJournalError
    from payroll_services.dispatcher import parse_journal_type

    try:
        jtype = parse_journal_type(args.journal_type)
        settings = get_active_config(args.config)
        journal_def = settings.journal_def(jtype.value)
        probe = SourceRepository(args.source_dir).probe(
            journal_def.source_keyword, journal_def.exclude_keywords
        )
    except PayrollJournalError as e:
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return EXIT_FATAL

    print(f"Rows: {probe.row_count}")
    print(f"Columns: {list(probe.columns)}")
    print("Sample (first 3):")
    for i, row in enumerate(probe.sample_rows[:3], 1):
        print(f"  {i}: {row}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    # Lazy imports so we fail fast on args first
    from payroll_kernel.logging_config import configure_logging

    configure_logging(level=args.log_level.upper(), stream=sys.stderr)

    if args.probe_only:
        return _probe(args)

    from payroll_services import run_journal

    outcome = run_journal(
        args.journal_type,
        args.month,
        args.year,
        source_dir=args.source_dir,
        output_dir=args.output_dir,
        config_path=args.config,
        levy_total=args.levy_total,
    )

    if outcome.fatal is not None:
        print(f"ERROR [{outcome.fatal.code}]: {outcome.fatal.reason}", file=sys.stderr)
        print("No journal written.", file=sys.stderr)
        return EXIT_FATAL

    print(f"Journal written: {outcome.output_path}")
    print(f"  Rows loaded: {outcome.rows_loaded}, dropped: {outcome.rows_dropped}")
    print(f"  Lines: {outcome.line_count}, noise dropped: {outcome.dropped_noise}")
    if outcome.lookup_misses:
        print(f"  Lookup misses: {outcome.lookup_misses} (coded UNKNOWN)")
        for failure in outcome.mapping_failures[:10]:
            print(f"    row {failure.row_number}: {failure.category} {failure.raw_key!r}")
        if len(outcome.mapping_failures) > 10:
            print(f"    ... and {len(outcome.mapping_failures) - 10} more.")

    if outcome.balance is not None:
        print(
            f"  Debit {outcome.balance.total_debit}  Credit {outcome.balance.total_credit}  "
            f"Difference {outcome.balance.difference}"
        )
    if not outcome.is_balanced:
        print("WARNING: journal is unbalanced; review before import.", file=sys.stderr)
        return EXIT_UNBALANCED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
