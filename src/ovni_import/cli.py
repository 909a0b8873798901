# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for O.V.N.I Import.

The CLI is intentionally thin: it loads the configuration, runs the import
pipeline over the directory of HTML exports, writes the SQL seed script and
prints a human-readable progress log and summary.

Every argument is optional; a bare invocation uses the configuration file
(``ovni_import_config.toml`` in the current directory when present, the
built-in defaults otherwise):

    python -m ovni_import.cli
    ovni-import --input-dir "bilan compta O.V.N.I" --output seed.sql

Exit status
-----------
0  the script was written,
1  the input directory or the configuration could not be used.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config import ImportConfig, load_import_config
from .filenames import SourceKind
from .logging_setup import configure_logging
from .pipeline import FileReport, ImportResult, run_import
from .sql_emitter import render_seed_sql, write_seed_sql


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m ovni_import.cli",
        description=(
            "O.V.N.I Import - reads the HTML exports of the O.V.N.I ASBL "
            "bookkeeping spreadsheets (artist ledgers, project ledgers, year "
            "summaries) and writes an idempotent SQL seed script."
        ),
    )

    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of ovni_import and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            "'ovni_import_config.toml' in the current directory is used when "
            "present, otherwise the built-in defaults."
        ),
    )
    ap.add_argument(
        "--input-dir",
        dest="input_dir",
        help="Directory containing the HTML exports (overrides [paths].input_dir).",
    )
    ap.add_argument(
        "--output",
        dest="output_file",
        help="Path of the SQL script to write (overrides [paths].output_file).",
    )
    ap.add_argument(
        "--log-level",
        dest="log_level",
        help=(
            "Logging level for diagnostics (DEBUG, INFO, WARNING, ...). "
            "Defaults to $OVNI_IMPORT_LOG_LEVEL, then WARNING."
        ),
    )
    return ap


def _describe_file(report: FileReport) -> str:
    if report.kind is SourceKind.IGNORED:
        return f"  - Ignored: {report.filename}"
    if report.kind is SourceKind.UNMAPPED:
        return f"  ! Unmapped file: {report.filename}"
    if report.error is not None:
        return f"  x {report.filename}: error ({report.error})"
    if report.kind is SourceKind.YEAR_SUMMARY:
        return (
            f"  = {report.filename} -> year summary {report.entity}: "
            f"{report.transactions} entries (cross-check only)"
        )
    label = "Artist" if report.kind is SourceKind.ARTIST else "Project"
    return (
        f"  + {report.filename} -> {label}: {report.entity}: "
        f"{report.transactions} transactions"
        + (f" ({report.dropped_rows} rows skipped)" if report.dropped_rows else "")
    )


def _print_summary(result: ImportResult) -> None:
    ledgers = [f for f in result.files if f.kind in (SourceKind.ARTIST, SourceKind.PROJECT)]
    failed_ledgers = [f for f in ledgers if f.error is not None]
    print()
    print("=== Summary ===")
    print(f"Files processed : {len(ledgers) - len(failed_ledgers)}")
    print(f"Year summaries  : {len(result.files_of_kind(SourceKind.YEAR_SUMMARY))}")
    print(f"Files ignored   : {len(result.files_of_kind(SourceKind.IGNORED))}")
    print(f"Files unmapped  : {len(result.files_of_kind(SourceKind.UNMAPPED))}")
    print(f"Files failed    : {len(result.failed_files)}")
    print(
        f"Transactions    : {result.raw_count} extracted, "
        f"{len(result.transactions)} after deduplication"
    )

    total_credit = sum(tx.credit for tx in result.transactions)
    total_debit = sum(tx.debit for tx in result.transactions)
    print(f"Total credit    : {total_credit:.2f}")
    print(f"Total debit     : {total_debit:.2f}")
    print(f"Balance         : {sum(tx.amount for tx in result.transactions):.2f}")

    if not result.artist_totals.empty:
        print()
        print("=== Per artist ===")
        print(result.artist_totals.to_string(index=False))

    if not result.project_totals.empty:
        print()
        print("=== Per project ===")
        print(result.project_totals.to_string(index=False))

    unattributed = sum(1 for tx in result.transactions if not tx.artiste and not tx.projet)
    if unattributed:
        print()
        print(f"Transactions without artist nor project: {unattributed}")

    if not result.year_checks.empty:
        print()
        print("=== Year summaries cross-check ===")
        print(result.year_checks.to_string(index=False))


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the O.V.N.I Import CLI.

    Parses the arguments, loads the configuration, runs the import over the
    input directory, writes the SQL seed script and prints the summary.
    Returns the process exit status.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"ovni_import version {__version__}")
        return 0

    try:
        configure_logging(args.log_level)
    except ValueError as exc:
        parser.error(str(exc))

    # 1) Configuration
    try:
        config: ImportConfig = load_import_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    input_dir = Path(args.input_dir) if args.input_dir else config.paths.input_dir
    output_file = Path(args.output_file) if args.output_file else config.paths.output_file

    print("=== O.V.N.I accounting import ===")
    print(f"Source directory: {input_dir}")

    # 2) Import
    try:
        result = run_import(input_dir, config)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"{len(result.files)} HTML files found")
    for report in result.files:
        print(_describe_file(report))

    # 3) SQL script
    sql = render_seed_sql(result.transactions, result.artists, result.projects, config)
    written = write_seed_sql(output_file, sql)
    print()
    print(
        f"Wrote {written} ({len(result.artists)} artists, "
        f"{len(result.projects)} projects, {len(result.transactions)} transactions)"
    )

    _print_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
