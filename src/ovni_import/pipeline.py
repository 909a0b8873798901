# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Import pipeline orchestration.

One run reads every ``*.html`` export of the input directory, in name order,
and goes through:

1) filename resolution (artist ledger, project ledger, year summary,
   ignored, unmapped),
2) table extraction,
3) ledger parsing (field normalization + classification),
4) cross-file deduplication and date sort,
5) per-artist / per-project aggregation,
6) year-summary cross-check.

The SQL script is rendered separately (see sql_emitter.py) so that the
result can be inspected, tested or rendered differently.

Error policy
------------
A missing input directory is the only error that propagates
(FileNotFoundError). Anything going wrong inside one file is logged,
recorded in that file's FileReport and the run moves on to the next file.
"""

import logging
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from .aggregate import deduplicate, entity_totals, sort_by_date
from .config import ImportConfig
from .filenames import SourceKind, resolve_filename
from .html_table import read_rows
from .ledger import parse_ledger
from .models import NormalizedTransaction
from .year_summary import YearSummary, cross_check, parse_year_summary

logger = logging.getLogger(__name__)


@dataclass
class FileReport:
    """What happened to one input file."""

    filename: str
    kind: SourceKind
    entity: Optional[str] = None
    rows: int = 0
    transactions: int = 0
    dropped_rows: int = 0
    error: Optional[str] = None


@dataclass
class ImportResult:
    """
    Outcome of one import run.

    Attributes
    ----------
    transactions:
        Deduplicated transactions sorted by date.
    raw_count:
        Number of transactions before deduplication.
    files:
        One FileReport per input file, in processing order.
    artists:
        Distinct artist names: ledger owners plus artists inferred from text,
        sorted.
    projects:
        Distinct project codes, same rule, sorted.
    artist_totals, project_totals:
        Totals per entity (see aggregate.entity_totals).
    year_summaries:
        Totals read from the year-summary files.
    year_checks:
        Year summaries compared with the imported transactions.
    """

    transactions: list[NormalizedTransaction]
    raw_count: int
    files: list[FileReport]
    artists: list[str]
    projects: list[str]
    artist_totals: pd.DataFrame
    project_totals: pd.DataFrame
    year_summaries: list[YearSummary] = field(default_factory=list)
    year_checks: pd.DataFrame = field(default_factory=pd.DataFrame)

    def files_of_kind(self, kind: SourceKind) -> list[FileReport]:
        return [f for f in self.files if f.kind is kind]

    @property
    def failed_files(self) -> list[FileReport]:
        return [f for f in self.files if f.error is not None]


def list_html_files(input_dir: Path) -> list[Path]:
    """Return the ``.html`` files of `input_dir`, sorted by name."""
    return sorted(
        (p for p in input_dir.iterdir() if p.is_file() and p.suffix.lower() == ".html"),
        key=lambda p: p.name,
    )


def run_import(
    input_dir: Union[str, "PathLike[str]"],
    config: ImportConfig,
    fallback_year: Optional[int] = None,
) -> ImportResult:
    """
    Run the import over one directory of HTML exports.

    Args:
        input_dir: Directory containing the exports.
        config: Import configuration (keyword tables, options).
        fallback_year: Year used for ledgers that declare none (defaults to
            the current calendar year).

    Raises:
        FileNotFoundError: if `input_dir` does not exist or is not a directory.
    """
    directory = Path(input_dir)
    if not directory.is_dir():
        raise FileNotFoundError(f"Input directory not found: {directory}")

    reports: list[FileReport] = []
    collected: list[NormalizedTransaction] = []
    summaries: list[YearSummary] = []
    owners_artists: set[str] = set()
    owners_projects: set[str] = set()

    for path in list_html_files(directory):
        source = resolve_filename(path.name, config.resolver)
        report = FileReport(filename=path.name, kind=source.kind, entity=source.entity)
        reports.append(report)

        if source.kind is SourceKind.IGNORED:
            logger.info("Ignored: %s", path.name)
            continue
        if source.kind is SourceKind.UNMAPPED:
            logger.warning("Unmapped file skipped: %s", path.name)
            continue

        try:
            rows = read_rows(path)
            report.rows = len(rows)

            if source.kind is SourceKind.YEAR_SUMMARY:
                summary = parse_year_summary(rows, int(source.entity), config.normalizer)
                summaries.append(summary)
                report.transactions = summary.transactions
                continue

            parsed = parse_ledger(rows, source, config, fallback_year=fallback_year)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to parse %s: %s", path.name, exc)
            report.error = str(exc)
            continue

        report.transactions = len(parsed.transactions)
        report.dropped_rows = parsed.dropped_rows
        if parsed.rows and not parsed.transactions:
            logger.warning("No transaction found in %s", path.name)

        if source.artiste:
            owners_artists.add(source.artiste)
        if source.projet:
            owners_projects.add(source.projet)
        collected.extend(parsed.transactions)

    unique = sort_by_date(
        deduplicate(collected, prefix_length=config.normalizer.dedup_prefix_length)
    )

    artists = sorted(owners_artists | {tx.artiste for tx in unique if tx.artiste})
    projects = sorted(owners_projects | {tx.projet for tx in unique if tx.projet})

    return ImportResult(
        transactions=unique,
        raw_count=len(collected),
        files=reports,
        artists=artists,
        projects=projects,
        artist_totals=entity_totals(unique, by="artiste"),
        project_totals=entity_totals(unique, by="projet"),
        year_summaries=summaries,
        year_checks=cross_check(summaries, unique),
    )
