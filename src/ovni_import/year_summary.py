# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Year summaries ("2021.html" ... "2026.html") and the import cross-check.

Year summaries are the association's yearly bank statements, kept by hand.
They are never imported as transactions (every line also lives in an artist
or project ledger), but comparing their totals shows whether the
ledger import missed something.

Their layout changed every year:

    2021, 2022   several DATE | CREDIT | DEBIT | DESCRIPTION blocks side by side
    2023         DATE | CREDIT | DEBIT | DESCRIPTION
    2024         two empty columns, then the 2023 layout
    2025, 2026   empty column, DATE | CREDIT | DEBIT | QUI | QUOI

so rows are scanned for any window of four consecutive cells starting with a
date and carrying an amount, rather than for fixed column positions.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import pandas as pd

from .aggregate import yearly_totals
from .config import NormalizerConfig
from .html_table import RawRow
from .ledger import net_amounts
from .models import NormalizedTransaction
from .normalize import fold_text, parse_amount, parse_date

WINDOW = 4

CROSS_CHECK_COLUMNS = [
    "year",
    "summary_transactions",
    "imported_transactions",
    "summary_credit",
    "imported_credit",
    "credit_gap",
    "summary_debit",
    "imported_debit",
    "debit_gap",
]


@dataclass(frozen=True)
class YearSummary:
    """Totals read from one year-summary file."""

    year: int
    transactions: int
    total_credit: float
    total_debit: float

    @property
    def solde(self) -> float:
        return round(self.total_credit - self.total_debit, 2)


def _is_summary_text(text: str, markers: Iterable[str]) -> bool:
    folded = fold_text(text)
    return any(folded.startswith(fold_text(m)) for m in markers)


def _entry_texts(cells: Sequence[str], i: int, year: int) -> list[str]:
    # QUI is always at i+3; QUOI (2025/2026) follows unless the next block starts there.
    texts = [cells[i + 3]]
    if i + WINDOW < len(cells) and parse_date(cells[i + WINDOW], year) is None:
        texts.append(cells[i + WINDOW])
    return texts


def iter_entries(
    cells: Sequence[str], year: int, config: NormalizerConfig
) -> Iterable[tuple[str, float, float]]:
    """
    Yield (date, credit, debit) for every entry block found in one row.

    A block is four consecutive cells DATE, CREDIT, DEBIT, TEXT (plus the
    QUOI cell of the 2025/2026 layout) where the date parses and at least one
    amount is non-zero. Blocks whose text cells start with a summary or
    statement marker (totals, balance carry-overs, notes) are skipped.
    """
    markers = config.summary_markers + config.statement_markers
    i = 0
    while i + WINDOW <= len(cells):
        date = parse_date(cells[i], year, config.closing_markers)
        if date is not None:
            credit, debit = net_amounts(parse_amount(cells[i + 1]), parse_amount(cells[i + 2]))
            texts = _entry_texts(cells, i, year)
            if (credit or debit) and not any(_is_summary_text(t, markers) for t in texts):
                yield date, credit, debit
                i += WINDOW
                continue
        i += 1


def parse_year_summary(
    rows: Iterable[RawRow], year: int, config: NormalizerConfig
) -> YearSummary:
    """Sum every entry of a year-summary file dated within `year`."""
    count = 0
    credit_total = 0.0
    debit_total = 0.0
    for row in rows:
        for date, credit, debit in iter_entries(row.cells, year, config):
            if int(date[:4]) != year:
                continue
            count += 1
            credit_total += credit
            debit_total += debit
    return YearSummary(
        year=year,
        transactions=count,
        total_credit=round(credit_total, 2),
        total_debit=round(debit_total, 2),
    )


def cross_check(
    summaries: Iterable[YearSummary],
    transactions: Iterable[NormalizedTransaction],
) -> pd.DataFrame:
    """
    Compare year-summary totals with the imported transactions of each year.

    Returns:
        DataFrame with columns CROSS_CHECK_COLUMNS, one row per summary year,
        sorted by year. Gaps are `summary - imported`.
    """
    summaries = sorted(summaries, key=lambda s: s.year)
    if not summaries:
        return pd.DataFrame(columns=CROSS_CHECK_COLUMNS)

    imported = yearly_totals(transactions).set_index("entity")

    records = []
    for s in summaries:
        if s.year in imported.index:
            row = imported.loc[s.year]
            n = int(row["transactions"])
            credit = float(row["total_credit"])
            debit = float(row["total_debit"])
        else:
            n, credit, debit = 0, 0.0, 0.0
        records.append(
            {
                "year": s.year,
                "summary_transactions": s.transactions,
                "imported_transactions": n,
                "summary_credit": s.total_credit,
                "imported_credit": credit,
                "credit_gap": round(s.total_credit - credit, 2),
                "summary_debit": s.total_debit,
                "imported_debit": debit,
                "debit_gap": round(s.total_debit - debit, 2),
            }
        )
    return pd.DataFrame(records, columns=CROSS_CHECK_COLUMNS)
