# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Cross-file deduplication and aggregation.

The same physical transaction often appears twice: once in an artist's
ledger and once in a project's ledger. Two rows are considered the same
transaction when they share:

    (date, credit, debit, first 50 characters of the description)

The truncated description absorbs trailing punctuation/whitespace
differences between the two renderings while keeping distinct transactions
that happen to share a date and amount apart.

When a duplicate is dropped, the attribution it carried (artist or project)
is merged into the kept row if that row had none, so that an artist-ledger
row and its project-ledger twin end up as one row attributed to both.

Aggregation
-----------
Totals are computed with pandas over the natural keys carried by the
transactions (not by source file):

    total_credit = sum(credit)
    total_debit  = sum(debit)
    solde        = total_credit - total_debit
"""

from collections.abc import Iterable
from dataclasses import replace
from typing import Literal

import pandas as pd

from .models import NormalizedTransaction

DedupKey = tuple[str, float, float, str]

TOTALS_COLUMNS = ["entity", "transactions", "total_credit", "total_debit", "solde"]

TRANSACTION_COLUMNS = [
    "date",
    "description",
    "credit",
    "debit",
    "categorie",
    "artiste",
    "projet",
    "source",
]


def dedup_key(tx: NormalizedTransaction, prefix_length: int = 50) -> DedupKey:
    """Return the identity key used to detect duplicate transactions."""
    return (
        tx.date,
        round(tx.credit, 2),
        round(tx.debit, 2),
        tx.description[:prefix_length],
    )


def deduplicate(
    transactions: Iterable[NormalizedTransaction],
    prefix_length: int = 50,
) -> list[NormalizedTransaction]:
    """
    Drop duplicate transactions, keeping the first occurrence.

    The relative order of kept transactions is preserved. Running the
    function on its own output returns the same list.
    """
    kept: dict[DedupKey, NormalizedTransaction] = {}
    for tx in transactions:
        key = dedup_key(tx, prefix_length)
        first = kept.get(key)
        if first is None:
            kept[key] = tx
            continue
        if (first.artiste is None and tx.artiste is not None) or (
            first.projet is None and tx.projet is not None
        ):
            kept[key] = replace(
                first,
                artiste=first.artiste or tx.artiste,
                projet=first.projet or tx.projet,
            )
    return list(kept.values())


def sort_by_date(
    transactions: Iterable[NormalizedTransaction],
) -> list[NormalizedTransaction]:
    """Stable ascending sort on the ISO date string."""
    return sorted(transactions, key=lambda tx: tx.date)


def transactions_to_frame(
    transactions: Iterable[NormalizedTransaction],
) -> pd.DataFrame:
    """Build a DataFrame with one row per transaction (TRANSACTION_COLUMNS)."""
    records = [
        {
            "date": tx.date,
            "description": tx.description,
            "credit": tx.credit,
            "debit": tx.debit,
            "categorie": tx.categorie,
            "artiste": tx.artiste,
            "projet": tx.projet,
            "source": tx.source,
        }
        for tx in transactions
    ]
    return pd.DataFrame(records, columns=TRANSACTION_COLUMNS)


def _totals(df: pd.DataFrame, key: str) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=TOTALS_COLUMNS)

    grouped = (
        df.groupby(key, sort=True)
        .agg(
            transactions=("date", "size"),
            total_credit=("credit", "sum"),
            total_debit=("debit", "sum"),
        )
        .reset_index()
        .rename(columns={key: "entity"})
    )
    grouped["total_credit"] = grouped["total_credit"].round(2)
    grouped["total_debit"] = grouped["total_debit"].round(2)
    grouped["solde"] = (grouped["total_credit"] - grouped["total_debit"]).round(2)
    return grouped[TOTALS_COLUMNS]


def entity_totals(
    transactions: Iterable[NormalizedTransaction],
    by: Literal["artiste", "projet"] = "artiste",
) -> pd.DataFrame:
    """
    Per-entity totals.

    Args:
        transactions: Deduplicated transactions.
        by: "artiste" for per-artist totals, "projet" for per-project totals.

    Returns:
        DataFrame with columns TOTALS_COLUMNS, one row per entity, sorted by
        entity. Transactions without that entity are not counted.
    """
    if by not in ("artiste", "projet"):
        raise ValueError(f"Unsupported aggregation key: {by!r}")
    df = transactions_to_frame(transactions)
    df = df[df[by].notna()]
    return _totals(df, by)


def yearly_totals(transactions: Iterable[NormalizedTransaction]) -> pd.DataFrame:
    """Totals per calendar year; the `entity` column holds the year (int)."""
    transactions = list(transactions)
    if not transactions:
        return pd.DataFrame(columns=TOTALS_COLUMNS)
    df = transactions_to_frame(transactions)
    df["year"] = [tx.year for tx in transactions]
    return _totals(df, "year")
