# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Ledger parsing: from extracted rows to normalized transactions.

Artist and project ledgers share one layout:

    Date | Credit | Debit | Description | ...

preceded by a few header rows (entity name, year, column titles) and
interleaved with closing/total lines. Rows are kept only when they carry a
valid date; rows with fewer than four cells are skipped. Rejected rows are
counted, not logged one by one.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from .classify import classify
from .config import ImportConfig
from .filenames import SourceFile
from .html_table import RawRow
from .models import NormalizedTransaction
from .normalize import (
    clean_description,
    detect_default_year,
    fold_text,
    normalize_description,
    parse_amount,
    parse_date,
)

logger = logging.getLogger(__name__)

MIN_LEDGER_CELLS = 4


@dataclass
class LedgerParse:
    """
    Outcome of parsing one ledger file.

    Attributes:
        year: Year used for "DD/MM" dates.
        transactions: Normalized transactions, in file order.
        rows: Number of rows seen.
        dropped_rows: Rows with at least four cells that did not produce a
            transaction (no date, summary line, empty line).
    """

    year: int
    transactions: list[NormalizedTransaction] = field(default_factory=list)
    rows: int = 0
    dropped_rows: int = 0


def net_amounts(credit: float, debit: float) -> tuple[float, float]:
    """
    Collapse a row carrying both a credit and a debit into one direction.

    Ledger rows are single-direction; a row with both amounts is netted so
    the balance is preserved.
    """
    if credit > 0 and debit > 0:
        net = round(credit - debit, 2)
        return (net, 0.0) if net >= 0 else (0.0, -net)
    return credit, debit


def _is_summary_line(description: str, markers: Iterable[str]) -> bool:
    folded = fold_text(description)
    return any(folded.startswith(fold_text(m)) for m in markers)


def parse_row(
    row: RawRow,
    year: int,
    config: ImportConfig,
    owner_artiste: Optional[str] = None,
    owner_projet: Optional[str] = None,
) -> Optional[NormalizedTransaction]:
    """
    Turn one ledger row into a transaction.

    Returns None when the row is not a transaction.
    """
    if len(row) < MIN_LEDGER_CELLS:
        return None

    norm = config.normalizer
    date = parse_date(row.cell(0), year, norm.closing_markers)
    if date is None:
        return None

    credit, debit = net_amounts(parse_amount(row.cell(1)), parse_amount(row.cell(2)))
    raw_description = clean_description(row.cell(3))

    if credit == 0 and debit == 0 and not raw_description:
        return None
    if raw_description and _is_summary_line(raw_description, norm.summary_markers):
        return None

    description = normalize_description(
        raw_description, credit, debit, norm.max_description_length
    )
    result = classify(
        description,
        config.categories,
        config.resolver,
        owner_artiste=owner_artiste,
        owner_projet=owner_projet,
    )
    return NormalizedTransaction(
        date=date,
        description=description,
        credit=credit,
        debit=debit,
        categorie=result.categorie,
        artiste=result.artiste,
        projet=result.projet,
        source=row.source,
    )


def parse_ledger(
    rows: list[RawRow],
    source: SourceFile,
    config: ImportConfig,
    fallback_year: Optional[int] = None,
) -> LedgerParse:
    """
    Parse all rows of one artist or project ledger.

    Args:
        rows: Rows extracted from the file.
        source: Resolved classification of the file (gives the owner).
        config: Import configuration.
        fallback_year: Year used when the file declares none (defaults to
            the current calendar year).
    """
    year = detect_default_year(
        (r.cells for r in rows),
        scan_rows=config.normalizer.year_scan_rows,
        fallback=fallback_year,
    )
    parsed = LedgerParse(year=year, rows=len(rows))

    for row in rows:
        tx = parse_row(
            row,
            year,
            config,
            owner_artiste=source.artiste,
            owner_projet=source.projet,
        )
        if tx is None:
            if len(row) >= MIN_LEDGER_CELLS:
                parsed.dropped_rows += 1
            continue
        parsed.transactions.append(tx)

    logger.debug(
        "%s: year %s, %d rows, %d transactions, %d dropped",
        source.filename,
        year,
        parsed.rows,
        len(parsed.transactions),
        parsed.dropped_rows,
    )
    return parsed
