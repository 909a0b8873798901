# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Field normalization helpers.

This module turns raw cell text extracted from the spreadsheet exports into
typed values:

- dates       -> ISO strings ("YYYY-MM-DD"), or None when the cell is not a
                 usable date,
- amounts     -> non-negative floats (the direction is carried by the
                 credit/debit columns, never by the sign),
- descriptions-> cleaned, SQL-safe strings capped in length.

Accepted date forms
-------------------
    DD/MM        -> combined with the contextual (file) year
    DD/MM/YY     -> 2000 + YY
    DD/MM/YYYY   -> as written

When the month part is greater than 12 while the day part is not, the two
are swapped: a few rows of the exports carry US-style dates ("1/23/2026").

Nothing in this module raises on bad input: unusable dates return None and
unusable amounts return 0.0, matching how the spreadsheets were kept
(malformed numbers mean "no amount").
"""

import html
import re
import unicodedata
from collections.abc import Iterable, Sequence
from datetime import date
from typing import Optional

# Markers are compared folded, so "cloture" also matches "Clôture".
DEFAULT_CLOSING_MARKERS: tuple[str, ...] = ("total", "cloture", "report")

_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})(?:/(\d{4}|\d{2}))?(?![\d/])")
_YEAR_RE = re.compile(r"^(20\d{2})$")
_WS_RE = re.compile(r"\s+")
_CURRENCY_RE = re.compile(r"[€$£\s]")
_AMOUNT_TOKEN_RE = re.compile(r"-?\d[\d.,]*")
_THOUSANDS_DOT_RE = re.compile(r"\.(?=\d{3}(?:[.,]|$))")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_COMBINING_RE = re.compile("[%s-%s]" % (chr(0x0300), chr(0x036F)))


def fold_text(text: str) -> str:
    """Lowercase `text` and strip combining diacritical marks.

    "Maïa", "MAIA" and the NFD-decomposed form of "Maïa" all fold to "maia".
    """
    decomposed = unicodedata.normalize("NFD", text)
    return _COMBINING_RE.sub("", decomposed).lower()


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs (non-breaking spaces included) and trim."""
    return _WS_RE.sub(" ", text).strip()


def _is_closing_line(text: str, closing_markers: Iterable[str]) -> bool:
    folded = fold_text(text)
    return any(folded.startswith(fold_text(m)) for m in closing_markers)


def parse_date(
    text: Optional[str],
    default_year: int,
    closing_markers: Sequence[str] = DEFAULT_CLOSING_MARKERS,
) -> Optional[str]:
    """
    Parse a ledger date cell into an ISO date string.

    Args:
        text: Raw cell text.
        default_year: Year used for "DD/MM" cells.
        closing_markers: Prefixes (case- and accent-insensitive) identifying
            totals/closing lines, which never carry a date.

    Returns:
        "YYYY-MM-DD", or None if the cell is not a valid date.
    """
    if not text:
        return None
    cleaned = collapse_whitespace(text)
    if not cleaned or _is_closing_line(cleaned, closing_markers):
        return None

    match = _DATE_RE.match(cleaned)
    if match is None:
        return None

    day = int(match.group(1))
    month = int(match.group(2))
    raw_year = match.group(3)
    if raw_year is None:
        year = default_year
    elif len(raw_year) == 2:
        year = 2000 + int(raw_year)
    else:
        year = int(raw_year)

    # US-style leak: "1/23/2026" can only mean January 23rd.
    if month > 12 and day <= 12:
        day, month = month, day

    if not (1 <= day <= 31 and 1 <= month <= 12):
        return None

    try:
        return date(year, month, day).isoformat()
    except ValueError:
        # e.g. 31/04 or 29/02 on a non-leap year
        return None


def detect_default_year(
    rows: Iterable[Sequence[str]],
    scan_rows: int = 10,
    fallback: Optional[int] = None,
) -> int:
    """
    Return the year declared in the header rows of a ledger.

    The first cell that is exactly a 4-digit year (20xx) within the first
    `scan_rows` rows wins. When none is found, `fallback` (or the current
    calendar year) is returned.
    """
    for i, cells in enumerate(rows):
        if i >= scan_rows:
            break
        for cell in cells:
            match = _YEAR_RE.match(cell.strip())
            if match:
                return int(match.group(1))
    return fallback if fallback is not None else date.today().year


def parse_amount(text: Optional[str]) -> float:
    """
    Parse a locale-formatted amount into a non-negative float.

    Examples:
        "150,00"      -> 150.0
        "-1 234,50 €" -> 1234.5
        "1.234,50"    -> 1234.5
        "30,00 + 5,00"-> 30.0   (only the leading number is read)
        "abc" / ""    -> 0.0
    """
    if not text:
        return 0.0
    s = _CURRENCY_RE.sub("", html.unescape(text))
    token = _AMOUNT_TOKEN_RE.search(s)
    if token is None:
        return 0.0
    number = token.group(0).rstrip(".,")
    # A dot followed by exactly three digits groups thousands ("1.234,50").
    number = _THOUSANDS_DOT_RE.sub("", number).replace(",", ".")
    match = _NUMBER_RE.match(number)
    if match is None:
        return 0.0
    return round(abs(float(match.group(0))), 2)


def clean_description(text: Optional[str]) -> str:
    """HTML-unescape, collapse whitespace and trim a description."""
    if not text:
        return ""
    return collapse_whitespace(html.unescape(text))


def escape_sql_literal(text: str) -> str:
    """Double single quotes so that `text` can sit inside '...'."""
    return text.replace("'", "''")


def _truncate_escaped(text: str, max_length: int) -> str:
    cut = text[:max_length]
    # An odd trailing run of quotes means a doubled quote was split in half.
    trailing = len(cut) - len(cut.rstrip("'"))
    if trailing % 2 == 1:
        cut = cut[:-1]
    return cut


def normalize_description(
    text: Optional[str],
    credit: float,
    debit: float,
    max_length: int = 500,
) -> str:
    """
    Build the stored description of a transaction.

    Empty descriptions are replaced by "Entrée" (money received) or "Sortie"
    (money spent). Single quotes are doubled for SQL and the result is capped
    at `max_length` characters.
    """
    cleaned = clean_description(text)
    if not cleaned:
        cleaned = "Entrée" if credit > 0 else "Sortie"
    return _truncate_escaped(escape_sql_literal(cleaned), max_length)
