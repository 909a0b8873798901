# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
O.V.N.I Import
--------------

One-shot import pipeline for the bookkeeping of O.V.N.I ASBL, an arts
nonprofit that tracks money per artist, per project and on a shared
operating account ("Caisse ASBL").

The association kept its books in Google Sheets. This package reads the
HTML exports of those sheets and turns them into a SQL seed script for the
bookkeeping web application:

- filename resolution (artist ledger, project ledger, year summary),
- tolerant HTML table extraction,
- date / amount / description normalization,
- category and counterparty inference from free text,
- cross-file deduplication and per-entity totals,
- year-summary cross-check,
- idempotent SQL emission (artists, projects, transactions).

Version: 0.1.0

Usage:
    python -m ovni_import.cli --help
"""

__all__ = [
    "aggregate",
    "classify",
    "cli",
    "config",
    "filenames",
    "html_table",
    "ledger",
    "logging_setup",
    "models",
    "normalize",
    "pipeline",
    "sql_emitter",
    "year_summary",
]

__version__ = "0.1.0"
