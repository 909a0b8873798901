# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Core data types shared by every stage of the import pipeline.

A `NormalizedTransaction` is the canonical unit of output: one dated,
single-direction money movement, attributed by natural key (artist display
name, project code) rather than by database identifier. Identifiers only
exist once the target database has run the emitted seed script.
"""

from dataclasses import dataclass
from typing import Literal, Optional

Categorie = Literal[
    "smart",
    "thoman",
    "frais_bancaires",
    "loyer",
    "materiel",
    "deplacement",
    "cachet",
    "subvention",
    "transfert_interne",
    "autre",
]
"""
Closed set of expense/income categories understood by the application.

Values
------
- "smart"             : SMart (artists' cooperative) invoices and payments.
- "thoman"            : Thomann orders (music gear retailer).
- "frais_bancaires"   : bank fees (Triodos).
- "loyer"             : rent (Communa studios).
- "materiel"          : equipment purchases.
- "deplacement"       : travel.
- "cachet"            : artist fees.
- "subvention"        : grants.
- "transfert_interne" : transfers between internal accounts.
- "autre"             : anything else.
"""

CATEGORIES: tuple[str, ...] = (
    "smart",
    "thoman",
    "frais_bancaires",
    "loyer",
    "materiel",
    "deplacement",
    "cachet",
    "subvention",
    "transfert_interne",
    "autre",
)

DEFAULT_CATEGORIE = "autre"


@dataclass(frozen=True)
class NormalizedTransaction:
    """
    One normalized ledger line, ready to be emitted as SQL.

    Attributes
    ----------
    date:
        ISO date string "YYYY-MM-DD".
    description:
        Cleaned description, single quotes already doubled for SQL,
        at most 500 characters.
    credit, debit:
        Non-negative amounts. At most one of them is non-zero.
    categorie:
        One of `CATEGORIES`.
    artiste:
        Optional artist display name (natural key).
    projet:
        Optional project code (natural key).
    source:
        Name of the file the row was extracted from (reporting only).
    """

    date: str
    description: str
    credit: float
    debit: float
    categorie: str = DEFAULT_CATEGORIE
    artiste: Optional[str] = None
    projet: Optional[str] = None
    source: str = ""

    @property
    def year(self) -> int:
        return int(self.date[:4])

    @property
    def amount(self) -> float:
        """Signed amount (credit - debit)."""
        return self.credit - self.debit
