# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Transaction classifier.

Infers, from a free-text description:
- the category, using the ordered `CategoryRule` table of the configuration
  (first match wins, so the table order is the precedence order),
- the counterparty artist and project, using the same keyword tables as the
  filename resolver.

Counterparty precedence
-----------------------
An entity mentioned in the description wins over the file's own entity.
The owner of the ledger file (artist of an artist ledger, project of a
project ledger) is only the fallback when the text names nobody.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from .config import CategoryRule, ProjectKeyword, ResolverConfig
from .models import DEFAULT_CATEGORIE
from .normalize import fold_text


@dataclass(frozen=True)
class Classification:
    """Result of classifying one description."""

    categorie: str
    artiste: Optional[str] = None
    projet: Optional[str] = None


def detect_categorie(description: str, rules: Sequence[CategoryRule]) -> str:
    """Return the category of the first matching rule, or "autre"."""
    folded = fold_text(description.replace("''", "'"))
    for rule in rules:
        if rule.matches(folded):
            return rule.categorie
    return DEFAULT_CATEGORIE


def _project_in_text(project: ProjectKeyword, folded: str) -> bool:
    if project.exact:
        return re.search(rf"\b{re.escape(project.keyword)}\b", folded) is not None
    return project.keyword in folded


def infer_artiste(description: str, config: ResolverConfig) -> Optional[str]:
    folded = fold_text(description)
    for artist in config.artists:
        if artist.keyword in folded:
            return artist.name
    return None


def infer_projet(description: str, config: ResolverConfig) -> Optional[str]:
    folded = fold_text(description)
    for project in config.projects:
        if _project_in_text(project, folded):
            return project.code
    return None


def infer_counterparties(
    description: str, config: ResolverConfig
) -> tuple[Optional[str], Optional[str]]:
    """Return the (artist, project) named in `description`, each possibly None."""
    return infer_artiste(description, config), infer_projet(description, config)


def classify(
    description: str,
    rules: Sequence[CategoryRule],
    resolver: ResolverConfig,
    owner_artiste: Optional[str] = None,
    owner_projet: Optional[str] = None,
) -> Classification:
    """
    Classify one description.

    Args:
        description: Normalized description.
        rules: Ordered category rules.
        resolver: Artist/project keyword tables.
        owner_artiste: Artist owning the ledger file, if any.
        owner_projet: Project owning the ledger file, if any.

    Returns:
        A Classification; artist and project are independent of each other.
    """
    artiste, projet = infer_counterparties(description, resolver)
    return Classification(
        categorie=detect_categorie(description, rules),
        artiste=artiste or owner_artiste,
        projet=projet or owner_projet,
    )
