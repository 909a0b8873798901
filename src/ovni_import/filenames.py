# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Filename resolver.

Each exported spreadsheet tab is saved as one HTML file whose name is the
only hint of what it contains. File names were typed by hand, so they vary
in accents ("Maïa.html" vs "maia.html"), Unicode composition (macOS saves
decomposed names), case and spacing.

Resolution order
----------------
1) 4-digit base name ("2024.html")      -> year summary
2) ignore list ("asbl.html", ...)       -> ignored
3) exact project keyword ("geo.html")   -> project
4) artist keyword, substring            -> artist
5) project keyword, substring           -> project
6) anything else                        -> unmapped

Step 3 runs before the artist table so that "geo.html" resolves to the
GEO project while "geoffrey.html" still resolves to the artist Geoffrey.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import ResolverConfig
from .normalize import fold_text

_YEAR_BASENAME_RE = re.compile(r"^\d{4}$")


class SourceKind(str, Enum):
    """What a source file contains."""

    ARTIST = "artist"
    PROJECT = "project"
    YEAR_SUMMARY = "year_summary"
    IGNORED = "ignored"
    UNMAPPED = "unmapped"


@dataclass(frozen=True)
class SourceFile:
    """
    Classification of one source file.

    Attributes:
        filename: File name as found on disk.
        kind: Resolved SourceKind.
        entity: Artist display name, project code or year (as a string),
            depending on `kind`. None for ignored/unmapped files.
    """

    filename: str
    kind: SourceKind
    entity: Optional[str] = None

    @property
    def is_ledger(self) -> bool:
        return self.kind in (SourceKind.ARTIST, SourceKind.PROJECT)

    @property
    def artiste(self) -> Optional[str]:
        return self.entity if self.kind is SourceKind.ARTIST else None

    @property
    def projet(self) -> Optional[str]:
        return self.entity if self.kind is SourceKind.PROJECT else None


def normalize_filename(filename: str) -> str:
    """Decompose, strip diacritics and lowercase a file name."""
    return fold_text(filename)


def base_name(normalized: str) -> str:
    """Strip the ``.html``/``.htm`` extension and surrounding spaces."""
    name = normalized.strip()
    for ext in (".html", ".htm"):
        if name.endswith(ext):
            name = name[: -len(ext)]
            break
    return name.strip()


def resolve_filename(filename: str, config: ResolverConfig) -> SourceFile:
    """
    Classify a source file from its name.

    Args:
        filename: Raw file name (with extension).
        config: Keyword tables and ignore list.

    Returns:
        A SourceFile. Unmapped files are returned with kind UNMAPPED; the
        caller decides how to report them.
    """
    normalized = normalize_filename(filename)
    base = base_name(normalized)

    if _YEAR_BASENAME_RE.match(base):
        return SourceFile(filename, SourceKind.YEAR_SUMMARY, base)

    ignored = {base_name(fold_text(f)) for f in config.ignore_files}
    if base in ignored:
        return SourceFile(filename, SourceKind.IGNORED)

    for project in config.projects:
        if project.exact and base == project.keyword:
            return SourceFile(filename, SourceKind.PROJECT, project.code)

    for artist in config.artists:
        if artist.keyword in base:
            return SourceFile(filename, SourceKind.ARTIST, artist.name)

    for project in config.projects:
        if not project.exact and project.keyword in base:
            return SourceFile(filename, SourceKind.PROJECT, project.code)

    return SourceFile(filename, SourceKind.UNMAPPED)
