# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
HTML table extraction.

The inputs are Google Sheets "Download as HTML" exports: one big <table>
whose rows carry a <th> row header (the sheet row number) followed by <td>
cells, with inline formatting (<div>, <span>, <a>, <br>) inside the cells.

Documents are parsed with BeautifulSoup (``html.parser``), which tolerates
the unclosed <td>/<tr> tags found in hand-edited exports. A cell owns the
text of its own subtree only: when a missing closing tag makes the parser
nest the next cell (or row) inside the previous one, the nested text is
attributed to the nested cell, not to its parent.

This module only does structural parsing. It yields every row, whatever its
width; deciding which rows are transactions is the ledger parser's job.

Public surface:
- ``RawRow``: one extracted row of cleaned cell texts.
- ``clean_cell_text``: strip tags/entities/whitespace from a cell fragment.
- ``iter_rows``: row extraction from HTML text, yielded in document order.
- ``read_rows``: read one file and extract its rows, never raising.
"""

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Union

from bs4 import BeautifulSoup, Comment, Tag

logger = logging.getLogger(__name__)

_PARSER = "html.parser"
_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class RawRow:
    """
    One table row before interpretation.

    Attributes:
        cells: Cleaned cell texts, in column order.
        source: Name of the file the row comes from.
        index: 0-based position of the row in the file.
    """

    cells: tuple[str, ...]
    source: str
    index: int

    def cell(self, i: int) -> str:
        """Return cell `i`, or an empty string when the row is shorter."""
        return self.cells[i] if i < len(self.cells) else ""

    def __len__(self) -> int:
        return len(self.cells)


def _parse(content: str) -> BeautifulSoup:
    soup = BeautifulSoup(content, _PARSER)
    for br in soup.find_all("br"):
        br.replace_with(" ")
    return soup


def _own_text(node: Tag, owner: str) -> str:
    """Text of `node`, leaving out strings that belong to a nested `owner` tag."""
    parts = [
        str(s)
        for s in node.find_all(string=True)
        if not isinstance(s, Comment) and s.find_parent(owner) is node
    ]
    return _WS_RE.sub(" ", "".join(parts)).strip()


def clean_cell_text(fragment: str) -> str:
    """
    Turn the inner HTML of a cell into plain text.

    Line breaks become spaces, nested tags are removed, entities
    (``&nbsp;``, ``&amp;``, ``&lt;``, ``&gt;``, ``&quot;``, ``&#39;``, ...)
    are decoded, whitespace runs are collapsed and the result is trimmed.
    """
    text = _parse(fragment).get_text()
    return _WS_RE.sub(" ", text).strip()


def iter_rows(content: str, source: str = "") -> Iterator[RawRow]:
    """
    Extract the rows of every table found in `content`.

    Args:
        content: Raw HTML text of one export file.
        source: File name attached to every yielded row.

    Yields:
        RawRow objects, in document order. Rows without any <td> cell (e.g.
        the column-letter header of Google Sheets exports) are yielded with
        an empty `cells` tuple.
    """
    soup = _parse(content)
    rows = soup.find_all("tr")
    if not rows:
        logger.warning("No table rows found in %s", source or "<html>")
        return

    for index, tr in enumerate(rows):
        cells = tuple(
            _own_text(td, "td") for td in tr.find_all("td") if td.find_parent("tr") is tr
        )
        yield RawRow(cells=cells, source=source, index=index)


def read_rows(path: Union[str, "PathLike[str]"]) -> list[RawRow]:
    """
    Read an HTML export and return all of its rows.

    Undecodable bytes are replaced rather than rejected. A file that cannot
    be read at all is logged and produces an empty list: one bad file must
    not stop the import of the others.
    """
    p = Path(path)
    try:
        content = p.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.warning("Could not read %s: %s", p, exc)
        return []
    return list(iter_rows(content, source=p.name))
