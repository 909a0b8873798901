# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
SQL seed script emitter.

This is the only module that knows the target (PostgreSQL) schema:

    artistes(nom, actif, couleur)
    projets(nom, code, statut)
    transactions(date, description, credit, debit, artiste_id, projet_id, categorie)

Script layout
-------------
1) header comment (generation time, totals),
2) artist inserts, ``ON CONFLICT (nom) DO NOTHING``,
3) project inserts, ``ON CONFLICT (code) DO NOTHING``,
4) transaction inserts grouped by owning entity (artists, then projects,
   then unattributed "Caisse ASBL" rows), one statement per transaction,
   each guarded with ``ON CONFLICT DO NOTHING``,
5) a verification query counting transactions per artist and per project.

Foreign keys are never literal ids: the ids only exist once the database
has run the script. Each transaction resolves them with a subquery on the
natural key, tolerant of small variations of the stored name:

    (SELECT id FROM artistes WHERE nom ILIKE 'Léa%' ORDER BY length(nom) LIMIT 1)

Ordering by length makes "Jul" resolve to "Jul" rather than "Juliette".

Transaction descriptions arrive already SQL-escaped from the normalizer
and are written as-is; artist names and project codes are escaped here.

The emitter only produces text. It never opens a database connection.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from os import PathLike
from pathlib import Path
from typing import Optional, Union

from .config import ImportConfig, SqlConfig
from .models import NormalizedTransaction
from .normalize import escape_sql_literal

_RULE = "-- " + "=" * 45


def sql_literal(value: Optional[str]) -> str:
    """Quote `value` as a SQL string literal ('NULL' for None)."""
    if value is None:
        return "NULL"
    return f"'{escape_sql_literal(value)}'"


def format_amount(value: float) -> str:
    return f"{value:.2f}"


def artist_ref(name: Optional[str]) -> str:
    if not name:
        return "NULL"
    pattern = escape_sql_literal(name)
    return (
        f"(SELECT id FROM artistes WHERE nom ILIKE '{pattern}%' "
        "ORDER BY length(nom) LIMIT 1)"
    )


def project_ref(code: Optional[str]) -> str:
    if not code:
        return "NULL"
    pattern = escape_sql_literal(code)
    return (
        f"(SELECT id FROM projets WHERE code ILIKE '{pattern}%' "
        "ORDER BY length(code) LIMIT 1)"
    )


def _banner(title: str) -> str:
    return f"{_RULE}\n-- {title}\n{_RULE}\n"


def render_artist_inserts(artists: Sequence[str], sql_config: SqlConfig) -> str:
    """One idempotent insert per artist, colors taken from the palette in turn."""
    colors = sql_config.artist_colors
    lines = [
        "INSERT INTO artistes (nom, actif, couleur) "
        f"VALUES ({sql_literal(nom)}, true, {sql_literal(colors[i % len(colors)])}) "
        "ON CONFLICT (nom) DO NOTHING;"
        for i, nom in enumerate(artists)
    ]
    return "\n".join(lines)


def render_project_inserts(
    projects: Iterable[tuple[str, str]], sql_config: SqlConfig
) -> str:
    """
    One idempotent insert per project.

    Args:
        projects: (code, display name) pairs.
        sql_config: SQL options (project status).
    """
    lines = [
        "INSERT INTO projets (nom, code, statut) "
        f"VALUES ({sql_literal(nom)}, {sql_literal(code)}, "
        f"{sql_literal(sql_config.project_status)}) "
        "ON CONFLICT (code) DO NOTHING;"
        for code, nom in projects
    ]
    return "\n".join(lines)


def render_transaction_insert(tx: NormalizedTransaction) -> str:
    return (
        "INSERT INTO transactions "
        "(date, description, credit, debit, artiste_id, projet_id, categorie)\n"
        f"VALUES ('{tx.date}', '{tx.description}', {format_amount(tx.credit)}, "
        f"{format_amount(tx.debit)}, {artist_ref(tx.artiste)}, "
        f"{project_ref(tx.projet)}, {sql_literal(tx.categorie)})\n"
        "ON CONFLICT DO NOTHING;"
    )


def group_by_owner(
    transactions: Iterable[NormalizedTransaction],
    unattributed_label: str = "Caisse ASBL",
) -> list[tuple[str, list[NormalizedTransaction]]]:
    """
    Group transactions for readability of the script.

    A transaction belongs to its artist when it has one, otherwise to its
    project, otherwise to the unattributed group. Groups are returned as
    (label, transactions): artists sorted by name, then projects sorted by
    code, then the unattributed group.
    """
    by_artist: dict[str, list[NormalizedTransaction]] = {}
    by_project: dict[str, list[NormalizedTransaction]] = {}
    unattributed: list[NormalizedTransaction] = []

    for tx in transactions:
        if tx.artiste:
            by_artist.setdefault(tx.artiste, []).append(tx)
        elif tx.projet:
            by_project.setdefault(tx.projet, []).append(tx)
        else:
            unattributed.append(tx)

    groups = [(f"Artiste: {name}", by_artist[name]) for name in sorted(by_artist)]
    groups += [(f"Projet: {code}", by_project[code]) for code in sorted(by_project)]
    if unattributed:
        groups.append((unattributed_label, unattributed))
    return groups


VERIFICATION_QUERY = """\
SELECT
  'Transactions importées' AS type,
  COUNT(*) AS nombre
FROM transactions
UNION ALL
SELECT
  'Par artiste: ' || a.nom,
  COUNT(t.id)
FROM artistes a
LEFT JOIN transactions t ON t.artiste_id = a.id
GROUP BY a.nom
UNION ALL
SELECT
  'Par projet: ' || p.code,
  COUNT(t.id)
FROM projets p
LEFT JOIN transactions t ON t.projet_id = p.id
GROUP BY p.code;
"""


def render_seed_sql(
    transactions: Sequence[NormalizedTransaction],
    artists: Sequence[str],
    projects: Sequence[str],
    config: ImportConfig,
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Render the complete seed script.

    Args:
        transactions: Deduplicated, date-sorted transactions.
        artists: Distinct artist display names to insert.
        projects: Distinct project codes to insert.
        config: Import configuration (project names, SQL options).
        generated_at: Timestamp written in the header (defaults to now, UTC).

    Returns:
        The SQL script as a single string ending with a newline.
    """
    stamp = (generated_at or datetime.now(timezone.utc)).isoformat()
    total_credit = round(sum(tx.credit for tx in transactions), 2)
    total_debit = round(sum(tx.debit for tx in transactions), 2)

    parts = [
        _banner("O.V.N.I Compta - Import des transactions")
        + f"-- Généré le {stamp}\n"
        + f"-- Total: {len(transactions)} transactions\n"
        + f"-- Crédit total: {format_amount(total_credit)}\n"
        + f"-- Débit total: {format_amount(total_debit)}\n"
        + f"-- Solde: {format_amount(total_credit - total_debit)}\n",
        _banner(f"Artistes ({len(artists)})")
        + "\n"
        + render_artist_inserts(artists, config.sql)
        + "\n",
        _banner(f"Projets ({len(projects)})")
        + "\n"
        + render_project_inserts(
            [(code, config.resolver.project_name(code)) for code in projects],
            config.sql,
        )
        + "\n",
    ]

    for label, group in group_by_owner(transactions, config.sql.unattributed_label):
        body = "\n".join(render_transaction_insert(tx) for tx in group)
        parts.append(_banner(f"{label} ({len(group)} transactions)") + "\n" + body + "\n")

    parts.append(_banner("Vérification") + VERIFICATION_QUERY)
    return "\n".join(parts)


def write_seed_sql(path: Union[str, "PathLike[str]"], sql: str) -> Path:
    """Write the script as UTF-8 (no BOM), creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(sql, encoding="utf-8")
    return out
