import re
from datetime import datetime, timezone

from ovni_import.config import ImportConfig, SqlConfig
from ovni_import.models import NormalizedTransaction
from ovni_import.sql_emitter import (
    VERIFICATION_QUERY,
    artist_ref,
    group_by_owner,
    project_ref,
    render_artist_inserts,
    render_project_inserts,
    render_seed_sql,
    render_transaction_insert,
    sql_literal,
    write_seed_sql,
)


def sample_transactions():
    """Helper: one artist row, one project row, one unattributed row."""
    return [
        NormalizedTransaction(
            "2024-03-05", "Cachet concert Emma", 150.0, 0.0, "cachet", artiste="Emma"
        ),
        NormalizedTransaction(
            "2024-03-06", "Impression flyers", 0.0, 42.5, "autre", projet="TALU"
        ),
        NormalizedTransaction("2024-03-07", "Frais Triodos", 0.0, 3.0, "frais_bancaires"),
    ]


def test_sql_literal():
    assert sql_literal("O'Brien") == "'O''Brien'"
    assert sql_literal(None) == "NULL"


def test_entity_refs_are_subqueries_on_natural_keys():
    ref = artist_ref("Léa")
    assert ref.startswith("(SELECT id FROM artistes WHERE nom ILIKE 'Léa%'")
    assert "ORDER BY length(nom) LIMIT 1" in ref
    assert "code ILIKE 'TALU%'" in project_ref("TALU")
    assert artist_ref(None) == "NULL"
    assert project_ref("") == "NULL"


def test_artist_inserts_cycle_through_palette():
    config = SqlConfig(artist_colors=("#111111", "#222222"))
    sql = render_artist_inserts(["Emma", "Iris", "Lou"], config)
    lines = sql.splitlines()
    assert len(lines) == 3
    assert lines[0] == (
        "INSERT INTO artistes (nom, actif, couleur) VALUES ('Emma', true, '#111111') "
        "ON CONFLICT (nom) DO NOTHING;"
    )
    assert "'#222222'" in lines[1]
    assert "'#111111'" in lines[2]


def test_project_inserts():
    sql = render_project_inserts([("TALU", "LE TALU")], SqlConfig())
    assert sql == (
        "INSERT INTO projets (nom, code, statut) VALUES ('LE TALU', 'TALU', 'actif') "
        "ON CONFLICT (code) DO NOTHING;"
    )


def test_transaction_insert_does_not_escape_twice():
    tx = NormalizedTransaction("2024-03-03", "Location d''un van", 0.0, 45.0, "deplacement")
    sql = render_transaction_insert(tx)
    assert "'Location d''un van'" in sql
    assert "''''" not in sql
    assert "0.00, 45.00, NULL, NULL, 'deplacement')" in sql
    assert sql.endswith("ON CONFLICT DO NOTHING;")


def test_group_by_owner_order():
    groups = group_by_owner(sample_transactions())
    assert [label for label, _ in groups] == ["Artiste: Emma", "Projet: TALU", "Caisse ASBL"]


def test_seed_script_layout():
    txs = sample_transactions()
    sql = render_seed_sql(
        txs,
        ["Emma"],
        ["TALU"],
        ImportConfig.default(),
        generated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )

    assert "-- Généré le 2025-01-01T00:00:00+00:00" in sql
    assert "-- Total: 3 transactions" in sql
    assert "-- Solde: 104.50" in sql

    # Section order: artists, projects, then transaction groups, then the check.
    positions = [
        sql.index("INSERT INTO artistes"),
        sql.index("INSERT INTO projets"),
        sql.index("-- Artiste: Emma (1 transactions)"),
        sql.index("-- Projet: TALU (1 transactions)"),
        sql.index("-- Caisse ASBL (1 transactions)"),
        sql.index(VERIFICATION_QUERY),
    ]
    assert positions == sorted(positions)
    assert "VALUES ('LE TALU', 'TALU', 'actif')" in sql
    assert sql.count("INSERT INTO transactions") == 3


def test_every_insert_is_idempotent():
    sql = render_seed_sql(sample_transactions(), ["Emma"], ["TALU"], ImportConfig.default())
    inserts = len(re.findall(r"^INSERT INTO", sql, flags=re.MULTILINE))
    guards = sql.count("ON CONFLICT")
    assert inserts == 5
    assert guards == inserts


def test_empty_script_is_still_valid():
    sql = render_seed_sql([], [], [], ImportConfig.default())
    assert "-- Total: 0 transactions" in sql
    assert "INSERT INTO" not in sql
    assert sql.endswith(VERIFICATION_QUERY)


def test_write_seed_sql_creates_parents(tmp_path):
    target = tmp_path / "supabase" / "seed" / "seed_transactions.sql"
    written = write_seed_sql(target, "SELECT 'é';\n")
    assert written == target
    assert target.read_bytes() == "SELECT 'é';\n".encode("utf-8")
