import pytest

from ovni_import.aggregate import (
    TOTALS_COLUMNS,
    dedup_key,
    deduplicate,
    entity_totals,
    sort_by_date,
    transactions_to_frame,
    yearly_totals,
)
from ovni_import.models import NormalizedTransaction


def tx(date, credit=0.0, debit=0.0, description="x", artiste=None, projet=None, **kw):
    """Helper to build a NormalizedTransaction with sensible defaults."""
    return NormalizedTransaction(
        date=date,
        description=description,
        credit=credit,
        debit=debit,
        artiste=artiste,
        projet=projet,
        **kw,
    )


def test_dedup_key_uses_description_prefix():
    a = tx("2024-03-05", 150.0, description="A" * 50 + " première version")
    b = tx("2024-03-05", 150.0, description="A" * 50 + " seconde")
    assert dedup_key(a) == dedup_key(b)
    assert dedup_key(a, prefix_length=60) != dedup_key(b, prefix_length=60)


def test_deduplicate_keeps_first_occurrence_and_order():
    a = tx("2024-01-02", 10.0, description="Achat", source="Emma.html")
    b = tx("2024-01-01", 5.0, description="Autre")
    a_twin = tx("2024-01-02", 10.0, description="Achat", source="LE TALU.html")

    out = deduplicate([a, b, a_twin])
    assert out == [a, b]
    assert out[0].source == "Emma.html"


def test_deduplicate_merges_attribution_of_dropped_twin():
    """An artist-ledger row and its project-ledger twin become one row."""
    from_artist = tx("2024-03-05", 150.0, description="Cachet concert", artiste="Emma")
    from_project = tx("2024-03-05", 150.0, description="Cachet concert", projet="TALU")

    out = deduplicate([from_artist, from_project])
    assert len(out) == 1
    assert out[0].artiste == "Emma"
    assert out[0].projet == "TALU"


def test_deduplicate_is_idempotent():
    rows = [
        tx("2024-03-05", 150.0, description="Cachet", artiste="Emma"),
        tx("2024-03-05", 150.0, description="Cachet", projet="TALU"),
        tx("2024-03-06", debit=20.0, description="Cordes"),
        tx("2024-03-06", debit=20.0, description="Cordes"),
    ]
    once = deduplicate(rows)
    assert deduplicate(once) == once
    assert len(once) == 2


def test_different_amounts_are_not_duplicates():
    rows = [tx("2024-03-05", 150.0), tx("2024-03-05", 151.0), tx("2024-03-05", debit=150.0)]
    assert len(deduplicate(rows)) == 3


def test_sort_by_date_is_stable():
    a = tx("2024-02-01", description="a")
    b = tx("2023-12-31", description="b")
    c = tx("2024-02-01", description="c")
    assert [t.description for t in sort_by_date([a, b, c])] == ["b", "a", "c"]


def test_transactions_to_frame_columns():
    df = transactions_to_frame([tx("2024-01-01", 1.0, artiste="Emma")])
    assert list(df.columns) == [
        "date",
        "description",
        "credit",
        "debit",
        "categorie",
        "artiste",
        "projet",
        "source",
    ]
    assert df.loc[0, "artiste"] == "Emma"


def test_entity_totals_per_artist():
    rows = [
        tx("2024-01-01", 100.0, artiste="Emma"),
        tx("2024-01-02", debit=30.5, artiste="Emma"),
        tx("2024-01-03", 20.0, artiste="Iris"),
        tx("2024-01-04", 999.0),
    ]
    totals = entity_totals(rows, by="artiste")

    assert list(totals.columns) == TOTALS_COLUMNS
    assert list(totals["entity"]) == ["Emma", "Iris"]

    emma = totals.set_index("entity").loc["Emma"]
    assert emma["transactions"] == 2
    assert emma["total_credit"] == pytest.approx(100.0)
    assert emma["total_debit"] == pytest.approx(30.5)
    assert emma["solde"] == pytest.approx(69.5)


def test_entity_totals_match_underlying_transactions():
    rows = [
        tx("2024-01-01", 12.34, projet="TALU"),
        tx("2024-01-02", debit=0.66, projet="TALU"),
        tx("2024-01-03", 7.0, projet="WP"),
        tx("2024-01-04", debit=3.0, projet="WP", artiste="Lou"),
    ]
    totals = entity_totals(rows, by="projet")
    assert totals["total_credit"].sum() == pytest.approx(sum(t.credit for t in rows))
    assert totals["total_debit"].sum() == pytest.approx(sum(t.debit for t in rows))
    for _, row in totals.iterrows():
        assert row["solde"] == pytest.approx(row["total_credit"] - row["total_debit"])


def test_entity_totals_empty_and_invalid_key():
    assert entity_totals([], by="projet").empty
    with pytest.raises(ValueError):
        entity_totals([], by="categorie")


def test_yearly_totals():
    rows = [
        tx("2023-12-31", 10.0),
        tx("2024-01-01", 5.0),
        tx("2024-06-01", debit=2.0),
    ]
    totals = yearly_totals(rows).set_index("entity")
    assert list(totals.index) == [2023, 2024]
    assert totals.loc[2024, "transactions"] == 2
    assert totals.loc[2024, "solde"] == pytest.approx(3.0)
    assert yearly_totals([]).empty


def test_transaction_year_and_signed_amount():
    assert tx("2024-03-05", 150.0).year == 2024
    assert tx("2024-03-05", 150.0).amount == pytest.approx(150.0)
    assert tx("2024-03-06", debit=42.5).amount == pytest.approx(-42.5)


def test_yearly_totals_accepts_a_generator():
    rows = (t for t in [tx("2021-01-01", 1.0), tx("2021-02-01", 2.0)])
    totals = yearly_totals(rows).set_index("entity")
    assert totals.loc[2021, "total_credit"] == pytest.approx(3.0)
