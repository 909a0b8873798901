import pytest

from ovni_import.normalize import (
    clean_description,
    detect_default_year,
    fold_text,
    normalize_description,
    parse_amount,
    parse_date,
)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text, expected",
    [
        ("05/03", "2024-03-05"),
        ("5/3", "2024-03-05"),
        ("15/03/2025", "2025-03-15"),
        ("01/03/25", "2025-03-01"),
        ("4/5/25", "2025-05-04"),
        ("31/12/2021", "2021-12-31"),
        (" 05/03 ", "2024-03-05"),
    ],
)
def test_parse_date_accepted_forms(text, expected):
    assert parse_date(text, 2024) == expected


def test_parse_date_us_style_month_day_is_swapped():
    """'1/23/2026' can only mean January 23rd."""
    assert parse_date("1/23/2026", 2024) == "2026-01-23"


@pytest.mark.parametrize("day", range(1, 29))
def test_parse_date_zero_pads_day_and_month(day):
    assert parse_date(f"{day}/7/2023", 2000) == f"2023-07-{day:02d}"


@pytest.mark.parametrize(
    "text",
    [
        "",
        None,
        "TOTAL",
        "Total janvier",
        "CLOTURE 2024",
        "Clôture",
        "report 2023",
        "DATE",
        "abc",
        "32/01/2024",
        "13/13/2024",
        "00/05",
        "31/04/2024",
        "05/03/202",
        "05/03/2024/1",
    ],
)
def test_parse_date_rejections(text):
    assert parse_date(text, 2024) is None


def test_detect_default_year_finds_header_year():
    rows = [("Emma", ""), ("", "2024"), ("DATE", "CREDIT", "DEBIT", "DESCRIPTION")]
    assert detect_default_year(rows, fallback=1999) == 2024


def test_detect_default_year_fallback_when_absent():
    rows = [("Emma",), ("DATE", "CREDIT", "DEBIT", "DESCRIPTION")]
    assert detect_default_year(rows, fallback=2021) == 2021


def test_detect_default_year_only_scans_leading_rows():
    rows = [("x",)] * 5 + [("2023",)]
    assert detect_default_year(rows, scan_rows=3, fallback=2020) == 2020


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text, expected",
    [
        ("150,00", 150.0),
        ("150", 150.0),
        ("12.5", 12.5),
        ("-45,20", 45.2),
        ("1 234,50 €", 1234.5),
        ("€ 99,99", 99.99),
        ("1.234,50", 1234.5),
        ("1 234,50", 1234.5),
        ("12,50.", 12.5),
        ("150,00 (remb.)", 150.0),
        ("30,00 + 5,00", 30.0),
        ("1.234.567,00", 1234567.0),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["", None, "abc", "€", "-"])
def test_parse_amount_defaults_to_zero(text):
    assert parse_amount(text) == 0.0


def test_parse_amount_is_never_negative():
    for raw in ["-1", "-0,5", "- 300,00", "(-12)"]:
        assert parse_amount(raw) >= 0


# ---------------------------------------------------------------------------
# Descriptions
# ---------------------------------------------------------------------------


def test_fold_text():
    assert fold_text("Clôture Maïa") == "cloture maia"


def test_clean_description_unescapes_and_collapses():
    assert clean_description("  Achat&nbsp;micro  &amp;   câble ") == "Achat micro & câble"


def test_normalize_description_doubles_quotes():
    assert normalize_description("Location d'un van", 0, 80) == "Location d''un van"


@pytest.mark.parametrize(
    "credit, debit, expected",
    [(100.0, 0.0, "Entrée"), (0.0, 50.0, "Sortie")],
)
def test_normalize_description_placeholder(credit, debit, expected):
    assert normalize_description("", credit, debit) == expected
    assert normalize_description("   ", credit, debit) == expected


def test_normalize_description_is_capped():
    out = normalize_description("x" * 800, 1, 0)
    assert len(out) == 500


def test_normalize_description_never_ends_with_half_a_quote():
    text = "a" * 499 + "'b"
    out = normalize_description(text, 1, 0)
    assert len(out) <= 500
    trailing = len(out) - len(out.rstrip("'"))
    assert trailing % 2 == 0
