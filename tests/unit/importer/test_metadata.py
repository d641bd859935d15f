"""Tests for the exam metadata CSV parser."""

from app.importer.inference import extract_year
from app.importer.metadata import MetadataRow, is_date_header, parse_metadata
from tests.conftest import metadata_csv


def test_date_header_applies_to_following_rows():
    """Test: A date header row dates every row until the next header."""
    text = metadata_csv(
        '"03-11-2025:\n2.00 PM",,,',
        ",133750,BBA3CJ201 - Domestic Logistic Management,42",
        ",133751,BBA3CJ202 - Financial Management,40",
        "05-11-2025,,,",
        ",133760,COM3CJ201 - Cost Accounting,30",
    )

    rows = parse_metadata(text)

    assert [row.code for row in rows] == ["133750", "133751", "133760"]
    assert rows[0].exam_date == "03-11-2025:\n2.00 PM"
    assert rows[1].exam_date == "03-11-2025:\n2.00 PM"
    assert rows[2].exam_date == "05-11-2025"
    assert rows[0] == MetadataRow(
        exam_date="03-11-2025:\n2.00 PM",
        code="133750",
        title="BBA3CJ201 - Domestic Logistic Management",
        script_count="42",
    )


def test_rows_without_code_or_title_are_dropped():
    """Test: Rows with a blank code or blank title emit nothing."""
    text = metadata_csv(
        "03-11-2025,,,",
        ",,BBA3CJ201 - Domestic Logistic Management,42",
        ",133751,,40",
        ",  ,   ,",
        ",133752,BBA3CJ203 - Operations,12",
    )

    rows = parse_metadata(text)

    assert [row.code for row in rows] == ["133752"]


def test_first_three_records_are_skipped():
    """Test: Header records never become rows, even if they look like data."""
    text = (
        "01-01-2024,999,FAKE1CJ100 - Header Row,1\n"
        "a,b,c,d\n"
        "e,f,g,h\n"
        "03-11-2025,,,\n"
        ",133750,BBA3CJ201 - Logistics,42\n"
    )

    rows = parse_metadata(text)

    assert len(rows) == 1
    assert rows[0].code == "133750"


def test_row_without_header_uses_its_own_date():
    """Test: Before any date header, a row keeps the date in its first cell."""
    text = metadata_csv("12-04-2023,133750,BBA3CJ201 - Logistics,42")

    rows = parse_metadata(text)

    assert rows[0].exam_date == "12-04-2023"


def test_blank_lines_and_bom_are_ignored():
    text = "\ufeff" + metadata_csv(
        "",
        "03-11-2025,,,",
        "",
        ",133750,BBA3CJ201 - Logistics,42",
    )

    rows = parse_metadata(text)

    assert len(rows) == 1
    assert rows[0].exam_date == "03-11-2025"


def test_cells_are_trimmed():
    text = metadata_csv(" 03-11-2025 ,,,", " , 133750 , BBA3CJ201 - Logistics ,42")

    rows = parse_metadata(text)

    assert rows[0].code == "133750"
    assert rows[0].title == "BBA3CJ201 - Logistics"
    assert rows[0].exam_date == "03-11-2025"


def test_is_date_header():
    assert is_date_header(["03-11-2025:\n2.00 PM", "", "", ""])
    assert not is_date_header(["03-11-2025", "133750", "BBA3CJ201 - X", ""])
    assert not is_date_header(["Forenoon", "", "", ""])
    assert not is_date_header([])


def test_month_name_date_header_dates_following_rows():
    """Test: A spreadsheet date with a month name is still a date header."""
    text = metadata_csv(
        "03-Nov-2025,,,",
        ",133750,BBA3CJ201 - Logistics,42",
    )

    rows = parse_metadata(text)

    assert len(rows) == 1
    assert rows[0].exam_date == "03-Nov-2025"
    assert extract_year(rows[0].exam_date) == 2025


def test_is_date_header_accepts_mixed_date_formats():
    assert is_date_header(["03-Nov-2025", "", "", ""])
    assert is_date_header(["2025-11-03", "", "", ""])
    assert not is_date_header(["Session - Forenoon", "", "", ""])
