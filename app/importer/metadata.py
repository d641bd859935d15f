"""Parser for the exam metadata spreadsheet exported as CSV.

Layout after the leading header rows::

    03-11-2025:\\n2.00 PM,,,
    ,133750,BBA3CJ201 - Domestic Logistic Management,42
    ,133751,BBA3CJ202 - Financial Management,40

A row with a date in the first column and nothing in the second is a
"date header": it is not a paper itself, but its date applies to every
following row until the next date header.
"""

import csv
import io
import re
from dataclasses import dataclass
from typing import List

HEADER_ROWS = 3

# Any digit and a dash: "03-11-2025", "03-Nov-2025", "2025-11-03"
_DATE_TOKEN = re.compile(r"\d.*-|-.*\d", re.DOTALL)


@dataclass(frozen=True)
class MetadataRow:
    """One paper entry from the metadata file.

    Attributes:
        exam_date: Free-text date, possibly inherited from a date header.
        code: Paper code used to match a document file.
        title: Combined "SUBJECTCODE - Subject Name" string.
        script_count: Number of answer scripts (not used by the import).
    """

    exam_date: str
    code: str
    title: str
    script_count: str = ""


def _cell(record: List[str], index: int) -> str:
    return record[index].strip() if index < len(record) else ""


def is_date_header(record: List[str]) -> bool:
    """Whether a record only carries a date that applies to later rows."""
    return bool(_DATE_TOKEN.search(_cell(record, 0))) and not _cell(record, 1)


def parse_metadata(text: str, skip_rows: int = HEADER_ROWS) -> List[MetadataRow]:
    """Parse metadata CSV text into rows, in file order.

    Args:
        text: CSV content (a leading byte-order mark is ignored).
        skip_rows: Number of leading records to discard as headers.

    Returns:
        Rows with a non-empty code and title.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    rows: List[MetadataRow] = []
    current_date = ""

    for index, record in enumerate(reader):
        if index < skip_rows:
            continue
        if not any(cell.strip() for cell in record):
            continue

        if is_date_header(record):
            current_date = _cell(record, 0)
            continue

        code = _cell(record, 1)
        title = _cell(record, 2)
        if not code or not title:
            continue

        rows.append(
            MetadataRow(
                exam_date=current_date or _cell(record, 0),
                code=code,
                title=title,
                script_count=_cell(record, 3),
            )
        )

    return rows
