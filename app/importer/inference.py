"""Derive paper fields from a metadata row.

All extractions are lenient: a code that does not follow the naming
convention falls back to a default instead of failing the row.
"""

import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Mapping, Optional

from app.importer.metadata import MetadataRow

TITLE_SEPARATOR = " - "
DEFAULT_SEMESTER = 1
DEFAULT_SUBJECT_TYPE_CODE = "CJ"

_DIGIT = re.compile(r"\d")
_YEAR = re.compile(r"\d{4}")
_DEPARTMENT_PREFIX = re.compile(r"^[A-Z]+")
_SUBJECT_TYPE_CODE = re.compile(r"[A-Z]{2}(?=\d{3})")


@dataclass(frozen=True)
class ParsedPaper:
    """A metadata row joined with its document and derived fields.

    ``pdf_path`` is set only when a document's embedded code equals ``code``.
    """

    code: str
    subject_code: str
    subject_name: str
    semester: int
    year: int
    subject_type_code: str
    department_prefix: str
    pdf_path: Optional[Path] = None

    @property
    def label(self) -> str:
        """Human-readable identifier used in progress and error reports."""
        return f"{self.code} - {self.subject_name}"


def split_title(title: str) -> tuple[str, str]:
    """Split "CODE - Name" into (subject code, subject name).

    Only the first separator splits; without one both parts are the title.
    """
    code, separator, name = title.partition(TITLE_SEPARATOR)
    if not separator:
        return title.strip(), title.strip()
    return code.strip(), name.strip()


def extract_semester(subject_code: str) -> int:
    """First digit anywhere in the subject code ("BBA3CJ201" -> 3)."""
    match = _DIGIT.search(subject_code)
    return int(match.group()) if match else DEFAULT_SEMESTER


def extract_year(exam_date: str, today: Optional[date] = None) -> int:
    """First four-digit run in the exam date, else the current year."""
    match = _YEAR.search(exam_date)
    if match:
        return int(match.group())
    return (today or date.today()).year


def department_prefix(subject_code: str) -> str:
    """Leading uppercase letters of the subject code ("BBA3CJ201" -> "BBA")."""
    match = _DEPARTMENT_PREFIX.match(subject_code)
    return match.group() if match else ""


def subject_type_code(subject_code: str) -> str:
    """Two letters right before a three-digit run ("BBA3CJ201" -> "CJ")."""
    match = _SUBJECT_TYPE_CODE.search(subject_code)
    return match.group() if match else DEFAULT_SUBJECT_TYPE_CODE


def infer_paper(
    row: MetadataRow,
    documents: Mapping[str, Path],
    today: Optional[date] = None,
) -> ParsedPaper:
    """Build a ParsedPaper from a metadata row and the located documents."""
    subject_code, subject_name = split_title(row.title)
    return ParsedPaper(
        code=row.code,
        subject_code=subject_code,
        subject_name=subject_name,
        semester=extract_semester(subject_code),
        year=extract_year(row.exam_date, today),
        subject_type_code=subject_type_code(subject_code),
        department_prefix=department_prefix(subject_code),
        pdf_path=documents.get(row.code),
    )
