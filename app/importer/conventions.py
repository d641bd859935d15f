"""Institution naming conventions used to classify imported papers.

Subject codes look like ``BBA3CJ201``: a department prefix (``BBA``), a
semester digit (``3``), a two-letter subject-type code (``CJ``) and a
three-digit course number (``201``). The tables below translate the
prefix and type code into lookup names. They can be replaced with a JSON
file (see ``IMPORT_CONVENTIONS_FILE``) of the form::

    {
        "departments": {"BBA": "Business Administration"},
        "subject_types": {"CJ": "Major"},
        "default_subject_type": "Major"
    }
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENTS: Dict[str, str] = {
    "BBA": "Business Administration",
    "BCA": "Computer Science",
    "COM": "Commerce",
    "ELE": "Electronics",
    "ENG": "English",
    "MAL": "Malayalam",
    "ARA": "Arabic",
    "HIN": "Hindi",
    "JOU": "Journalism",
    "MAT": "Mathematics",
    "CSC": "Computer Science",
}

# CJ = core/major, MN = minor, FM/FV/FS = foundation courses
DEFAULT_SUBJECT_TYPES: Dict[str, str] = {
    "CJ": "Major",
    "MN": "Minor",
    "FM": "Common Course",
    "FV": "Common Course",
    "FS": "Common Course",
}

DEFAULT_SUBJECT_TYPE = "Major"


@dataclass(frozen=True)
class NamingConventions:
    """Lookup tables from subject-code fragments to lookup-row names."""

    departments: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DEPARTMENTS)
    )
    subject_types: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_SUBJECT_TYPES)
    )
    default_subject_type: str = DEFAULT_SUBJECT_TYPE

    def department_name(self, prefix: str) -> Optional[str]:
        """Department name for a subject-code prefix, or None if unmapped."""
        return self.departments.get(prefix)

    def subject_type_name(self, type_code: str) -> str:
        """Subject-type name for a two-letter code, falling back to the default."""
        return self.subject_types.get(type_code, self.default_subject_type)

    @classmethod
    def from_file(cls, path: Path) -> "NamingConventions":
        """Load conventions from a JSON file; missing keys keep their defaults.

        Raises:
            ValueError: If the file is not valid JSON or has the wrong shape.
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Cannot read naming conventions from {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Naming conventions in {path} must be a JSON object")

        defaults = cls()
        conventions = cls(
            departments=dict(data.get("departments", defaults.departments)),
            subject_types=dict(data.get("subject_types", defaults.subject_types)),
            default_subject_type=str(
                data.get("default_subject_type", defaults.default_subject_type)
            ),
        )
        logger.info(
            "Naming conventions loaded",
            extra={
                "path": str(path),
                "departments": len(conventions.departments),
                "subject_types": len(conventions.subject_types),
            },
        )
        return conventions


def load_conventions(path: Optional[Path]) -> NamingConventions:
    """Conventions from ``path`` when given, otherwise the built-in tables."""
    if path is None:
        return NamingConventions()
    return NamingConventions.from_file(path)
