"""Bulk import of question papers from ZIP archives."""

from app.importer.conventions import NamingConventions, load_conventions
from app.importer.pipeline import PaperImporter
from app.importer.progress import (
    EventType,
    ImportEvent,
    collect_result,
    format_sse,
    stream_sse,
)

__all__ = [
    "EventType",
    "ImportEvent",
    "NamingConventions",
    "PaperImporter",
    "collect_result",
    "format_sse",
    "load_conventions",
    "stream_sse",
]
