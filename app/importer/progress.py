"""Progress events emitted by a bulk import and the two ways to consume them.

The import pipeline yields one ``ImportEvent`` per state change. Callers
either stream the events to the client as Server-Sent Events
(``format_sse``) or drain them and keep only the final summary
(``collect_result``).
"""

import enum
import json
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, AsyncIterator, Dict, List, Optional

from app.exceptions import ImportAbortedError


class EventType(str, enum.Enum):
    """Event ``type`` tags, as seen by clients."""

    STATUS = "status"
    PROGRESS = "progress"
    SUCCESS = "success"
    SKIP = "skip"
    ERROR = "error"
    COMPLETE = "complete"


@dataclass
class ImportCounts:
    """Running outcome counters for an import run."""

    success: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"success": self.success, "failed": self.failed, "skipped": self.skipped}


@dataclass
class ImportResult:
    """Final summary of an import run.

    Attributes:
        counts: Outcome counters.
        errors: One ``{"file", "error"}`` entry per skipped or failed row.
        successful_papers: One ``{"code", "title"}`` entry per imported row.
    """

    counts: ImportCounts = field(default_factory=ImportCounts)
    errors: List[Dict[str, str]] = field(default_factory=list)
    successful_papers: List[Dict[str, str]] = field(default_factory=list)

    def add_error(self, label: str, message: str) -> None:
        self.errors.append({"file": label, "error": message})

    def add_success(self, code: str, title: str) -> None:
        self.successful_papers.append({"code": code, "title": title})


@dataclass
class ImportEvent:
    """A single progress event.

    Only the fields relevant to the event type are set; ``to_dict`` drops
    the rest so each message carries exactly its own payload.
    """

    type: EventType
    message: Optional[str] = None
    current: Optional[int] = None
    total: Optional[int] = None
    file: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None
    counts: Optional[Dict[str, int]] = None
    errors: Optional[List[Dict[str, str]]] = None
    successful_papers: Optional[List[Dict[str, str]]] = None

    @property
    def is_terminal(self) -> bool:
        """Whether the stream ends after this event."""
        return self.type == EventType.COMPLETE or (
            self.type == EventType.ERROR and self.current is None
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.value}
        for key in ("message", "current", "total", "file", "status", "error"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.counts is not None:
            data["counts"] = dict(self.counts)
        if self.errors is not None:
            data["errors"] = list(self.errors)
        if self.successful_papers is not None:
            data["successfulPapers"] = list(self.successful_papers)
        return data

    @classmethod
    def status_message(cls, message: str) -> "ImportEvent":
        return cls(type=EventType.STATUS, message=message)

    @classmethod
    def fatal(cls, message: str) -> "ImportEvent":
        return cls(type=EventType.ERROR, error=message)

    @classmethod
    def row(
        cls,
        event_type: EventType,
        current: int,
        total: int,
        label: str,
        counts: ImportCounts,
        error: Optional[str] = None,
    ) -> "ImportEvent":
        return cls(
            type=event_type,
            current=current,
            total=total,
            file=label,
            status="processing" if event_type == EventType.PROGRESS else None,
            error=error,
            counts=counts.to_dict(),
        )

    @classmethod
    def complete(cls, result: ImportResult) -> "ImportEvent":
        return cls(
            type=EventType.COMPLETE,
            counts=result.counts.to_dict(),
            errors=list(result.errors),
            successful_papers=list(result.successful_papers),
        )


def format_sse(event: ImportEvent) -> str:
    """Frame an event as one Server-Sent Events message."""
    return f"data: {json.dumps(event.to_dict())}\n\n"


async def stream_sse(
    events: AsyncGenerator[ImportEvent, None],
) -> AsyncIterator[str]:
    """Yield SSE frames for events, stopping after the terminal one.

    The event generator is closed when the stream ends or the client goes
    away, which lets the import clean up its scratch directory.
    """
    async with aclosing(events):
        async for event in events:
            yield format_sse(event)
            if event.is_terminal:
                break


async def collect_result(events: AsyncGenerator[ImportEvent, None]) -> Dict[str, Any]:
    """Drain the events and return the final summary.

    Returns:
        Summary with ``success``, ``failed``, ``skipped``, ``errors`` and
        ``successfulPapers`` keys.

    Raises:
        ImportAbortedError: If the run ended with a fatal error.
    """
    async with aclosing(events):
        async for event in events:
            if event.type == EventType.COMPLETE:
                return {
                    "success": event.counts["success"],
                    "failed": event.counts["failed"],
                    "skipped": event.counts["skipped"],
                    "errors": event.errors or [],
                    "successfulPapers": event.successful_papers or [],
                }
            if event.is_terminal:
                raise ImportAbortedError(event.error or "Import failed")
    raise ImportAbortedError("Import ended without a summary")
