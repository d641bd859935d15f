"""Bulk import of question papers from a ZIP archive.

One import run:

1. extracts the archive into a fresh scratch directory,
2. parses the first CSV found as exam metadata,
3. indexes the PDF files by the code embedded in their names,
4. derives paper fields for every metadata row,
5. imports the rows one by one, in file order.

Each row ends in exactly one outcome (imported, skipped or failed) and is
committed on its own, so a bad row never undoes or stops the others. The
run is an async generator of ``ImportEvent``; see ``app.importer.progress``
for how callers consume it.
"""

import asyncio
import enum
import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.exceptions import ImportAbortedError
from app.importer.archive import extract_archive, find_metadata_file, remove_tree
from app.importer.conventions import NamingConventions
from app.importer.inference import ParsedPaper, infer_paper
from app.importer.locator import locate_documents
from app.importer.metadata import parse_metadata
from app.importer.progress import EventType, ImportEvent, ImportResult
from app.services.lookup_service import DepartmentService, SubjectTypeService
from app.services.paper_service import PaperService
from app.utils.storage import LocalStorage, StoredFile

logger = logging.getLogger(__name__)

DEFAULT_MAX_DOCUMENT_SIZE = 50 * 1024 * 1024
IMPORTED_FILE_TYPE = "pdf"


class RowState(str, enum.Enum):
    """Terminal outcome of one metadata row."""

    IMPORTED = "imported"
    NO_DOCUMENT = "no_document"
    MISSING_FILE = "missing_file"
    OVERSIZE = "oversize"
    DUPLICATE = "duplicate"
    FAILED = "failed"

    @property
    def is_skip(self) -> bool:
        return self not in (RowState.IMPORTED, RowState.FAILED)


@dataclass(frozen=True)
class RowOutcome:
    state: RowState
    error: Optional[str] = None


def _file_size(path: Path) -> Optional[int]:
    return path.stat().st_size if path.is_file() else None


class LookupResolver:
    """Turns subject-code fragments into department and subject-type ids."""

    def __init__(self, session: AsyncSession, conventions: NamingConventions) -> None:
        self._departments = DepartmentService(session)
        self._subject_types = SubjectTypeService(session)
        self._conventions = conventions

    async def department_id(self, prefix: str) -> Optional[int]:
        """Resolve a department prefix.

        A mapped prefix is fetched or created by its department name. An
        unmapped prefix falls back to the first department whose name
        contains it; no match (or no prefix) leaves the paper without one.
        """
        if not prefix:
            return None
        name = self._conventions.department_name(prefix)
        if name is None:
            department = await self._departments.find_containing(prefix)
            return department.id if department else None
        return (await self._departments.get_or_create(name)).id

    async def subject_type_id(self, type_code: str) -> int:
        name = self._conventions.subject_type_name(type_code)
        return (await self._subject_types.get_or_create(name)).id


class PaperImporter:
    """Runs bulk imports against one database and one storage directory.

    Usage:
        importer = PaperImporter(session_factory, storage, scratch_root=Path("temp"))
        async for event in importer.run(archive_bytes, program_type_id=2):
            ...
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage: LocalStorage,
        scratch_root: Path,
        conventions: Optional[NamingConventions] = None,
        max_document_size: int = DEFAULT_MAX_DOCUMENT_SIZE,
    ) -> None:
        """Initialize importer.

        Args:
            session_factory: Factory for the session used by a whole run.
            storage: Permanent storage matched documents are copied into.
            scratch_root: Directory that holds per-run scratch directories.
            conventions: Subject-code naming conventions.
            max_document_size: Largest document (bytes) that is imported.
        """
        self._session_factory = session_factory
        self._storage = storage
        self._scratch_root = Path(scratch_root)
        self._conventions = conventions or NamingConventions()
        self._max_document_size = max_document_size

    def _new_scratch_dir(self) -> Path:
        stamp = time.time_ns() // 1_000_000
        return self._scratch_root / f"import-{stamp}-{secrets.token_hex(4)}"

    async def run(
        self,
        archive: bytes,
        program_type_id: Optional[int] = None,
        created_by: Optional[str] = None,
    ) -> AsyncGenerator[ImportEvent, None]:
        """Import every paper described by an archive.

        Args:
            archive: Raw ZIP archive bytes.
            program_type_id: Program type assigned to every imported paper.
            created_by: Actor label stored on imported papers.

        Yields:
            Status events, one progress event plus one outcome event per
            row, then a single ``complete`` event. A fatal problem (bad
            archive, no CSV, unexpected error outside a row) ends the run
            with one top-level ``error`` event instead.
        """
        scratch = self._new_scratch_dir()
        try:
            yield ImportEvent.status_message("Creating temporary directory...")
            scratch.mkdir(parents=True, exist_ok=False)

            yield ImportEvent.status_message("Extracting ZIP file...")
            await asyncio.to_thread(extract_archive, archive, scratch)

            yield ImportEvent.status_message("Looking for CSV file...")
            csv_path = await asyncio.to_thread(find_metadata_file, scratch)
            if csv_path is None:
                raise ImportAbortedError("No CSV file found in ZIP archive")

            yield ImportEvent.status_message("Parsing CSV file...")
            text = await asyncio.to_thread(
                csv_path.read_text, encoding="utf-8", errors="replace"
            )
            rows = parse_metadata(text)
            yield ImportEvent.status_message(f"Found {len(rows)} entries in CSV")

            yield ImportEvent.status_message("Scanning for PDF files...")
            documents = await asyncio.to_thread(locate_documents, scratch)
            yield ImportEvent.status_message(f"Found {len(documents)} PDF files")

            papers = [infer_paper(row, documents) for row in rows]
            result = ImportResult()
            total = len(papers)

            async with self._session_factory() as session:
                paper_service = PaperService(session)
                resolver = LookupResolver(session, self._conventions)

                for current, paper in enumerate(papers, start=1):
                    yield ImportEvent.row(
                        EventType.PROGRESS, current, total, paper.label, result.counts
                    )
                    outcome = await self._import_row(
                        paper, paper_service, resolver, program_type_id, created_by
                    )
                    yield self._record(result, paper, outcome, current, total)

            await asyncio.to_thread(remove_tree, scratch)
            logger.info("Bulk import finished", extra=result.counts.to_dict())
            yield ImportEvent.complete(result)

        except ImportAbortedError as e:
            logger.warning(f"Bulk import aborted: {e}")
            yield ImportEvent.fatal(str(e))
        except Exception as e:
            logger.exception(f"Bulk import failed: {e}")
            yield ImportEvent.fatal(str(e) or type(e).__name__)
        finally:
            # No await here: this also runs when the task is cancelled
            remove_tree(scratch)

    def _record(
        self,
        result: ImportResult,
        paper: ParsedPaper,
        outcome: RowOutcome,
        current: int,
        total: int,
    ) -> ImportEvent:
        """Fold a row outcome into the running result and build its event."""
        counts = result.counts
        if outcome.state == RowState.IMPORTED:
            counts.success += 1
            result.add_success(paper.code, paper.subject_name)
            event_type = EventType.SUCCESS
        elif outcome.state.is_skip:
            counts.skipped += 1
            result.add_error(paper.label, outcome.error or outcome.state.value)
            event_type = EventType.SKIP
        else:
            counts.failed += 1
            result.add_error(paper.label, outcome.error or "Unknown error")
            event_type = EventType.ERROR

        logger.info(
            "Bulk import row processed",
            extra={
                "paper_code": paper.code,
                "outcome": outcome.state.value,
                "row_error": outcome.error,
            },
        )
        return ImportEvent.row(
            event_type, current, total, paper.label, counts, error=outcome.error
        )

    async def _import_row(
        self,
        paper: ParsedPaper,
        papers: PaperService,
        resolver: LookupResolver,
        program_type_id: Optional[int],
        created_by: Optional[str],
    ) -> RowOutcome:
        """Run one row through validation, deduplication and insertion."""
        if paper.pdf_path is None:
            return RowOutcome(RowState.NO_DOCUMENT, "PDF document not found")

        stored: Optional[StoredFile] = None
        try:
            size = await asyncio.to_thread(_file_size, paper.pdf_path)
            if size is None:
                return RowOutcome(
                    RowState.MISSING_FILE, "PDF document does not exist on disk"
                )

            if size > self._max_document_size:
                return RowOutcome(
                    RowState.OVERSIZE,
                    f"File too large: {size / 1024 / 1024:.2f}MB "
                    f"(max {self._max_document_size / 1024 / 1024:.0f}MB)",
                )

            if await papers.exists_for_code_and_year(paper.code, paper.year):
                return RowOutcome(RowState.DUPLICATE, "Paper already exists in database")

            department_id = await resolver.department_id(paper.department_prefix)
            subject_type_id = await resolver.subject_type_id(paper.subject_type_code)

            stored = await asyncio.to_thread(self._storage.copy_from, paper.pdf_path)
            await papers.create(
                subject_name=paper.subject_name,
                subject_code=paper.subject_code,
                paper_code=paper.code,
                year_of_examination=paper.year,
                semester=paper.semester,
                subject_type_id=subject_type_id,
                program_type_id=program_type_id,
                department_id=department_id,
                file_url=stored.url,
                file_type=IMPORTED_FILE_TYPE,
                original_filename=paper.pdf_path.name,
                created_by=created_by,
            )
            return RowOutcome(RowState.IMPORTED)

        except Exception as e:
            await papers.db.rollback()
            if stored is not None:
                self._discard(stored)
            return RowOutcome(RowState.FAILED, str(e) or type(e).__name__)

    def _discard(self, stored: StoredFile) -> None:
        try:
            self._storage.delete(stored.name)
        except Exception as e:
            logger.error(
                "Failed to remove copied file after row failure",
                extra={"stored_name": stored.name, "error": str(e)},
            )
