"""Question paper service providing search, upload and FK-validated updates."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from app.exceptions import (
    InvalidFileTypeError,
    RelatedRecordNotFoundError,
    StorageError,
)
from app.models.lookup import Department, ProgramType, SubjectType
from app.models.paper import QuestionPaper
from app.services.base import BaseService
from app.utils.storage import LocalStorage

logger = logging.getLogger(__name__)

# MIME type -> short file type stored on the paper
ALLOWED_CONTENT_TYPES: dict[str, str] = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}

# Short file type -> MIME type used when serving a download
DOWNLOAD_CONTENT_TYPES: dict[str, str] = {
    file_type: content_type for content_type, file_type in ALLOWED_CONTENT_TYPES.items()
}

_FOREIGN_KEYS: dict[str, type] = {
    "department_id": Department,
    "subject_type_id": SubjectType,
    "program_type_id": ProgramType,
}


@dataclass
class PaperFilters:
    """Search criteria for listing papers; ``None`` means "any"."""

    subject: Optional[str] = None
    subject_code: Optional[str] = None
    year: Optional[int] = None
    semester: Optional[int] = None
    department_id: Optional[int] = None
    subject_type_id: Optional[int] = None
    program_type_id: Optional[int] = None

    def apply(self, stmt: Any) -> Any:
        if self.subject:
            stmt = stmt.where(QuestionPaper.subject_name.ilike(f"%{self.subject}%"))
        if self.subject_code:
            stmt = stmt.where(
                QuestionPaper.subject_code.ilike(f"%{self.subject_code}%")
            )
        if self.year is not None:
            stmt = stmt.where(QuestionPaper.year_of_examination == self.year)
        if self.semester is not None:
            stmt = stmt.where(QuestionPaper.semester == self.semester)
        if self.department_id is not None:
            stmt = stmt.where(QuestionPaper.department_id == self.department_id)
        if self.subject_type_id is not None:
            stmt = stmt.where(QuestionPaper.subject_type_id == self.subject_type_id)
        if self.program_type_id is not None:
            stmt = stmt.where(QuestionPaper.program_type_id == self.program_type_id)
        return stmt


class PaperService(BaseService[QuestionPaper]):
    """Service for managing QuestionPaper entities.

    Adds to the BaseService CRUD operations:
    - exists_for_code_and_year(code, year): duplicate check used by imports
    - search(filters, limit, offset): filtered listing with lookups loaded
    - get_with_relationships(id): single paper with lookups loaded
    - upload(storage, file, ...): store a file and create its paper
    - update_paper(id, **fields): update with FK validation
    - delete_with_file(storage, id): remove paper and stored file

    Attributes:
        model: QuestionPaper model class
        db: Database session for operations
    """

    model = QuestionPaper

    async def exists_for_code_and_year(self, paper_code: str, year: int) -> bool:
        """Whether a paper with this paper code and examination year exists."""
        async with self._guard("check duplicate", paper_code=paper_code, year=year):
            result = await self.db.execute(
                select(QuestionPaper.id)
                .where(
                    QuestionPaper.paper_code == paper_code,
                    QuestionPaper.year_of_examination == year,
                )
                .limit(1)
            )
            return result.scalar_one_or_none() is not None

    async def validate_related(self, **foreign_keys: Optional[int]) -> None:
        """Ensure each given lookup FK refers to an existing row.

        Raises:
            RelatedRecordNotFoundError: If a referenced row does not exist.
        """
        for field, record_id in foreign_keys.items():
            if record_id is None:
                continue
            model = _FOREIGN_KEYS[field]
            async with self._guard("validate related", field=field):
                result = await self.db.execute(
                    select(model.id).where(model.id == record_id)
                )
                found = result.scalar_one_or_none()
            if found is None:
                raise RelatedRecordNotFoundError(field, record_id)

    def _with_lookups(self) -> Any:
        # Rows already in the session were loaded without their lookups
        return (
            select(QuestionPaper)
            .options(
                selectinload(QuestionPaper.department),
                selectinload(QuestionPaper.subject_type),
                selectinload(QuestionPaper.program_type),
            )
            .execution_options(populate_existing=True)
        )

    async def search(
        self,
        filters: Optional[PaperFilters] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> tuple[list[QuestionPaper], int]:
        """List papers newest first with lookups eager-loaded.

        Args:
            filters: Search criteria.
            limit: Maximum number of papers to return.
            offset: Number of papers to skip.

        Returns:
            Tuple of (papers, total matching count).
        """
        filters = filters or PaperFilters()
        stmt = filters.apply(self._with_lookups()).order_by(
            QuestionPaper.created_at.desc(), QuestionPaper.id.desc()
        )
        count_stmt = filters.apply(select(func.count()).select_from(QuestionPaper))

        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        async with self._guard("search"):
            total = await self.db.scalar(count_stmt)
            result = await self.db.execute(stmt)
            papers = list(result.scalars().all())
        return papers, total or 0

    async def get_with_relationships(self, paper_id: int) -> Optional[QuestionPaper]:
        """Get a paper by ID with department, subject and program types loaded."""
        async with self._guard("get", id=paper_id):
            result = await self.db.execute(
                self._with_lookups().where(QuestionPaper.id == paper_id)
            )
            return result.scalar_one_or_none()

    async def upload(
        self,
        storage: LocalStorage,
        file_data: BinaryIO,
        filename: str,
        content_type: str,
        created_by: Optional[str] = None,
        **fields: Any,
    ) -> QuestionPaper:
        """Store an uploaded document and create its paper record.

        Args:
            storage: Permanent file storage.
            file_data: File binary data.
            filename: Original filename.
            content_type: File MIME type.
            created_by: Label of the uploading actor.
            **fields: Paper metadata columns.

        Returns:
            Created QuestionPaper.

        Raises:
            InvalidFileTypeError: If the file is not PDF, DOC or DOCX.
            FileTooLargeError: If the file exceeds the storage limit.
            RelatedRecordNotFoundError: If a lookup FK does not exist.
            DatabaseConnectionError: If database operation fails.
        """
        if content_type not in ALLOWED_CONTENT_TYPES:
            logger.warning(
                "Invalid file type upload attempt",
                extra={"content_type": content_type, "original_filename": filename},
            )
            raise InvalidFileTypeError(list(ALLOWED_CONTENT_TYPES), content_type)

        await self.validate_related(
            **{key: fields.get(key) for key in _FOREIGN_KEYS}
        )

        stored = storage.save(file_data, filename)
        try:
            paper = await self.create(
                file_url=stored.url,
                file_type=ALLOWED_CONTENT_TYPES[content_type],
                original_filename=Path(filename).name,
                created_by=created_by,
                **fields,
            )
        except Exception:
            storage.delete(stored.name)
            raise

        logger.info(
            "Question paper uploaded",
            extra={"paper_id": paper.id, "stored_name": stored.name},
        )
        return paper

    async def update_paper(self, paper_id: int, **fields: Any) -> QuestionPaper:
        """Update a paper after validating any lookup FKs being changed.

        Raises:
            RecordNotFoundError: If paper not found.
            RelatedRecordNotFoundError: If a lookup FK does not exist.
            DatabaseConnectionError: If database operation fails.
        """
        await self.validate_related(
            **{key: fields[key] for key in _FOREIGN_KEYS if key in fields}
        )
        return await self.update(paper_id, **fields)

    async def delete_with_file(self, storage: LocalStorage, paper_id: int) -> None:
        """Delete the paper record and its stored file.

        The record is removed first. A file that cannot be removed afterwards
        is logged and left behind as an orphan.

        Raises:
            RecordNotFoundError: If paper not found.
            DatabaseConnectionError: If database operation fails.
        """
        paper = await self.get_by_id_or_fail(paper_id)
        stored_name = LocalStorage.name_from_url(paper.file_url)

        await self.delete(paper_id)
        try:
            storage.delete(stored_name)
        except StorageError as e:
            logger.warning(
                "Stored file left behind after paper delete",
                extra={"paper_id": paper_id, "stored_name": stored_name, "error": str(e)},
            )

        logger.info(
            "Question paper deleted",
            extra={"paper_id": paper_id, "stored_name": stored_name},
        )
