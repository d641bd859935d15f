"""Integration tests for the service layer against a real database."""

import io
from unittest.mock import patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    DuplicateRecordError,
    InvalidFileTypeError,
    InvalidFilterError,
    RecordNotFoundError,
    RelatedRecordNotFoundError,
    StorageError,
)
from app.services.lookup_service import DepartmentService, SubjectTypeService
from app.services.paper_service import PaperFilters, PaperService
from app.utils.storage import LocalStorage


def _paper_fields(**overrides):
    fields = {
        "subject_name": "Domestic Logistic Management",
        "subject_code": "BBA3CJ201",
        "paper_code": "133750",
        "year_of_examination": 2025,
        "semester": 3,
        "file_url": "/uploads/papers/1-a.pdf",
        "file_type": "pdf",
    }
    fields.update(overrides)
    return fields


class TestBaseService:
    """CRUD behaviour shared by every service."""

    async def test_create_get_update_delete(self, db_session: AsyncSession):
        service = PaperService(db_session)

        paper = await service.create(**_paper_fields())
        assert paper.id is not None
        assert (await service.get_by_id(paper.id)).subject_code == "BBA3CJ201"

        updated = await service.update(paper.id, semester=4)
        assert updated.semester == 4

        await service.delete(paper.id)
        assert await service.get_by_id(paper.id) is None

    async def test_get_by_id_or_fail(self, db_session: AsyncSession):
        with pytest.raises(RecordNotFoundError):
            await PaperService(db_session).get_by_id_or_fail(9999)

    async def test_update_rejects_unknown_attribute(self, db_session: AsyncSession):
        service = PaperService(db_session)
        paper = await service.create(**_paper_fields())

        with pytest.raises(InvalidFilterError, match="colour"):
            await service.update(paper.id, colour="blue")


class TestLookupService:
    """Name-keyed lookup tables."""

    async def test_get_by_name_ignores_case(self, db_session: AsyncSession):
        department = await DepartmentService(db_session).get_by_name("commerce")

        assert department is not None
        assert department.name == "Commerce"

    async def test_get_or_create_reuses_rows(self, db_session: AsyncSession):
        service = SubjectTypeService(db_session)

        existing = await service.get_or_create("Major")
        created = await service.get_or_create("Elective")
        again = await service.get_or_create("Elective")

        assert existing.name == "Major"
        assert created.id == again.id

    async def test_find_containing(self, db_session: AsyncSession):
        service = DepartmentService(db_session)

        assert (await service.find_containing("ENG")).name == "English"
        assert await service.find_containing("XYZ") is None

    async def test_create_unique_rejects_duplicate(self, db_session: AsyncSession):
        with pytest.raises(DuplicateRecordError, match="already exists"):
            await DepartmentService(db_session).create_unique("  computer science ")

    async def test_list_ordered(self, db_session: AsyncSession):
        names = [row.name for row in await DepartmentService(db_session).list_ordered()]

        assert names == sorted(names)


class TestPaperService:
    """Question paper specific operations."""

    async def test_exists_for_code_and_year(self, db_session: AsyncSession):
        service = PaperService(db_session)
        await service.create(**_paper_fields())

        assert await service.exists_for_code_and_year("133750", 2025)
        assert not await service.exists_for_code_and_year("133750", 2024)
        assert not await service.exists_for_code_and_year("999999", 2025)

    async def test_search_filters_and_loads_lookups(self, db_session: AsyncSession):
        department = await DepartmentService(db_session).get_by_name("Commerce")
        service = PaperService(db_session)
        await service.create(**_paper_fields(department_id=department.id))
        await service.create(
            **_paper_fields(
                subject_name="Cost Accounting", subject_code="COM3CJ201", paper_code="2"
            )
        )

        papers, total = await service.search(PaperFilters(subject="logistic"))

        assert total == 1
        assert papers[0].department.name == "Commerce"

        papers, total = await service.search(PaperFilters(subject_code="com3"))
        assert total == 1
        assert papers[0].subject_name == "Cost Accounting"

    async def test_search_paginates_newest_first(self, db_session: AsyncSession):
        service = PaperService(db_session)
        for index in range(3):
            await service.create(**_paper_fields(paper_code=str(index)))

        papers, total = await service.search(limit=2, offset=1)

        assert total == 3
        assert [paper.paper_code for paper in papers] == ["1", "0"]

    async def test_upload_validates_type_and_related(
        self, db_session: AsyncSession, storage: LocalStorage
    ):
        service = PaperService(db_session)
        fields = _paper_fields()
        del fields["file_url"], fields["file_type"]

        with pytest.raises(InvalidFileTypeError):
            await service.upload(
                storage, io.BytesIO(b"x"), "a.txt", "text/plain", **fields
            )
        with pytest.raises(RelatedRecordNotFoundError):
            await service.upload(
                storage,
                io.BytesIO(b"x"),
                "a.pdf",
                "application/pdf",
                department_id=9999,
                **fields,
            )

        assert list(storage.root.iterdir()) == []

    async def test_upload_and_delete_with_file(
        self, db_session: AsyncSession, storage: LocalStorage
    ):
        service = PaperService(db_session)
        fields = _paper_fields()
        del fields["file_url"], fields["file_type"]

        paper = await service.upload(
            storage,
            io.BytesIO(b"%PDF-1.4"),
            "scan.docx",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            created_by="admin",
            **fields,
        )

        stored_name = LocalStorage.name_from_url(paper.file_url)
        assert paper.file_type == "docx"
        assert paper.original_filename == "scan.docx"
        assert storage.exists(stored_name)

        await service.delete_with_file(storage, paper.id)

        assert not storage.exists(stored_name)
        assert await service.get_by_id(paper.id) is None

    async def test_delete_with_file_survives_storage_failure(
        self, db_session: AsyncSession, storage: LocalStorage
    ):
        service = PaperService(db_session)
        paper = await service.create(**_paper_fields())

        with patch.object(
            storage, "delete", side_effect=StorageError("Failed to delete file: busy")
        ):
            await service.delete_with_file(storage, paper.id)

        assert await service.get_by_id(paper.id) is None

    async def test_update_paper_validates_foreign_keys(self, db_session: AsyncSession):
        service = PaperService(db_session)
        paper = await service.create(**_paper_fields())

        with pytest.raises(RelatedRecordNotFoundError):
            await service.update_paper(paper.id, program_type_id=9999)
