"""Question papers API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi import status as http_status

from app.exceptions import RecordNotFoundError
from app.models.paper import MAX_SEMESTER, MIN_SEMESTER
from app.schemas.paper import PaperListResponse, PaperResponse, PaperUpdate
from app.services.paper_service import PaperFilters, PaperService
from app.utils.dependencies import dependencies
from app.utils.storage import LocalStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/papers",
    tags=["Papers"],
)


@router.get("")
async def list_papers(
    subject: Optional[str] = Query(default=None, description="Name contains"),
    subject_code: Optional[str] = Query(default=None, description="Code contains"),
    year: Optional[int] = None,
    semester: Optional[int] = Query(default=None, ge=MIN_SEMESTER, le=MAX_SEMESTER),
    department_id: Optional[int] = None,
    subject_type_id: Optional[int] = None,
    program_type_id: Optional[int] = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    service: PaperService = Depends(dependencies.paper),
) -> PaperListResponse:
    """Search papers, newest first.

    Args:
        subject: Case-insensitive substring of the subject name.
        subject_code: Case-insensitive substring of the subject code.
        year: Year of examination.
        semester: Semester number.
        department_id: Filter by department ID.
        subject_type_id: Filter by subject type ID.
        program_type_id: Filter by program type ID.
        limit: Maximum number of papers to return.
        offset: Number of papers to skip.
        service: PaperService instance.

    Returns:
        Page of matching papers with lookup names and the total count.
    """
    filters = PaperFilters(
        subject=subject,
        subject_code=subject_code,
        year=year,
        semester=semester,
        department_id=department_id,
        subject_type_id=subject_type_id,
        program_type_id=program_type_id,
    )
    papers, total = await service.search(filters, limit=limit, offset=offset)
    return PaperListResponse(
        items=[PaperResponse.from_paper(paper) for paper in papers],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{paper_id}")
async def get_paper(
    paper_id: int,
    service: PaperService = Depends(dependencies.paper),
) -> PaperResponse:
    """Get paper by ID with lookup names.

    Raises:
        RecordNotFoundError: If paper with given ID does not exist.
    """
    paper = await service.get_with_relationships(paper_id)
    if not paper:
        raise RecordNotFoundError("QuestionPaper", paper_id)
    return PaperResponse.from_paper(paper)


@router.post("", status_code=http_status.HTTP_201_CREATED)
async def create_paper(
    file: UploadFile = File(..., description="PDF, DOC or DOCX document"),
    subject_name: str = Form(..., min_length=1, max_length=255),
    subject_code: str = Form(..., min_length=1, max_length=100),
    year_of_examination: int = Form(..., ge=1900, le=2100),
    semester: int = Form(..., ge=MIN_SEMESTER, le=MAX_SEMESTER),
    paper_code: Optional[str] = Form(default=None),
    department_id: Optional[int] = Form(default=None),
    subject_type_id: Optional[int] = Form(default=None),
    program_type_id: Optional[int] = Form(default=None),
    description: Optional[str] = Form(default=None),
    service: PaperService = Depends(dependencies.paper),
    storage: LocalStorage = Depends(get_storage),
) -> PaperResponse:
    """Upload a single question paper with its metadata."""
    paper = await service.upload(
        storage=storage,
        file_data=file.file,
        filename=file.filename or "paper.pdf",
        content_type=file.content_type or "",
        created_by="admin",
        subject_name=subject_name.strip(),
        subject_code=subject_code.strip(),
        year_of_examination=year_of_examination,
        semester=semester,
        paper_code=paper_code or None,
        department_id=department_id,
        subject_type_id=subject_type_id,
        program_type_id=program_type_id,
        description=description or None,
    )
    paper = await service.get_with_relationships(paper.id)
    return PaperResponse.from_paper(paper)


@router.patch("/{paper_id}")
async def update_paper(
    paper_id: int,
    data: PaperUpdate,
    service: PaperService = Depends(dependencies.paper),
) -> PaperResponse:
    """Update paper metadata fields."""
    await service.update_paper(paper_id, **data.changes())
    paper = await service.get_with_relationships(paper_id)
    return PaperResponse.from_paper(paper)


@router.delete("/{paper_id}", status_code=http_status.HTTP_204_NO_CONTENT)
async def delete_paper(
    paper_id: int,
    service: PaperService = Depends(dependencies.paper),
    storage: LocalStorage = Depends(get_storage),
) -> None:
    """Delete paper and its file from storage."""
    await service.delete_with_file(storage, paper_id)
