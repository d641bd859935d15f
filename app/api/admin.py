"""Admin panel routes for browser-based paper management."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import RedirectResponse

from app.exceptions import RecordNotFoundError
from app.models.paper import MAX_SEMESTER, MIN_SEMESTER
from app.services.lookup_service import DepartmentService, ProgramTypeService
from app.services.paper_service import PaperFilters, PaperService
from app.utils.api_helpers import Pagination
from app.utils.dependencies import dependencies
from app.utils.storage import LocalStorage, get_storage
from app.utils.templates import templates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


def _int_filter(value: Optional[str]) -> Optional[int]:
    # HTML forms submit empty inputs as ""
    value = (value or "").strip()
    return int(value) if value.isdigit() else None


@router.get("/admin/papers")
async def admin_papers(
    request: Request,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=25, ge=10, le=100),
    subject: Optional[str] = Query(default=None),
    year: Optional[str] = Query(default=None),
    semester: Optional[str] = Query(default=None),
    department_id: Optional[str] = Query(default=None),
    paper_service: PaperService = Depends(dependencies.paper),
    department_service: DepartmentService = Depends(dependencies.department),
) -> Response:
    """Display papers list with filters and pagination.

    Args:
        request: FastAPI request object.
        page: Current page number.
        page_size: Number of items per page.
        subject: Subject name contains.
        year: Filter by year of examination; blank means any.
        semester: Filter by semester; blank or out of range means any.
        department_id: Filter by department ID; blank means any.
        paper_service: PaperService instance.
        department_service: DepartmentService instance.

    Returns:
        Rendered papers template.
    """
    semester_number = _int_filter(semester)
    if semester_number not in range(MIN_SEMESTER, MAX_SEMESTER + 1):
        semester_number = None
    filters = PaperFilters(
        subject=subject,
        year=_int_filter(year),
        semester=semester_number,
        department_id=_int_filter(department_id),
    )
    papers, total = await paper_service.search(
        filters, limit=page_size, offset=(page - 1) * page_size
    )

    departments = await department_service.list_ordered()

    context = {
        "active_tab": "papers",
        "papers": papers,
        "departments": departments,
        "current_filters": {
            "subject": subject or "",
            "year": filters.year,
            "semester": filters.semester,
            "department_id": filters.department_id,
        },
        "pagination": Pagination.from_request(request, page, page_size, total),
    }

    return templates.TemplateResponse(
        request=request,
        name="admin/papers.html",
        context=context,
    )


@router.get("/admin/papers/bulk-upload")
async def admin_bulk_upload(
    request: Request,
    program_types: ProgramTypeService = Depends(dependencies.program_type),
) -> Response:
    """Display the bulk import form with live progress."""
    settings = request.app.state.settings
    context = {
        "active_tab": "bulk_upload",
        "program_types": await program_types.list_ordered(),
        "max_archive_size_mb": settings.max_archive_size_mb,
    }
    return templates.TemplateResponse(
        request=request,
        name="admin/bulk_upload.html",
        context=context,
    )


@router.post("/admin/papers/{paper_id}/delete")
async def admin_delete_paper(
    request: Request,
    paper_id: int,
    service: PaperService = Depends(dependencies.paper),
    storage: LocalStorage = Depends(get_storage),
) -> Response:
    """Delete a paper and its file, then return to the list."""
    try:
        await service.delete_with_file(storage, paper_id)
        logger.info("Paper deleted via admin panel", extra={"paper_id": paper_id})
    except RecordNotFoundError:
        return templates.TemplateResponse(
            request=request,
            name="404.html",
            status_code=status.HTTP_404_NOT_FOUND,
        )

    return RedirectResponse(url="/admin/papers", status_code=status.HTTP_303_SEE_OTHER)
