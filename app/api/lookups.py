"""Lookup table API endpoints (departments, subject types, program types)."""

from typing import Any, Callable

from fastapi import APIRouter, Depends
from fastapi import status as http_status

from app.schemas.lookup import LookupCreate, LookupResponse
from app.services.lookup_service import LookupService
from app.utils.dependencies import dependencies


def create_lookup_router(
    prefix: str, tag: str, service_dependency: Callable[..., Any]
) -> APIRouter:
    """Create list/create endpoints for one lookup table.

    Args:
        prefix: URL prefix such as "/departments".
        tag: OpenAPI tag.
        service_dependency: Dependency returning the table's LookupService.

    Returns:
        APIRouter with ``GET`` (ordered list) and ``POST`` (create) routes.
    """
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.get("")
    async def list_rows(
        service: LookupService = Depends(service_dependency),
    ) -> list[LookupResponse]:
        """List all rows ordered by name."""
        rows = await service.list_ordered()
        return [LookupResponse.model_validate(row) for row in rows]

    @router.post("", status_code=http_status.HTTP_201_CREATED)
    async def create_row(
        data: LookupCreate,
        service: LookupService = Depends(service_dependency),
    ) -> LookupResponse:
        """Create a row.

        Raises:
            DuplicateRecordError: If a row with the same name exists.
        """
        row = await service.create_unique(data.name)
        return LookupResponse.model_validate(row)

    return router


departments_router = create_lookup_router(
    "/departments", "Departments", dependencies.department
)
subject_types_router = create_lookup_router(
    "/subject-types", "Subject Types", dependencies.subject_type
)
program_types_router = create_lookup_router(
    "/program-types", "Program Types", dependencies.program_type
)
