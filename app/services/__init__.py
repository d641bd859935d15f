"""Business logic services package."""

from app.services.base import BaseService
from app.services.lookup_service import (
    DepartmentService,
    LookupService,
    ProgramTypeService,
    SubjectTypeService,
)
from app.services.paper_service import PaperFilters, PaperService

__all__ = [
    "BaseService",
    "LookupService",
    "DepartmentService",
    "SubjectTypeService",
    "ProgramTypeService",
    "PaperFilters",
    "PaperService",
]
