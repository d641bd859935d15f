"""Pydantic schemas for API request/response models."""

from app.schemas.imports import ImportedPaper, ImportRowError, ImportSummary
from app.schemas.lookup import LookupCreate, LookupResponse
from app.schemas.paper import PaperListResponse, PaperResponse, PaperUpdate

__all__ = [
    "ImportedPaper",
    "ImportRowError",
    "ImportSummary",
    "LookupCreate",
    "LookupResponse",
    "PaperListResponse",
    "PaperResponse",
    "PaperUpdate",
]
