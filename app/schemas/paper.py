"""Question paper schemas for API request/response models."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from app.models.paper import MAX_SEMESTER, MIN_SEMESTER, QuestionPaper


class PaperResponse(BaseModel):
    """Response schema for question paper.

    Lookup names are filled from loaded relationships by ``from_paper``.
    """

    id: int
    subject_name: str
    subject_code: str
    paper_code: Optional[str] = None
    year_of_examination: int
    semester: int
    subject_type_id: Optional[int] = None
    program_type_id: Optional[int] = None
    department_id: Optional[int] = None
    description: Optional[str] = None
    file_url: str
    file_type: str
    original_filename: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    department_name: Optional[str] = None
    subject_type_name: Optional[str] = None
    program_type_name: Optional[str] = None
    download_url: Optional[str] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_paper(cls, paper: QuestionPaper) -> "PaperResponse":
        response = cls.model_validate(paper)
        if paper.department:
            response.department_name = paper.department.name
        if paper.subject_type:
            response.subject_type_name = paper.subject_type.name
        if paper.program_type:
            response.program_type_name = paper.program_type.name
        response.download_url = f"/download/{paper.id}"
        return response


class PaperListResponse(BaseModel):
    """Page of papers with the total number of matches."""

    items: list[PaperResponse]
    total: int
    limit: int
    offset: int


class PaperUpdate(BaseModel):
    """Schema for updating question paper fields."""

    subject_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    subject_code: Optional[str] = Field(default=None, min_length=1, max_length=100)
    paper_code: Optional[str] = Field(default=None, max_length=100)
    year_of_examination: Optional[int] = Field(default=None, ge=1900, le=2100)
    semester: Optional[int] = Field(default=None, ge=MIN_SEMESTER, le=MAX_SEMESTER)
    subject_type_id: Optional[int] = None
    program_type_id: Optional[int] = None
    department_id: Optional[int] = None
    description: Optional[str] = None

    def changes(self) -> dict[str, Any]:
        """Fields the client set, minus nulls for columns that require a value."""
        data = self.model_dump(exclude_unset=True)
        return {
            key: value
            for key, value in data.items()
            if value is not None or key in _NULLABLE_FIELDS
        }


_NULLABLE_FIELDS = {
    "paper_code",
    "subject_type_id",
    "program_type_id",
    "department_id",
    "description",
}
