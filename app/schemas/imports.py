"""Bulk import response schemas."""

from pydantic import BaseModel, Field


class ImportRowError(BaseModel):
    """A row that was skipped or failed."""

    file: str
    error: str


class ImportedPaper(BaseModel):
    code: str
    title: str


class ImportSummary(BaseModel):
    """Final outcome of a bulk import run."""

    success: int
    failed: int
    skipped: int
    errors: list[ImportRowError]
    successful_papers: list[ImportedPaper] = Field(alias="successfulPapers")

    model_config = {"populate_by_name": True}
