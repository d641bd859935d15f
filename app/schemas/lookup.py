"""Lookup table schemas (departments, subject types, program types)."""

from pydantic import BaseModel, Field


class LookupCreate(BaseModel):
    """Schema for creating a lookup row.

    Attributes:
        name: Display name, unique ignoring case.
    """

    name: str = Field(..., min_length=1, max_length=255)


class LookupResponse(BaseModel):
    """Response schema for a lookup row."""

    id: int
    name: str

    model_config = {"from_attributes": True}
