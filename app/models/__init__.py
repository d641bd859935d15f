"""Data models package."""

from app.models.base import BaseModel
from app.models.lookup import Department, LookupModel, ProgramType, SubjectType
from app.models.paper import QuestionPaper

__all__ = [
    "BaseModel",
    "LookupModel",
    "Department",
    "SubjectType",
    "ProgramType",
    "QuestionPaper",
]
