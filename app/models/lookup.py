"""Name-keyed lookup tables used to classify question papers."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class LookupModel(BaseModel):
    """Abstract lookup row identified by a unique name.

    Attributes:
        name: Display name, unique within the table.
    """

    __abstract__ = True

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id}, name={self.name!r})"


class Department(LookupModel):
    """Academic department (e.g. "Commerce", "Computer Science")."""

    __tablename__ = "departments"


class SubjectType(LookupModel):
    """Coarse subject category (e.g. "Major", "Minor", "Common Course")."""

    __tablename__ = "subject_types"


class ProgramType(LookupModel):
    """Degree programme scheme a paper belongs to (e.g. "FYUGP")."""

    __tablename__ = "program_types"
