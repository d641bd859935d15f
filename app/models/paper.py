"""Question paper model representing a stored examination paper."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.models.lookup import Department, ProgramType, SubjectType

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel

MIN_SEMESTER = 1
MAX_SEMESTER = 10


class QuestionPaper(BaseModel):
    """Question paper with its classification and stored file.

    Attributes:
        subject_name: Human readable subject name.
        subject_code: Subject code such as "BBA3CJ201".
        paper_code: Examination paper code printed on the sheet (nullable).
        year_of_examination: Four digit year the exam was held.
        semester: Semester number (1-10).
        subject_type_id: FK to subject_types (nullable).
        program_type_id: FK to program_types (nullable).
        department_id: FK to departments (nullable).
        description: Free-text notes (nullable).
        file_url: Public URL of the stored file.
        file_type: Short file type ("pdf", "doc", "docx").
        original_filename: Filename as uploaded (nullable).
        created_by: Label of the actor who stored the paper (nullable).

    Example:
        paper = await service.create(
            subject_name="Domestic Logistic Management",
            subject_code="BBA3CJ201",
            paper_code="133750",
            year_of_examination=2025,
            semester=3,
            file_url="/uploads/papers/1762152327189-133750_scan.pdf",
            file_type="pdf",
        )
    """

    __tablename__ = "question_papers"

    subject_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    subject_code: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    paper_code: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    year_of_examination: Mapped[int] = mapped_column(
        Integer, nullable=False, index=True
    )
    semester: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    subject_type_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("subject_types.id", ondelete="SET NULL"), nullable=True
    )
    program_type_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("program_types.id", ondelete="SET NULL"), nullable=True
    )
    department_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_url: Mapped[str] = mapped_column(Text, nullable=False)
    file_type: Mapped[str] = mapped_column(String(20), nullable=False)
    original_filename: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    department: Mapped[Optional["Department"]] = relationship(
        "Department", lazy="noload", foreign_keys=[department_id]
    )
    subject_type: Mapped[Optional["SubjectType"]] = relationship(
        "SubjectType", lazy="noload", foreign_keys=[subject_type_id]
    )
    program_type: Mapped[Optional["ProgramType"]] = relationship(
        "ProgramType", lazy="noload", foreign_keys=[program_type_id]
    )

    __table_args__ = (
        CheckConstraint(
            f"semester >= {MIN_SEMESTER} AND semester <= {MAX_SEMESTER}",
            name="ck_question_papers_semester_range",
        ),
        Index("ix_question_papers_paper_code_year", "paper_code", "year_of_examination"),
    )

    def __repr__(self) -> str:
        return (
            f"QuestionPaper(id={self.id}, subject_code={self.subject_code!r}, "
            f"paper_code={self.paper_code!r}, year={self.year_of_examination})"
        )
