"""create_question_paper_tables

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-02-02 10:14:27.504113

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SEED_DEPARTMENTS = ["Computer Science", "Commerce", "Electronics", "Malayalam", "English"]
SEED_SUBJECT_TYPES = ["Major", "Minor", "Open Course", "Common Course"]
SEED_PROGRAM_TYPES = ["CBCSS-UG", "FYUGP", "Integrated PG"]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _create_lookup(table_name: str, names: list[str]) -> None:
    table = op.create_table(
        table_name,
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.bulk_insert(table, [{"name": name} for name in names])


def upgrade() -> None:
    _create_lookup("departments", SEED_DEPARTMENTS)
    _create_lookup("subject_types", SEED_SUBJECT_TYPES)
    _create_lookup("program_types", SEED_PROGRAM_TYPES)

    op.create_table(
        "question_papers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("subject_name", sa.String(length=255), nullable=False),
        sa.Column("subject_code", sa.String(length=100), nullable=False),
        sa.Column("paper_code", sa.String(length=100), nullable=True),
        sa.Column("year_of_examination", sa.Integer(), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("subject_type_id", sa.Integer(), nullable=True),
        sa.Column("program_type_id", sa.Integer(), nullable=True),
        sa.Column("department_id", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("file_url", sa.Text(), nullable=False),
        sa.Column("file_type", sa.String(length=20), nullable=False),
        sa.Column("original_filename", sa.String(length=255), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "semester >= 1 AND semester <= 10",
            name="ck_question_papers_semester_range",
        ),
        sa.ForeignKeyConstraint(
            ["subject_type_id"], ["subject_types.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["program_type_id"], ["program_types.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["department_id"], ["departments.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_question_papers_subject_name", "question_papers", ["subject_name"]
    )
    op.create_index(
        "ix_question_papers_subject_code", "question_papers", ["subject_code"]
    )
    op.create_index(
        "ix_question_papers_year_of_examination",
        "question_papers",
        ["year_of_examination"],
    )
    op.create_index("ix_question_papers_semester", "question_papers", ["semester"])
    op.create_index(
        "ix_question_papers_department_id", "question_papers", ["department_id"]
    )
    op.create_index(
        "ix_question_papers_paper_code_year",
        "question_papers",
        ["paper_code", "year_of_examination"],
    )


def downgrade() -> None:
    op.drop_table("question_papers")
    op.drop_table("program_types")
    op.drop_table("subject_types")
    op.drop_table("departments")
