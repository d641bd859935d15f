"""Declarative base columns shared by every table."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from app.utils.db import Base


class BaseModel(Base):
    """Abstract model with an integer primary key and audit timestamps.

    Timestamps are filled by the database (``now()``), so they are only
    available on an instance after a flush and refresh, which
    ``BaseService.create`` does.
    """

    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
