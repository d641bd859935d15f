"""Generic CRUD service that owns commits and rollbacks."""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    DatabaseConnectionError,
    InvalidFilterError,
    RecordNotFoundError,
)
from app.models.base import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class BaseService(Generic[T]):
    """CRUD for one model on one session.

    Writes commit before returning and roll back on failure, so every call
    is its own unit of work; reads never commit. SQLAlchemy errors leave
    the service as DatabaseConnectionError.

    Usage:
        class DepartmentService(BaseService[Department]):
            model = Department

        department = await DepartmentService(session).create(name="Commerce")

    Attributes:
        db: Session the service works on.
        model: Model class the service manages.
    """

    model: type[T]

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @asynccontextmanager
    async def _guard(
        self, action: str, rollback: bool = False, **context: Any
    ) -> AsyncIterator[None]:
        """Translate SQLAlchemy errors raised inside the block.

        Args:
            action: Operation name used in the error message.
            rollback: Roll the session back before re-raising.
            **context: Extra fields for the error log record.
        """
        try:
            yield
        except SQLAlchemyError as e:
            if rollback:
                await self.db.rollback()
            logger.error(
                f"Failed to {action} {self.model.__name__}",
                extra={"model": self.model.__name__, "error": str(e), **context},
                exc_info=True,
            )
            if isinstance(e, IntegrityError):
                raise DatabaseConnectionError(
                    f"Integrity constraint violation: {e}"
                ) from e
            raise DatabaseConnectionError(f"Database error during {action}: {e}") from e

    async def create(self, **values: Any) -> T:
        """Insert a row and commit.

        Raises:
            DatabaseConnectionError: If the insert fails or violates a
                constraint.
        """
        async with self._guard("create", rollback=True):
            instance = self.model(**values)
            self.db.add(instance)
            await self.db.flush()
            await self.db.refresh(instance)
            await self.db.commit()
        logger.debug(
            f"Created {self.model.__name__}",
            extra={"model": self.model.__name__, "id": instance.id},
        )
        return instance

    async def get_by_id(self, record_id: int) -> Optional[T]:
        async with self._guard("get", id=record_id):
            return await self.db.scalar(
                select(self.model).where(self.model.id == record_id)
            )

    async def get_by_id_or_fail(self, record_id: int) -> T:
        """Like ``get_by_id`` but raises RecordNotFoundError for a missing row."""
        record = await self.get_by_id(record_id)
        if record is None:
            raise RecordNotFoundError(self.model.__name__, record_id)
        return record

    async def update(self, record_id: int, **values: Any) -> T:
        """Set columns on an existing row and commit.

        Raises:
            RecordNotFoundError: If the row does not exist.
            InvalidFilterError: If a name is not a model attribute.
            DatabaseConnectionError: If the update fails.
        """
        record = await self.get_by_id_or_fail(record_id)
        unknown = [key for key in values if not hasattr(record, key)]
        if unknown:
            raise InvalidFilterError(
                f"Invalid attribute(s) {', '.join(unknown)} "
                f"for model {self.model.__name__}"
            )

        async with self._guard("update", rollback=True, id=record_id):
            for key, value in values.items():
                setattr(record, key, value)
            await self.db.flush()
            await self.db.refresh(record)
            await self.db.commit()
        logger.debug(
            f"Updated {self.model.__name__}",
            extra={"model": self.model.__name__, "id": record_id},
        )
        return record

    async def delete(self, record_id: int) -> None:
        """Delete a row and commit.

        Raises:
            RecordNotFoundError: If the row does not exist.
            DatabaseConnectionError: If the delete fails.
        """
        record = await self.get_by_id_or_fail(record_id)
        async with self._guard("delete", rollback=True, id=record_id):
            await self.db.delete(record)
            await self.db.commit()
        logger.debug(
            f"Deleted {self.model.__name__}",
            extra={"model": self.model.__name__, "id": record_id},
        )
