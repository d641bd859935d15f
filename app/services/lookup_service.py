"""Services for name-keyed lookup tables.

Departments, subject types and program types share the same behaviour:
case-insensitive name lookup, fetch-or-create by exact name, and
alphabetical listing.
"""

import logging
from typing import List, Optional, TypeVar

from sqlalchemy import func, select

from app.exceptions import DuplicateRecordError
from app.models.lookup import Department, LookupModel, ProgramType, SubjectType
from app.services.base import BaseService

logger = logging.getLogger(__name__)

L = TypeVar("L", bound=LookupModel)


class LookupService(BaseService[L]):
    """Shared operations for lookup tables keyed by ``name``.

    Usage:
        service = DepartmentService(db_session)
        department = await service.get_or_create("Commerce")
        departments = await service.list_ordered()
    """

    async def list_ordered(self) -> List[L]:
        """Return every row ordered by name."""
        async with self._guard("list"):
            result = await self.db.execute(
                select(self.model).order_by(self.model.name)
            )
            return list(result.scalars().all())

    async def get_by_name(self, name: str) -> Optional[L]:
        """Return the row whose name equals ``name``, ignoring case."""
        async with self._guard("get_by_name", lookup_name=name):
            result = await self.db.execute(
                select(self.model)
                .where(func.lower(self.model.name) == name.strip().lower())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def find_containing(self, fragment: str) -> Optional[L]:
        """Return the first row (by id) whose name contains ``fragment``."""
        async with self._guard("find_containing", fragment=fragment):
            result = await self.db.execute(
                select(self.model)
                .where(self.model.name.ilike(f"%{fragment}%"))
                .order_by(self.model.id)
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def get_or_create(self, name: str) -> L:
        """Return the row named ``name``, creating it when missing."""
        existing = await self.get_by_name(name)
        if existing is not None:
            return existing
        created = await self.create(name=name.strip())
        logger.info(
            f"Created {self.model.__name__}",
            extra={"model": self.model.__name__, "lookup_name": created.name},
        )
        return created

    async def create_unique(self, name: str) -> L:
        """Create a row, refusing names that already exist.

        Raises:
            DuplicateRecordError: If a row with the same name (ignoring
                case) already exists.
        """
        if await self.get_by_name(name) is not None:
            raise DuplicateRecordError(
                model_name=self.model.__name__,
                detail=f"{self.model.__name__} '{name.strip()}' already exists",
            )
        return await self.create(name=name.strip())


class DepartmentService(LookupService[Department]):
    model = Department


class SubjectTypeService(LookupService[SubjectType]):
    model = SubjectType


class ProgramTypeService(LookupService[ProgramType]):
    model = ProgramType
