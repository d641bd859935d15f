"""FastAPI dependencies that build services and the bulk importer.

Routes ask for ``Depends(dependencies.paper)`` and friends. Each attribute
is a cached dependency function, so the same object can be used as a key
in ``app.dependency_overrides``.
"""

from typing import Any, Callable, Generic, Optional, TypeVar

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.importer.pipeline import PaperImporter
from app.services.base import BaseService
from app.services.lookup_service import (
    DepartmentService,
    ProgramTypeService,
    SubjectTypeService,
)
from app.services.paper_service import PaperService
from app.utils.db import DatabaseManager, get_db_manager, get_db_session
from app.utils.storage import LocalStorage, get_storage

S = TypeVar("S", bound=BaseService[Any])


class ServiceDependency(Generic[S]):
    """Descriptor yielding a per-request ``service_class(db_session)`` factory."""

    def __init__(self, service_class: type[S]) -> None:
        self.service_class = service_class
        self._dependency: Optional[Callable[..., S]] = None

    def __get__(self, instance: Any, owner: type) -> Callable[..., S]:
        if self._dependency is None:
            service_class = self.service_class

            def dependency(db: AsyncSession = Depends(get_db_session)) -> S:
                return service_class(db)

            dependency.__name__ = f"get_{service_class.__name__}"
            self._dependency = dependency
        return self._dependency


class ServiceDependencies:
    """Dependency functions for every service."""

    paper = ServiceDependency(PaperService)
    department = ServiceDependency(DepartmentService)
    subject_type = ServiceDependency(SubjectTypeService)
    program_type = ServiceDependency(ProgramTypeService)


dependencies = ServiceDependencies()


def get_importer(
    request: Request,
    db: DatabaseManager = Depends(get_db_manager),
    storage: LocalStorage = Depends(get_storage),
) -> PaperImporter:
    """Build a PaperImporter from the settings and shared state of the app.

    The importer opens its own session from ``db.session_factory``; a
    streamed import outlives the request-scoped session.
    """
    settings = request.app.state.settings
    return PaperImporter(
        session_factory=db.session_factory,
        storage=storage,
        scratch_root=settings.scratch_dir,
        conventions=request.app.state.conventions,
        max_document_size=settings.max_document_size_bytes,
    )
