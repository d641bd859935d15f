"""API router factory with core endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, RedirectResponse

from app.middleware.auth import APIKeyMiddleware
from app.utils.db import DatabaseManager, get_db_manager

logger = logging.getLogger(__name__)

SERVICE_NAME = "question-paper-repository"


def create_public_router() -> APIRouter:
    """Create router with browser-facing endpoints.

    Includes the public health check and download routes, plus the admin
    pages (cookie auth) and the root redirect.

    Returns:
        APIRouter with public and admin routes.
    """
    from app.api.admin import router as admin_router
    from app.api.downloads import router as downloads_router

    router = APIRouter()

    @router.get("/")
    async def root():
        """Redirect root to admin panel."""
        return RedirectResponse(url="/admin/papers", status_code=302)

    @router.get("/health", tags=["Health"], status_code=status.HTTP_200_OK)
    async def public_health() -> dict:
        """Liveness probe."""
        return {"status": "healthy"}

    router.include_router(downloads_router)
    router.include_router(admin_router)

    return router


def create_auth_router() -> APIRouter:
    """Create router with authentication endpoints.

    These endpoints handle cookie-based browser authentication.

    Returns:
        APIRouter with auth endpoints (login, logout).
    """
    from app.api.auth import router as auth_router

    return auth_router


def create_protected_router() -> APIRouter:
    """Create router with endpoints under the /api prefix.

    Writes require the X-API-KEY header (or a session cookie); catalogue
    reads are open, see APIKeyMiddleware.

    Returns:
        APIRouter with API endpoints including health checks.
    """
    from app.api.imports import router as imports_router
    from app.api.lookups import (
        departments_router,
        program_types_router,
        subject_types_router,
    )
    from app.api.papers import router as papers_router

    router = APIRouter(prefix=APIKeyMiddleware.PROTECTED_PREFIX)

    @router.get("/health", tags=["Health"], status_code=status.HTTP_200_OK)
    async def health_check() -> dict:
        """Health check endpoint - basic application health.

        Returns:
            Health status response.
        """
        return {"status": "healthy", "service": SERVICE_NAME}

    @router.get(
        "/health/db",
        tags=["Health"],
        status_code=status.HTTP_200_OK,
        response_model=None,
    )
    async def health_check_db(
        db: DatabaseManager = Depends(get_db_manager),
    ) -> JSONResponse:
        """Deep health check - includes database connectivity check.

        Returns:
            Health status with database connectivity information.
        """
        try:
            await db.verify_connection()
            return JSONResponse(
                status_code=status.HTTP_200_OK,
                content={"status": "healthy", "database": "connected"},
            )
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={
                    "status": "unhealthy",
                    "database": "disconnected",
                    "error": str(e),
                },
            )

    router.include_router(imports_router)
    router.include_router(papers_router)
    router.include_router(departments_router)
    router.include_router(subject_types_router)
    router.include_router(program_types_router)

    return router
