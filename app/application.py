"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api import create_auth_router, create_protected_router, create_public_router
from app.config import Settings, get_settings
from app.importer.conventions import load_conventions
from app.middleware.auth import APIKeyMiddleware
from app.middleware.cookie_auth import CookieAuthMiddleware
from app.utils.db import DatabaseManager
from app.utils.exception_handlers import register_exception_handlers
from app.utils.rate_limit import LoginRateLimiter
from app.utils.storage import PUBLIC_URL_PREFIX, LocalStorage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: migrate and verify the database. Shutdown: dispose the engine."""
    settings: Settings = app.state.settings
    db: DatabaseManager = app.state.db

    if settings.run_migrations:
        await db.run_migrations()
    await db.verify_connection()
    logger.info(
        "Application started",
        extra={"environment": settings.environment, "version": settings.api_version},
    )
    yield
    await db.close()
    logger.info("Application stopped")


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[DatabaseManager] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Shared state (database manager, file storage, naming conventions and
    the login rate limiter) is created here and kept on ``app.state``.

    Args:
        settings: Settings to use instead of the environment.
        db: Database manager to use instead of one built from settings.

    Returns:
        Configured application.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        description="Question paper repository with bulk ZIP import",
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db = db or DatabaseManager(settings.database_url, echo=settings.debug)
    app.state.storage = LocalStorage(
        settings.upload_dir, max_file_size=settings.max_document_size_bytes
    )
    app.state.conventions = load_conventions(settings.import_conventions_file)
    app.state.login_limiter = LoginRateLimiter(
        max_attempts=settings.login_max_attempts,
        window_seconds=settings.login_window_seconds,
    )

    # Middleware runs in reverse order of registration
    app.add_middleware(CookieAuthMiddleware, api_key=settings.api_key)
    app.add_middleware(APIKeyMiddleware, api_key=settings.api_key)

    app.include_router(create_auth_router())
    app.include_router(create_protected_router())
    app.include_router(create_public_router())

    app.mount(
        PUBLIC_URL_PREFIX,
        StaticFiles(directory=str(app.state.storage.root)),
        name="uploads",
    )

    register_exception_handlers(app)

    return app
