"""Database connection utilities."""

import asyncio
import logging
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from app.exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()

ALEMBIC_INI_PATH = Path(__file__).resolve().parents[2] / "alembic.ini"


class DatabaseManager:
    """Owns the async engine and session factory for one application.

    Created during application startup and stored on ``app.state.db``;
    nothing in the application reaches for a module-level engine.

    Usage:
        manager = DatabaseManager(settings.database_url)
        await manager.run_migrations()
        async with manager.session_factory() as session:
            ...
        await manager.close()
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        """Initialize manager without connecting.

        Args:
            url: Async SQLAlchemy database URL.
            echo: Whether to log emitted SQL.
        """
        self._url = url
        self._echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def engine(self) -> AsyncEngine:
        """Get engine, creating it on first access."""
        if self._engine is None:
            self._engine = create_async_engine(
                self._url,
                echo=self._echo,
                pool_pre_ping=True,  # Verify connections before using
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get session factory bound to the engine."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False
            )
        return self._session_factory

    async def verify_connection(self) -> bool:
        """Verify database connection.

        Returns:
            True if ``SELECT 1`` succeeds.

        Raises:
            DatabaseConnectionError: If connection fails.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database connection verification failed: {e}")
            raise DatabaseConnectionError(f"Failed to connect to database: {e}") from e

    async def run_migrations(self) -> None:
        """Run Alembic migrations up to head.

        Raises:
            FileNotFoundError: If alembic.ini is missing.
        """
        from alembic import command
        from alembic.config import Config

        if not ALEMBIC_INI_PATH.exists():
            raise FileNotFoundError(
                f"Alembic configuration file not found at {ALEMBIC_INI_PATH}"
            )

        alembic_cfg = Config(str(ALEMBIC_INI_PATH))
        alembic_cfg.set_main_option("sqlalchemy.url", self._url)

        # env.py drives its own event loop, so keep it off ours
        await asyncio.to_thread(command.upgrade, alembic_cfg, "head")
        logger.info("Database migrations applied")

    async def close(self) -> None:
        """Dispose the engine and reset state."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")
            self._engine = None
            self._session_factory = None


def get_db_manager(request: Request) -> DatabaseManager:
    """Get the application's DatabaseManager for dependency injection."""
    return request.app.state.db


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a request-scoped database session.

    Args:
        request: Incoming request (used to reach ``app.state.db``).

    Yields:
        AsyncSession closed after the request completes.
    """
    manager: DatabaseManager = request.app.state.db
    async with manager.session_factory() as session:
        yield session
