"""Pytest configuration and shared fixtures."""

import io
import zipfile
from pathlib import Path
from typing import AsyncGenerator, Mapping, Union

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.application import create_app
from app.config import Settings
from app.models import Department, ProgramType, SubjectType
from app.utils.db import Base, DatabaseManager
from app.utils.storage import LocalStorage

TEST_API_KEY = "test-api-key"

SEED_DEPARTMENTS = ["Computer Science", "Commerce", "Electronics", "Malayalam", "English"]
SEED_SUBJECT_TYPES = ["Major", "Minor", "Open Course", "Common Course"]
SEED_PROGRAM_TYPES = ["CBCSS-UG", "FYUGP", "Integrated PG"]

METADATA_HEADER = (
    "UNIVERSITY EXAMINATIONS,,,\n"
    "Question paper list,,,\n"
    "Date,Code,Subject,Scripts\n"
)


def build_archive(files: Mapping[str, Union[str, bytes]]) -> bytes:
    """Build an in-memory ZIP archive from name -> content."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def metadata_csv(*lines: str) -> str:
    """Metadata CSV with the standard three header rows."""
    return METADATA_HEADER + "\n".join(lines) + "\n"


@pytest.fixture
def test_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings pointing at a temporary database and temporary directories."""
    monkeypatch.setenv("API_TITLE", "Question Paper Repository Test")
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("RUN_MIGRATIONS", "false")
    monkeypatch.setenv("API_KEY", TEST_API_KEY)
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("SCRATCH_DIR", str(tmp_path / "scratch"))
    monkeypatch.setenv("MAX_DOCUMENT_SIZE_MB", "1")
    monkeypatch.setenv("MAX_ARCHIVE_SIZE_MB", "2")
    monkeypatch.setenv("LOGIN_MAX_ATTEMPTS", "3")
    monkeypatch.delenv("IMPORT_CONVENTIONS_FILE", raising=False)
    return Settings()


@pytest.fixture
async def db_manager(test_settings: Settings) -> AsyncGenerator[DatabaseManager, None]:
    """Database manager with all tables created and lookup tables seeded."""
    manager = DatabaseManager(test_settings.database_url)
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with manager.session_factory() as session:
        session.add_all([Department(name=name) for name in SEED_DEPARTMENTS])
        session.add_all([SubjectType(name=name) for name in SEED_SUBJECT_TYPES])
        session.add_all([ProgramType(name=name) for name in SEED_PROGRAM_TYPES])
        await session.commit()

    yield manager
    await manager.close()


@pytest.fixture
async def db_session(db_manager: DatabaseManager) -> AsyncGenerator[AsyncSession, None]:
    """Database session for service tests."""
    async with db_manager.session_factory() as session:
        yield session


@pytest.fixture
def storage(test_settings: Settings) -> LocalStorage:
    """File storage rooted in a temporary directory."""
    return LocalStorage(
        test_settings.upload_dir,
        max_file_size=test_settings.max_document_size_bytes,
    )


@pytest.fixture
def app(test_settings: Settings, db_manager: DatabaseManager) -> FastAPI:
    """Create FastAPI application instance for testing."""
    return create_app(settings=test_settings, db=db_manager)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI application."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def api_headers() -> dict[str, str]:
    """Headers that authenticate against the /api prefix."""
    return {"X-API-KEY": TEST_API_KEY}
