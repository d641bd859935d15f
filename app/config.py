"""Application configuration."""

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        """Initialize settings from environment variables."""
        # API Settings
        self.api_title: str = os.getenv("API_TITLE", "Question Paper Repository")
        self.api_version: str = os.getenv("API_VERSION", "0.1.0")
        self.environment: str = os.getenv("ENVIRONMENT", "development").lower()
        self.debug: bool = os.getenv("DEBUG", "False").lower() == "true"
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # Server Settings
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "8000"))

        # Database Settings
        self.db_host: str = os.getenv("DB_HOST", "localhost")
        self.db_port: int = int(os.getenv("DB_PORT", "5432"))
        self.db_user: str = os.getenv("DB_USER", "postgres")
        self.db_password: str = os.getenv("DB_PASSWORD", "")
        self.db_name: str = os.getenv("DB_NAME", "question_papers")
        self.database_url_override: str = os.getenv("DATABASE_URL", "")
        self.run_migrations: bool = (
            os.getenv("RUN_MIGRATIONS", "True").lower() == "true"
        )

        # Auth Settings
        self.api_key: str = os.getenv("API_KEY", "change-me")
        self.login_max_attempts: int = int(os.getenv("LOGIN_MAX_ATTEMPTS", "5"))
        self.login_window_seconds: int = int(
            os.getenv("LOGIN_WINDOW_SECONDS", "900")
        )

        # Storage Settings
        self.upload_dir: Path = Path(os.getenv("UPLOAD_DIR", "uploads/papers"))
        self.scratch_dir: Path = Path(os.getenv("SCRATCH_DIR", "temp"))
        self.max_archive_size_mb: int = int(os.getenv("MAX_ARCHIVE_SIZE_MB", "500"))
        self.max_document_size_mb: int = int(
            os.getenv("MAX_DOCUMENT_SIZE_MB", "50")
        )

        # Bulk import naming conventions (JSON file, optional)
        conventions_file = os.getenv("IMPORT_CONVENTIONS_FILE", "")
        self.import_conventions_file: Path | None = (
            Path(conventions_file) if conventions_file else None
        )

    @property
    def is_production(self) -> bool:
        """Whether the application runs in production mode."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Whether the application runs in development mode."""
        return self.environment == "development"

    @property
    def database_url(self) -> str:
        """Async SQLAlchemy URL built from DB_* settings unless overridden."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def max_archive_size_bytes(self) -> int:
        return self.max_archive_size_mb * 1024 * 1024

    @property
    def max_document_size_bytes(self) -> int:
        return self.max_document_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
