"""Logging configuration for the application.

Production runs emit one key="value" line per record so log shippers can
parse them; development runs use a plain human-readable format.
"""

import logging
import sys
from typing import Any, Dict, Optional

from app.config import Settings, get_settings

# Third-party loggers and the level they are capped at
_LIBRARY_LEVELS: Dict[str, int] = {
    "uvicorn": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "sqlalchemy.engine": logging.WARNING,
    "alembic": logging.INFO,
    "multipart": logging.WARNING,
}


def _quote(value: Any) -> str:
    # Exam dates and tracebacks span lines; a record must stay on one line
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return '"' + text.replace("\r", "\\r").replace("\n", "\\n") + '"'


class StructuredFormatter(logging.Formatter):
    """Formatter rendering a record and its ``extra`` fields as key="value" pairs."""

    _STANDARD_ATTRS = frozenset(
        logging.LogRecord("", 0, "", 0, "", None, None).__dict__
    ) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in self._STANDARD_ATTRS and not key.startswith("_"):
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return " ".join(f"{key}={_quote(value)}" for key, value in log_data.items())


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure the root logger.

    Replaces any existing root handlers with a single stdout handler and
    caps the levels of chatty third-party loggers.

    Args:
        settings: Settings to read level and environment from; defaults to
            the environment-derived settings.
    """
    settings = settings or get_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(settings.log_level)
    if settings.is_production:
        console_handler.setFormatter(
            StructuredFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        )
    else:
        console_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    root_logger.addHandler(console_handler)

    for name, level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(level)

    root_logger.info(
        "Logging configured",
        extra={"log_level": settings.log_level, "environment": settings.environment},
    )
