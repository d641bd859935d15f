"""Mapping of application exceptions to HTTP error responses.

Every error body has an ``error`` title and, unless the cause must stay
internal, a ``message``. Some exceptions also expose attributes (the
missing record id, the allowed file types) so clients can react without
parsing the message.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.exceptions import (
    DatabaseConnectionError,
    DuplicateRecordError,
    FileTooLargeError,
    ImportAbortedError,
    InvalidFileTypeError,
    InvalidFilterError,
    ModelError,
    RecordNotFoundError,
    RelatedRecordNotFoundError,
    StorageError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ErrorResponse:
    """How one exception type is logged and rendered.

    Attributes:
        status_code: HTTP status of the response.
        error: Short title placed in the ``error`` key.
        log_level: Level the exception is logged at.
        public_message: Fixed message used instead of ``str(exc)``; set for
            errors whose text may leak internals.
        fields: Body key to exception attribute, copied into the body.
    """

    status_code: int
    error: str
    log_level: int = logging.WARNING
    public_message: Optional[str] = None
    fields: dict[str, str] = field(default_factory=dict)

    def content(self, exc: Exception) -> dict[str, Any]:
        body: dict[str, Any] = {
            "error": self.error,
            "message": self.public_message or str(exc),
        }
        for key, attribute in self.fields.items():
            body[key] = getattr(exc, attribute)
        return body


ERROR_RESPONSES: dict[type[Exception], ErrorResponse] = {
    RecordNotFoundError: ErrorResponse(
        status.HTTP_404_NOT_FOUND,
        "Not Found",
        fields={"model": "model_name", "record_id": "record_id"},
    ),
    RelatedRecordNotFoundError: ErrorResponse(
        status.HTTP_400_BAD_REQUEST,
        "Bad Request",
        fields={"field": "field", "record_id": "record_id"},
    ),
    DuplicateRecordError: ErrorResponse(status.HTTP_409_CONFLICT, "Conflict"),
    DatabaseConnectionError: ErrorResponse(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Service Unavailable",
        log_level=logging.ERROR,
        public_message="Database connection error. Please try again later.",
    ),
    InvalidFilterError: ErrorResponse(status.HTTP_400_BAD_REQUEST, "Bad Request"),
    ModelError: ErrorResponse(
        status.HTTP_400_BAD_REQUEST, "Bad Request", log_level=logging.ERROR
    ),
    InvalidFileTypeError: ErrorResponse(
        status.HTTP_400_BAD_REQUEST,
        "Invalid File Type",
        fields={"allowed_types": "allowed_types", "received_type": "received_type"},
    ),
    FileTooLargeError: ErrorResponse(
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        "File Too Large",
        fields={"size_bytes": "size_bytes", "limit_bytes": "limit_bytes"},
    ),
    StorageError: ErrorResponse(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Storage Error",
        log_level=logging.ERROR,
        public_message="Failed to process file in storage",
    ),
    ImportAbortedError: ErrorResponse(
        status.HTTP_422_UNPROCESSABLE_ENTITY, "Import Failed"
    ),
}


def _create_handler(
    response: ErrorResponse,
) -> Callable[[Request, Exception], Any]:
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.log(
            response.log_level,
            f"{type(exc).__name__}: {exc}",
            extra={"path": request.url.path, "status_code": response.status_code},
        )
        return JSONResponse(
            status_code=response.status_code, content=response.content(exc)
        )

    return handler


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Validation errors without the raw input and with context stringified.

    Form uploads put file objects and ``ValueError`` instances into the
    error details, neither of which JSON can carry.
    """
    errors = []
    for error in exc.errors():
        error = dict(error)
        error.pop("input", None)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "error_count": len(exc.errors())},
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Invalid request data",
            "details": jsonable_errors(exc),
        },
    )


async def not_found_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> Response:
    """Render unknown routes as the 404 page for browsers, JSON otherwise."""
    from app.utils.templates import templates

    logger.warning("Route not found", extra={"path": request.url.path})

    if "text/html" in request.headers.get("accept", ""):
        return templates.TemplateResponse(
            request=request,
            name="404.html",
            status_code=status.HTTP_404_NOT_FOUND,
        )

    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "Not Found",
            "message": f"The requested resource was not found: {request.url.path}",
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers above on ``app``."""
    for exc_type, response in ERROR_RESPONSES.items():
        app.add_exception_handler(exc_type, _create_handler(response))

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(404, not_found_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
