"""Authentication middleware for API key validation."""

import hmac
import logging
import re
from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.middleware.cookie_auth import COOKIE_NAME, verify_session_token

logger = logging.getLogger(__name__)


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Middleware to validate API key for protected endpoints.

    Endpoints under /api require X-API-KEY header, except the read-only
    catalogue (paper search and lookup lists) which anyone may GET.
    If request has valid session cookie, automatically injects X-API-KEY header.
    This allows admin pages to call the API without JavaScript reading cookie.
    """

    PROTECTED_PREFIX: str = "/api"
    PUBLIC_READ_PATTERNS: tuple[re.Pattern[str], ...] = (
        re.compile(r"^/api/papers/?$"),
        re.compile(r"^/api/papers/\d+/?$"),
        re.compile(r"^/api/(departments|subject-types|program-types)/?$"),
    )

    def __init__(self, app: ASGIApp, api_key: str) -> None:
        super().__init__(app)
        self.api_key = api_key

    @classmethod
    def is_protected_path(cls, path: str) -> bool:
        """Check if path lives under the protected API prefix."""
        return path.startswith(cls.PROTECTED_PREFIX)

    @classmethod
    def is_public_read(cls, method: str, path: str) -> bool:
        """Check if request is an anonymous read of the catalogue."""
        if method not in ("GET", "HEAD"):
            return False
        return any(pattern.match(path) for pattern in cls.PUBLIC_READ_PATTERNS)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and validate API key if required."""
        path = request.url.path
        if not self.is_protected_path(path) or self.is_public_read(
            request.method, path
        ):
            return await call_next(request)

        api_key = request.headers.get("x-api-key")

        # If no API key in header, check for valid session cookie
        if not api_key:
            session_token = request.cookies.get(COOKIE_NAME)
            if session_token and verify_session_token(session_token, self.api_key):
                # Headers are lowercase in the ASGI scope
                request.scope["headers"].append((b"x-api-key", self.api_key.encode()))
                api_key = self.api_key
                logger.debug(
                    "Auto-injected API key from session cookie",
                    extra={"path": path},
                )

        if not api_key or not hmac.compare_digest(api_key, self.api_key):
            logger.warning(
                "Unauthorized request",
                extra={
                    "path": path,
                    "method": request.method,
                    "has_key": bool(api_key),
                },
            )
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={
                    "error": "Unauthorized",
                    "message": "Invalid or missing API key",
                },
            )

        return await call_next(request)
