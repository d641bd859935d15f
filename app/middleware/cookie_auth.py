"""Session cookie for the admin pages.

The cookie holds ``<issued unix time>.<hex HMAC-SHA256>`` keyed with the
API key, so rotating the key logs every browser out and a copied cookie
stops working once it is older than ``SESSION_MAX_AGE``.
"""

import hashlib
import hmac
import logging
import time
from typing import Callable, Optional
from urllib.parse import quote

from fastapi import Request, Response, status
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

COOKIE_NAME = "qpr_session"
SESSION_MAX_AGE = 86400 * 7  # 7 days
SESSION_MESSAGE = "question_paper_repository_session"

# Tolerated clock difference for tokens issued "in the future"
_CLOCK_SKEW = 60


def _signature(api_key: str, issued_at: int) -> str:
    message = f"{SESSION_MESSAGE}:{issued_at}".encode()
    return hmac.new(api_key.encode(), message, hashlib.sha256).hexdigest()


def generate_session_token(api_key: str, issued_at: Optional[int] = None) -> str:
    """Create a session token signed with the API key.

    Args:
        api_key: Secret used to sign the token.
        issued_at: Issue time as a unix timestamp; defaults to now.
    """
    issued = int(time.time()) if issued_at is None else issued_at
    return f"{issued}.{_signature(api_key, issued)}"


def verify_session_token(
    token: str,
    api_key: str,
    max_age: int = SESSION_MAX_AGE,
    now: Optional[float] = None,
) -> bool:
    """Whether ``token`` was signed with ``api_key`` and has not expired."""
    issued_text, _, signature = token.partition(".")
    if not issued_text.isdigit() or not signature:
        return False

    issued = int(issued_text)
    if not hmac.compare_digest(signature, _signature(api_key, issued)):
        return False

    age = (time.time() if now is None else now) - issued
    return -_CLOCK_SKEW <= age <= max_age


class CookieAuthMiddleware(BaseHTTPMiddleware):
    """Redirect browsers without a valid session cookie to the login page.

    The API prefix has its own middleware. The login flow, the public
    health check, downloads and stored files need no session.
    """

    EXCLUDED_PATHS: frozenset[str] = frozenset(
        {"/login", "/auth", "/logout", "/health"}
    )
    EXCLUDED_PREFIXES: tuple[str, ...] = ("/download/", "/uploads/", "/api")

    def __init__(self, app: ASGIApp, api_key: str) -> None:
        super().__init__(app)
        self.api_key = api_key

    @classmethod
    def is_excluded_path(cls, path: str) -> bool:
        return path in cls.EXCLUDED_PATHS or path.startswith(cls.EXCLUDED_PREFIXES)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if self.is_excluded_path(path):
            return await call_next(request)

        session_token = request.cookies.get(COOKIE_NAME)
        if session_token and verify_session_token(session_token, self.api_key):
            return await call_next(request)

        logger.warning(
            "Unauthorized browser access",
            extra={
                "path": path,
                "method": request.method,
                "has_cookie": bool(session_token),
            },
        )
        response = RedirectResponse(
            url=f"/login?next={quote(path)}", status_code=status.HTTP_302_FOUND
        )
        if session_token:
            # Expired or signed with a rotated key
            response.delete_cookie(COOKIE_NAME)
        return response
