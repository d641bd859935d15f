"""Authentication routes for cookie-based browser access."""

import hmac
import logging

from fastapi import APIRouter, Depends, Form, Query, Request, Response, status
from fastapi.responses import RedirectResponse

from app.middleware.cookie_auth import (
    COOKIE_NAME,
    SESSION_MAX_AGE,
    generate_session_token,
)
from app.utils.api_helpers import client_key, get_safe_redirect_url
from app.utils.rate_limit import LoginRateLimiter, get_login_limiter
from app.utils.templates import templates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.get("/login")
async def login_page(
    request: Request,
    next: str = Query(default="/admin/papers", description="URL after login"),
    error: str = Query(default="", description="Error message to display"),
) -> Response:
    """Display login form.

    Args:
        request: Incoming HTTP request.
        next: URL to redirect to after successful login.
        error: Optional error message to display.

    Returns:
        HTML login form.
    """
    return templates.TemplateResponse(
        request=request,
        name="login.html",
        context={"error": error, "next_url": next},
    )


@router.post("/auth", response_model=None)
async def authenticate(
    request: Request,
    api_key: str = Form(..., description="API key for authentication"),
    next: str = Form(default="/admin/papers", description="URL after login"),
    limiter: LoginRateLimiter = Depends(get_login_limiter),
) -> Response:
    """Validate API key and set session cookie.

    Failed attempts are counted per client; once the limit is reached the
    client gets 429 until the window moves on, whatever key it sends.

    Args:
        request: Incoming HTTP request.
        api_key: The API key submitted by the user.
        next: URL to redirect to after successful login.
        limiter: Failed-login rate limiter.

    Returns:
        Redirect to next URL, 403 page if the key is wrong, or 429 page if
        the client is rate limited.
    """
    settings = request.app.state.settings
    client = client_key(request)

    if limiter.is_blocked(client):
        retry_after = limiter.retry_after(client)
        logger.warning("Rate limited login attempt", extra={"client": client})
        return templates.TemplateResponse(
            request=request,
            name="login.html",
            context={
                "error": "Too many attempts. Please wait and try again.",
                "next_url": next,
            },
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers={"Retry-After": str(retry_after)},
        )

    if not hmac.compare_digest(api_key.encode(), settings.api_key.encode()):
        limiter.record_failure(client)
        logger.warning("Failed login attempt", extra={"client": client})
        return templates.TemplateResponse(
            request=request,
            name="403.html",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    limiter.reset(client)
    session_token = generate_session_token(settings.api_key)
    safe_next = get_safe_redirect_url(next, default="/admin/papers")

    redirect_response = RedirectResponse(
        url=safe_next, status_code=status.HTTP_302_FOUND
    )
    redirect_response.set_cookie(
        key=COOKIE_NAME,
        value=session_token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=SESSION_MAX_AGE,
    )

    logger.info("Successful login", extra={"redirect_to": safe_next})
    return redirect_response


@router.post("/logout")
async def logout(
    next: str = Query(default="/login", description="URL to redirect after logout"),
) -> RedirectResponse:
    """Clear session cookie and logout."""
    safe_next = get_safe_redirect_url(next, default="/login")
    redirect_response = RedirectResponse(
        url=safe_next, status_code=status.HTTP_302_FOUND
    )
    redirect_response.delete_cookie(key=COOKIE_NAME)
    logger.info("User logged out")
    return redirect_response
