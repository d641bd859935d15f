"""Middleware components for the application."""

from app.middleware.auth import APIKeyMiddleware
from app.middleware.cookie_auth import CookieAuthMiddleware

__all__ = ["APIKeyMiddleware", "CookieAuthMiddleware"]
