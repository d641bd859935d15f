"""Tests for session tokens and the cookie middleware."""

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient, Response

from app.middleware.cookie_auth import (
    COOKIE_NAME,
    SESSION_MAX_AGE,
    CookieAuthMiddleware,
    generate_session_token,
    verify_session_token,
)

KEY = "secret-key"
ISSUED = 1_762_152_327


class TestSessionToken:
    def test_fresh_token_is_valid(self):
        token = generate_session_token(KEY, issued_at=ISSUED)

        assert token.startswith(f"{ISSUED}.")
        assert verify_session_token(token, KEY, now=ISSUED + 60)

    def test_expired_token_is_rejected(self):
        token = generate_session_token(KEY, issued_at=ISSUED)

        assert verify_session_token(token, KEY, now=ISSUED + SESSION_MAX_AGE)
        assert not verify_session_token(token, KEY, now=ISSUED + SESSION_MAX_AGE + 1)

    def test_token_from_rotated_key_is_rejected(self):
        token = generate_session_token("old-key", issued_at=ISSUED)

        assert not verify_session_token(token, KEY, now=ISSUED)

    def test_tampered_timestamp_is_rejected(self):
        signature = generate_session_token(KEY, issued_at=ISSUED).split(".", 1)[1]

        assert not verify_session_token(f"{ISSUED + 3600}.{signature}", KEY, now=ISSUED)

    def test_malformed_tokens(self):
        for token in ("", "abc", "123", "123.", ".abc", "12a.abc"):
            assert not verify_session_token(token, KEY)


def _app() -> FastAPI:
    app = FastAPI()

    @app.get("/admin/papers")
    async def admin():
        return {"ok": True}

    @app.get("/download/{paper_id}")
    async def download(paper_id: int):
        return {"id": paper_id}

    app.add_middleware(CookieAuthMiddleware, api_key=KEY)
    return app


async def _get(path: str, cookie: str = "") -> Response:
    headers = {"Cookie": f"{COOKIE_NAME}={cookie}"} if cookie else {}
    transport = ASGITransport(app=_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path, headers=headers)


class TestCookieAuthMiddleware:
    async def test_valid_cookie_passes(self):
        response = await _get("/admin/papers", generate_session_token(KEY))

        assert response.status_code == 200

    async def test_missing_cookie_redirects(self):
        response = await _get("/admin/papers")

        assert response.status_code == 302
        assert response.headers["location"] == "/login?next=/admin/papers"
        assert "set-cookie" not in response.headers

    async def test_stale_cookie_is_cleared(self):
        response = await _get("/admin/papers", generate_session_token("old-key"))

        assert response.status_code == 302
        assert response.headers["set-cookie"].startswith(f'{COOKIE_NAME}=""')

    async def test_downloads_are_public(self):
        response = await _get("/download/7")

        assert response.status_code == 200
