"""Tests for the session gate decision and its ASGI middleware.

The middleware is exercised directly via httpx's ASGI transport so no real
server is started. The inner app is a trivial 200-OK echo that never runs if
the middleware short-circuits.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import httpx
import pytest

from adminboard.auth import SessionStore
from adminboard.gate import GateDecision, SessionGateMiddleware, decide
from adminboard.models.session import AuthSession, SessionStatus

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

COOKIE = "adminboard_session"


async def _ok_app(scope: Scope, receive: Receive, send: Send) -> None:
    """Minimal ASGI app that always returns 200 OK."""
    await send({"type": "http.response.start", "status": 200, "headers": []})
    await send({"type": "http.response.body", "body": b"ok"})


def _cookie(token: str) -> dict[str, str]:
    return {"Cookie": f"{COOKIE}={token}"}


def _client(app: ASGIApp) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://localhost",
    )


@pytest.fixture()
def sessions() -> SessionStore:
    return SessionStore("test-secret")


@pytest.fixture()
def token(sessions: SessionStore) -> str:
    return sessions.create(
        AuthSession(
            id=1,
            username="emilys",
            first_name="Emily",
            last_name="Johnson",
            access_token="access",
            expires_at=datetime.now(UTC) + timedelta(hours=1),
        )
    )


class TestDecide:
    def test_authenticated_renders(self) -> None:
        assert decide(SessionStatus.AUTHENTICATED) is GateDecision.RENDER

    def test_loading_waits(self) -> None:
        assert decide(SessionStatus.LOADING) is GateDecision.WAIT

    def test_unauthenticated_redirects(self) -> None:
        assert decide(SessionStatus.UNAUTHENTICATED) is GateDecision.REDIRECT_TO_LOGIN


class TestMiddleware:
    async def test_anonymous_dashboard_redirects(self, sessions: SessionStore) -> None:
        app = SessionGateMiddleware(_ok_app, sessions=sessions, cookie_name=COOKIE)
        async with _client(app) as client:
            response = await client.get("/dashboard/users")
        assert response.status_code == 302
        assert response.headers["location"] == "/login"

    async def test_cookie_session_renders(self, sessions: SessionStore, token: str) -> None:
        app = SessionGateMiddleware(_ok_app, sessions=sessions, cookie_name=COOKIE)
        async with _client(app) as client:
            response = await client.get("/dashboard", headers=_cookie(token))
        assert response.status_code == 200

    async def test_bearer_session_renders(self, sessions: SessionStore, token: str) -> None:
        app = SessionGateMiddleware(_ok_app, sessions=sessions, cookie_name=COOKIE)
        async with _client(app) as client:
            response = await client.get(
                "/dashboard/products", headers={"Authorization": f"Bearer {token}"}
            )
        assert response.status_code == 200

    async def test_forged_token_redirects(self, sessions: SessionStore) -> None:
        app = SessionGateMiddleware(_ok_app, sessions=sessions, cookie_name=COOKIE)
        async with _client(app) as client:
            response = await client.get("/dashboard", headers=_cookie("forged.token"))
        assert response.status_code == 302

    async def test_signed_in_login_page_redirects_to_dashboard(
        self, sessions: SessionStore, token: str
    ) -> None:
        app = SessionGateMiddleware(_ok_app, sessions=sessions, cookie_name=COOKIE)
        async with _client(app) as client:
            response = await client.get("/login", headers=_cookie(token))
        assert response.status_code == 302
        assert response.headers["location"] == "/dashboard"

    async def test_anonymous_login_page_passes(self, sessions: SessionStore) -> None:
        app = SessionGateMiddleware(_ok_app, sessions=sessions, cookie_name=COOKIE)
        async with _client(app) as client:
            response = await client.get("/login")
        assert response.status_code == 200

    async def test_login_post_always_passes(self, sessions: SessionStore, token: str) -> None:
        app = SessionGateMiddleware(_ok_app, sessions=sessions, cookie_name=COOKIE)
        async with _client(app) as client:
            response = await client.post("/login", headers=_cookie(token))
        assert response.status_code == 200

    async def test_similar_prefix_not_gated(self, sessions: SessionStore) -> None:
        app = SessionGateMiddleware(_ok_app, sessions=sessions, cookie_name=COOKIE)
        async with _client(app) as client:
            response = await client.get("/dashboards")
        assert response.status_code == 200
