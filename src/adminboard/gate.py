"""Session gate: decides whether a dashboard request renders or goes to login."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog
from starlette.requests import HTTPConnection
from starlette.responses import JSONResponse, RedirectResponse

from adminboard.models.session import SessionStatus

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

    from adminboard.auth import SessionStore

log = structlog.get_logger()

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"


class GateDecision(StrEnum):
    RENDER = "render"
    REDIRECT_TO_LOGIN = "redirect_to_login"
    WAIT = "wait"


def decide(status: SessionStatus) -> GateDecision:
    if status is SessionStatus.AUTHENTICATED:
        return GateDecision.RENDER
    if status is SessionStatus.LOADING:
        return GateDecision.WAIT
    return GateDecision.REDIRECT_TO_LOGIN


def session_token(conn: HTTPConnection, cookie_name: str) -> str | None:
    """Read the session token from a bearer header or the session cookie."""
    auth_header = conn.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return conn.cookies.get(cookie_name)


def _is_dashboard_path(path: str) -> bool:
    return path == DASHBOARD_PATH or path.startswith(DASHBOARD_PATH + "/")


class SessionGateMiddleware:
    """Pure ASGI middleware enforcing the session gate.

    - ``/dashboard`` and everything below it requires an authenticated session;
      anonymous visitors are redirected to ``/login``.
    - An authenticated visitor asking for ``GET /login`` is sent to
      ``/dashboard`` instead.
    All other paths pass through untouched.
    """

    def __init__(self, app: ASGIApp, *, sessions: SessionStore, cookie_name: str) -> None:
        self.app = app
        self.sessions = sessions
        self.cookie_name = cookie_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        conn = HTTPConnection(scope)
        path = conn.url.path

        if _is_dashboard_path(path):
            state = self.sessions.status(session_token(conn, self.cookie_name))
            decision = decide(state.status)
            if decision is GateDecision.REDIRECT_TO_LOGIN:
                log.info("gate_redirect", path=path)
                await RedirectResponse(LOGIN_PATH, status_code=302)(scope, receive, send)
                return
            if decision is GateDecision.WAIT:
                await JSONResponse({"status": state.status}, status_code=503)(
                    scope, receive, send
                )
                return
            scope.setdefault("state", {})["session"] = state.user

        elif path == LOGIN_PATH and scope["method"] == "GET":
            state = self.sessions.status(session_token(conn, self.cookie_name))
            if decide(state.status) is GateDecision.RENDER:
                await RedirectResponse(DASHBOARD_PATH, status_code=302)(scope, receive, send)
                return

        await self.app(scope, receive, send)
