"""Handlers for login, logout and session inspection.

Receive AppState and plain values, return structured dicts. No Starlette
imports — server.py handles the HTTP wiring and the cookie.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field, ValidationError

from adminboard.errors import InvalidInput

if TYPE_CHECKING:
    from adminboard.state import AppState


class LoginInput(BaseModel):
    username: str = Field(default="", max_length=200)
    password: str = Field(default="", max_length=200)


async def login(payload: object, state: AppState) -> tuple[str, dict]:
    """Authenticate and open a session. Returns ``(token, body)``."""
    log = structlog.get_logger().bind(handler="login")

    try:
        validated = LoginInput.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInput("Expected a JSON object with 'username' and 'password'.") from exc

    user = await state.auth.login(validated.username, validated.password)
    token = state.sessions.create(user)
    log.info("session_opened", username=user.username)
    return token, {
        "status": "authenticated",
        "user": _profile(state, token),
    }


def logout(token: str | None, state: AppState) -> dict:
    sid = state.sessions.session_id(token)
    state.sessions.delete(token)
    if sid is not None:
        state.discard_workspace(sid)
    return {"status": "unauthenticated"}


def session(token: str | None, state: AppState) -> dict:
    current = state.sessions.status(token)
    body: dict = {"status": current.status}
    if current.user is not None:
        body["user"] = _profile(state, token)
    return body


def _profile(state: AppState, token: str | None) -> dict | None:
    user = state.sessions.get(token)
    if user is None:
        return None
    return {
        "id": user.id,
        "username": user.username,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "name": user.display_name,
        "email": user.email,
        "image": user.image,
        "access_token": user.access_token,
    }
