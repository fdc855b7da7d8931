from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class SessionStatus(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"


class AuthSession(BaseModel):
    """What the authentication provider hands back on a successful login."""

    id: int
    username: str
    first_name: str
    last_name: str
    email: str | None = None
    image: str | None = None
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class SessionState(BaseModel):
    status: SessionStatus
    user: AuthSession | None = None
