"""Credential login against the remote API and in-memory session storage.

The remote API issues the access/refresh tokens; this module only keeps the
resulting profile for the lifetime of the process and hands the browser an
opaque, HMAC-signed session token.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import httpx
import structlog
from pydantic import ValidationError

from adminboard.errors import AuthFailure, DecodeError, ResponseError, TransportError
from adminboard.models.session import AuthSession, SessionState, SessionStatus

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger()


class AuthProvider:
    """Exchanges a username/password pair for an AuthSession."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        *,
        expires_in_mins: int = 60,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._expires_in_mins = expires_in_mins

    async def login(self, username: str, password: str) -> AuthSession:
        if not username or not password:
            raise AuthFailure("Username and password are required")

        url = f"{self._base_url}/auth/login"
        try:
            response = await self._client.post(
                url,
                json={
                    "username": username,
                    "password": password,
                    "expiresInMins": self._expires_in_mins,
                },
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"Network error contacting the login endpoint: {exc}") from exc

        if response.status_code in (400, 401, 403):
            log.info("login_rejected", username=username, status_code=response.status_code)
            raise AuthFailure("Invalid username or password")
        if not response.is_success:
            raise ResponseError(
                f"HTTP {response.status_code} from the login endpoint",
                status=response.status_code,
            )

        try:
            data = response.json()
            session = AuthSession(
                id=data["id"],
                username=data["username"],
                first_name=data["firstName"],
                last_name=data["lastName"],
                email=data.get("email"),
                image=data.get("image"),
                # Older API versions call the access token "token".
                access_token=data.get("accessToken") or data["token"],
                refresh_token=data.get("refreshToken"),
                expires_at=datetime.now(UTC) + timedelta(minutes=self._expires_in_mins),
            )
        except (ValueError, KeyError, TypeError, AttributeError, ValidationError) as exc:
            raise DecodeError(f"Unexpected login payload: {exc}") from exc

        log.info("login_succeeded", username=session.username)
        return session


@dataclass
class _SessionRecord:
    user: AuthSession
    expires_at: datetime


class SessionStore:
    """Process-lifetime session registry.

    Tokens have the form ``<session id>.<hex hmac-sha256 of the id>``; the
    signature uses the configured authentication secret so a forged or
    truncated token never reaches the lookup.

    ``on_expire`` is called with the session id of every session dropped for
    age, whether found on lookup or swept when a new session is created.
    """

    def __init__(
        self,
        secret: str,
        *,
        ttl: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] | None = None,
        on_expire: Callable[[str], None] | None = None,
    ) -> None:
        if not secret:
            raise ValueError("SessionStore requires a non-empty secret")
        self._secret = secret.encode("utf-8")
        self._ttl = ttl
        self._clock = clock or (lambda: datetime.now(UTC))
        self._sessions: dict[str, _SessionRecord] = {}
        self.on_expire = on_expire

    def create(self, user: AuthSession) -> str:
        self._sweep()
        sid = secrets.token_urlsafe(24)
        expires_at = min(self._clock() + self._ttl, user.expires_at)
        self._sessions[sid] = _SessionRecord(user=user, expires_at=expires_at)
        return f"{sid}.{self._sign(sid)}"

    def get(self, token: str | None) -> AuthSession | None:
        sid = self._verify(token)
        if sid is None:
            return None
        record = self._sessions.get(sid)
        if record is None:
            return None
        if self._clock() >= record.expires_at:
            self._expire(sid)
            return None
        return record.user

    def delete(self, token: str | None) -> None:
        sid = self._verify(token)
        if sid is not None:
            self._sessions.pop(sid, None)

    def status(self, token: str | None) -> SessionState:
        user = self.get(token)
        if user is None:
            return SessionState(status=SessionStatus.UNAUTHENTICATED)
        return SessionState(status=SessionStatus.AUTHENTICATED, user=user)

    def session_id(self, token: str | None) -> str | None:
        """Return the verified session id for ``token``, or None."""
        return self._verify(token)

    def _expire(self, sid: str) -> None:
        record = self._sessions.pop(sid)
        log.info("session_expired", username=record.user.username)
        if self.on_expire is not None:
            self.on_expire(sid)

    def _sweep(self) -> None:
        now = self._clock()
        expired = [sid for sid, record in self._sessions.items() if now >= record.expires_at]
        for sid in expired:
            self._expire(sid)

    def _sign(self, sid: str) -> str:
        return hmac.new(self._secret, sid.encode("utf-8"), hashlib.sha256).hexdigest()

    def _verify(self, token: str | None) -> str | None:
        if not token or "." not in token:
            return None
        sid, _, signature = token.rpartition(".")
        if not sid or not hmac.compare_digest(signature, self._sign(sid)):
            return None
        return sid
