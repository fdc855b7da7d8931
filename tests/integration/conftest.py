"""Integration test fixtures.

Provides a fully wired AppState whose upstream HTTP client is backed by a
respx router, and an httpx client talking to the Starlette app in-process
through the ASGI transport.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
import respx

from adminboard.auth import AuthProvider, SessionStore
from adminboard.client import RemoteResourceClient
from adminboard.config import Settings
from adminboard.server import create_app
from adminboard.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.applications import Starlette

API = "https://api.example.com"

LOGIN_PAYLOAD = {
    "id": 1,
    "username": "emilys",
    "email": "emily.johnson@x.dummyjson.com",
    "firstName": "Emily",
    "lastName": "Johnson",
    "image": "https://dummyjson.com/icon/emilys/128",
    "accessToken": "access-123",
    "refreshToken": "refresh-456",
}


@pytest.fixture()
def upstream() -> respx.MockRouter:
    """Router standing in for the remote users/products API."""
    router = respx.MockRouter(base_url=API, assert_all_called=False)
    router.post("/auth/login").mock(return_value=httpx.Response(200, json=LOGIN_PAYLOAD))
    return router


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        api={"base_url": API},
        auth={"secret": "integration-secret"},
        collections={"users_page_size": 10, "products_page_size": 12},
    )


@pytest.fixture()
async def app_state(
    settings: Settings, upstream: respx.MockRouter
) -> AsyncGenerator[AppState, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.async_handler)) as http:
        yield AppState(
            settings=settings,
            client=RemoteResourceClient(http, settings.api.base_url),
            auth=AuthProvider(http, settings.api.base_url),
            sessions=SessionStore(settings.auth.secret),
            http_client=http,
        )


@pytest.fixture()
def app(app_state: AppState) -> Starlette:
    return create_app(state=app_state)


@pytest.fixture()
async def client(app: Starlette) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as client:
        yield client


@pytest.fixture()
async def signed_in(client: httpx.AsyncClient) -> httpx.AsyncClient:
    """The app client after a successful login (session cookie stored)."""
    response = await client.post("/login", json={"username": "emilys", "password": "emilyspass"})
    assert response.status_code == 200
    return client
