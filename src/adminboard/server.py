"""HTTP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the Starlette lifespan context manager
- Register routes and map handler errors to JSON envelopes
- Start uvicorn
"""

from __future__ import annotations

import logging
import secrets
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.responses import JSONResponse
from starlette.routing import Route

import adminboard.handlers.auth as h_auth
import adminboard.handlers.listing as h_listing
from adminboard import __version__
from adminboard.auth import AuthProvider, SessionStore
from adminboard.client import RemoteResourceClient, build_http_client
from adminboard.config import Settings
from adminboard.errors import AdminboardError, AuthFailure, InvalidInput, ResponseError
from adminboard.gate import LOGIN_PATH, SessionGateMiddleware, session_token
from adminboard.models.resources import Collection
from adminboard.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from adminboard.state import Workspace

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# State construction
# ---------------------------------------------------------------------------


def _resolve_secret(settings: Settings) -> str:
    secret = settings.auth.secret
    if not secret:
        secret = secrets.token_urlsafe(32)
        log.warning("auth_secret_auto_generated", reason="ADMINBOARD__AUTH__SECRET not set")
    return secret


def build_state(settings: Settings) -> AppState:
    """Wire the HTTP client, remote client, auth provider and session store."""
    http_client = build_http_client(settings.api)
    return AppState(
        settings=settings,
        client=RemoteResourceClient(http_client, settings.api.base_url),
        auth=AuthProvider(
            http_client,
            settings.api.base_url,
            expires_in_mins=settings.auth.expires_in_mins,
        ),
        sessions=SessionStore(_resolve_secret(settings)),
        http_client=http_client,
    )


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def _error_response(exc: AdminboardError) -> JSONResponse:
    if isinstance(exc, InvalidInput):
        status = 400
    elif isinstance(exc, AuthFailure):
        status = 401
    elif isinstance(exc, ResponseError) and exc.status == 404:
        status = 404
    else:
        status = 502
    log.warning(
        "handler_error",
        code=exc.code,
        message=exc.message,
        recoverable=exc.recoverable,
        http_status=status,
    )
    return JSONResponse(exc.to_dict(), status_code=status)


def _state(request: Request) -> AppState:
    return request.app.state.adminboard


def _token(request: Request) -> str | None:
    return session_token(request, _state(request).settings.auth.cookie_name)


def _workspace(request: Request) -> Workspace:
    state = _state(request)
    sid = state.sessions.session_id(_token(request))
    if sid is None:
        # The gate only lets authenticated requests through to /dashboard.
        raise RuntimeError("dashboard handler reached without a verified session")
    return state.workspace(sid)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


async def login_form(request: Request) -> JSONResponse:
    return JSONResponse({"status": "unauthenticated", "login": LOGIN_PATH, "method": "POST"})


async def login(request: Request) -> JSONResponse:
    state = _state(request)
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    try:
        token, body = await h_auth.login(payload, state)
    except AdminboardError as exc:
        return _error_response(exc)

    response = JSONResponse(body)
    response.set_cookie(
        state.settings.auth.cookie_name,
        token,
        max_age=state.settings.auth.expires_in_mins * 60,
        httponly=True,
        samesite="lax",
    )
    return response


async def logout(request: Request) -> JSONResponse:
    state = _state(request)
    response = JSONResponse(h_auth.logout(_token(request), state))
    response.delete_cookie(state.settings.auth.cookie_name)
    return response


async def session(request: Request) -> JSONResponse:
    return JSONResponse(h_auth.session(_token(request), _state(request)))


async def dashboard(request: Request) -> JSONResponse:
    state = _state(request)
    body = h_auth.session(_token(request), state)
    body["stats"] = await h_listing.stats(state)
    return JSONResponse(body)


def _list_endpoint(collection: Collection):
    async def endpoint(request: Request) -> JSONResponse:
        try:
            body = await h_listing.list_page(
                collection, request.query_params, _workspace(request)
            )
        except AdminboardError as exc:
            return _error_response(exc)
        return JSONResponse(body)

    return endpoint


def _clear_error_endpoint(collection: Collection):
    async def endpoint(request: Request) -> JSONResponse:
        return JSONResponse(h_listing.clear_error(collection, _workspace(request)))

    return endpoint


def _item_endpoint(collection: Collection):
    async def endpoint(request: Request) -> JSONResponse:
        try:
            body = await h_listing.item(
                collection, request.path_params["item_id"], _state(request)
            )
        except AdminboardError as exc:
            return _error_response(exc)
        return JSONResponse(body)

    return endpoint


async def categories(request: Request) -> JSONResponse:
    return JSONResponse(await h_listing.categories(_workspace(request)))


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None, *, state: AppState | None = None) -> Starlette:
    """Build the Starlette app.

    Pass ``state`` to run against pre-wired collaborators (tests); otherwise
    the lifespan builds them from ``settings`` and closes the HTTP client on
    shutdown.
    """
    if state is not None:
        settings = state.settings
    settings = settings or Settings()
    app_state = state or build_state(settings)

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        log.info("server_starting", version=__version__, api=settings.api.base_url)
        try:
            yield
        finally:
            if state is None and app_state.http_client is not None:
                await app_state.http_client.aclose()
            log.info("server_stopping")

    routes = [
        Route("/login", login_form, methods=["GET"]),
        Route("/login", login, methods=["POST"]),
        Route("/logout", logout, methods=["POST"]),
        Route("/session", session, methods=["GET"]),
        Route("/dashboard", dashboard, methods=["GET"]),
        Route("/dashboard/users", _list_endpoint(Collection.USERS), methods=["GET"]),
        Route(
            "/dashboard/users/error",
            _clear_error_endpoint(Collection.USERS),
            methods=["DELETE"],
        ),
        Route("/dashboard/users/{item_id}", _item_endpoint(Collection.USERS), methods=["GET"]),
        Route("/dashboard/products", _list_endpoint(Collection.PRODUCTS), methods=["GET"]),
        Route("/dashboard/products/categories", categories, methods=["GET"]),
        Route(
            "/dashboard/products/error",
            _clear_error_endpoint(Collection.PRODUCTS),
            methods=["DELETE"],
        ),
        Route(
            "/dashboard/products/{item_id}",
            _item_endpoint(Collection.PRODUCTS),
            methods=["GET"],
        ),
    ]

    app = Starlette(
        routes=routes,
        middleware=[
            Middleware(
                SessionGateMiddleware,
                sessions=app_state.sessions,
                cookie_name=settings.auth.cookie_name,
            )
        ],
        lifespan=lifespan,
    )
    app.state.adminboard = app_state
    return app


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()
    _setup_logging(settings)
    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )


if __name__ == "__main__":
    main()
