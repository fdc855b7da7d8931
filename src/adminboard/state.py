"""Application state container.

AppState is created once at server startup (inside the Starlette lifespan)
and reached by every handler through ``request.app.state``. Each signed-in
visitor gets a Workspace holding its own list views, so pagination, search
text and displayed items are per visitor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from adminboard.collection import CollectionCache
from adminboard.models.resources import Collection
from adminboard.views import CollectionView

if TYPE_CHECKING:
    import httpx

    from adminboard.auth import SessionStore
    from adminboard.config import Settings
    from adminboard.protocols import AuthProviderProtocol, ResourceClientProtocol


@dataclass
class Workspace:
    users: CollectionView
    products: CollectionView

    def view_for(self, collection: Collection) -> CollectionView:
        return self.users if collection is Collection.USERS else self.products


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every handler."""

    settings: Settings
    client: ResourceClientProtocol
    auth: AuthProviderProtocol
    sessions: SessionStore
    http_client: httpx.AsyncClient | None = None

    # session id → workspace
    workspaces: dict[str, Workspace] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # An expired session takes its workspace with it.
        self.sessions.on_expire = self.discard_workspace

    def build_workspace(self) -> Workspace:
        cfg = self.settings.collections
        debounce_seconds = cfg.search_debounce_ms / 1000
        return Workspace(
            users=CollectionView(
                CollectionCache(Collection.USERS, self.client, capacity=cfg.cache_capacity),
                page_size=cfg.users_page_size,
                debounce_seconds=debounce_seconds,
            ),
            products=CollectionView(
                CollectionCache(Collection.PRODUCTS, self.client, capacity=cfg.cache_capacity),
                page_size=cfg.products_page_size,
                debounce_seconds=debounce_seconds,
            ),
        )

    def workspace(self, session_id: str) -> Workspace:
        """Return the workspace for ``session_id``, creating it on first use."""
        workspace = self.workspaces.get(session_id)
        if workspace is None:
            workspace = self.workspaces[session_id] = self.build_workspace()
        return workspace

    def discard_workspace(self, session_id: str) -> None:
        self.workspaces.pop(session_id, None)
