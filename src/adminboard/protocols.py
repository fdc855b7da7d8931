"""Protocol interfaces for swappable components.

CollectionCache and the handlers reference these protocols, not the concrete
implementations, so tests can hand in call-counting doubles instead of a
real HTTP client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from adminboard.models.query import QuerySpec
    from adminboard.models.resources import Category, Collection, Page
    from adminboard.models.session import AuthSession


class ResourceClientProtocol(Protocol):
    """Interface for the remote collection API."""

    async def fetch_page(self, collection: Collection, spec: QuerySpec) -> Page: ...

    async def fetch_categories(self, collection: Collection) -> list[Category]: ...

    async def fetch_item(self, collection: Collection, item_id: int) -> dict[str, Any]: ...


class AuthProviderProtocol(Protocol):
    """Interface for the credential authentication provider."""

    async def login(self, username: str, password: str) -> AuthSession: ...
