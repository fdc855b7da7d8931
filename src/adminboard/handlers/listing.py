"""Handlers for the users/products list, category, detail and stats endpoints."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, Field, ValidationError

from adminboard.errors import AdminboardError, InvalidInput
from adminboard.models.query import QuerySpec
from adminboard.models.resources import Collection

if TYPE_CHECKING:
    from collections.abc import Mapping

    from adminboard.state import AppState, Workspace


class ListInput(BaseModel):
    q: str = Field(default="", max_length=200)
    category: str | None = Field(default=None, max_length=100)
    page: int | None = Field(default=None, ge=1)


async def list_page(
    collection: Collection, params: Mapping[str, str], workspace: Workspace
) -> dict[str, Any]:
    """Apply the query-string inputs to the collection view and return its snapshot."""
    log = structlog.get_logger().bind(handler="list_page", collection=str(collection))

    try:
        validated = ListInput.model_validate(dict(params))
    except ValidationError as exc:
        raise InvalidInput(f"Invalid list parameters: {exc.errors()[0]['msg']}") from exc

    if validated.category and not collection.supports_categories:
        raise InvalidInput(f"{collection} cannot be filtered by category")

    view = workspace.view_for(collection)
    await view.show(search=validated.q, category=validated.category, page=validated.page)

    snapshot = view.snapshot()
    log.info(
        "list_rendered",
        page=snapshot["page"],
        total=snapshot["total"],
        error=snapshot["error"],
    )
    return snapshot


async def categories(workspace: Workspace) -> dict[str, Any]:
    cache = workspace.products.cache
    await cache.fetch_categories_once()
    return {
        "categories": [c.model_dump(mode="json") for c in cache.state.categories],
        "error": cache.state.error,
    }


def clear_error(collection: Collection, workspace: Workspace) -> dict[str, Any]:
    view = workspace.view_for(collection)
    view.cache.clear_error()
    return view.snapshot()


async def item(collection: Collection, raw_id: str, state: AppState) -> dict[str, Any]:
    try:
        item_id = int(raw_id)
    except ValueError as exc:
        raise InvalidInput(f"Item id must be an integer, got {raw_id!r}") from exc
    if item_id < 1:
        raise InvalidInput("Item id must be positive")
    return await state.client.fetch_item(collection, item_id)


async def stats(state: AppState) -> dict[str, int]:
    """Total record count of each collection, read from a one-item page.

    Bypasses the per-session caches so the counts are always current. Any
    upstream failure reports zero for both collections.
    """
    spec = QuerySpec(limit=1, offset=0)
    results = await asyncio.gather(
        state.client.fetch_page(Collection.USERS, spec),
        state.client.fetch_page(Collection.PRODUCTS, spec),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, AdminboardError):
            log = structlog.get_logger().bind(handler="stats")
            log.warning("stats_unavailable", code=result.code, error=result.message)
            return {"users": 0, "products": 0}
        if isinstance(result, BaseException):
            raise result
    users, products = results
    return {"users": users.total, "products": products.total}
