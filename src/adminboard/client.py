"""HTTP client for the remote users/products API.

One RemoteResourceClient is shared by every CollectionCache. It receives an
httpx.AsyncClient via constructor injection — the server lifespan owns the
client lifecycle. There is no caching and no retry here: each call is exactly
one outbound request.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from adminboard import __version__
from adminboard.errors import DecodeError, ResponseError, TransportError
from adminboard.models.query import QueryMode
from adminboard.models.resources import Category, Page

if TYPE_CHECKING:
    from adminboard.config import ApiSettings
    from adminboard.models.query import QuerySpec
    from adminboard.models.resources import Collection

log = structlog.get_logger()


def build_http_client(settings: ApiSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": f"adminboard/{__version__}", "Accept": "application/json"},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def page_path(collection: Collection, spec: QuerySpec) -> tuple[str, dict[str, str | int]]:
    """Return the endpoint path and query params for one page request."""
    params: dict[str, str | int] = {"limit": spec.limit, "skip": spec.offset}
    if spec.mode is QueryMode.SEARCH:
        params["q"] = spec.filter_value or ""
        return f"/{collection}/search", params
    if spec.mode is QueryMode.BY_CATEGORY:
        return f"/{collection}/category/{quote(spec.filter_value or '', safe='')}", params
    return f"/{collection}", params


class RemoteResourceClient:
    """Paginated, searchable access to the remote collections."""

    def __init__(self, client: httpx.AsyncClient, base_url: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def fetch_page(self, collection: Collection, spec: QuerySpec) -> Page:
        """Fetch one page of ``collection`` as described by ``spec``.

        The list of items lives under a key named after the collection
        (``{"users": [...], "total": 208, ...}``).
        """
        path, params = page_path(collection, spec)
        payload = await self._get_json(path, params)
        try:
            return Page(items=payload[str(collection)], total=payload["total"])
        except (KeyError, TypeError, ValidationError) as exc:
            raise DecodeError(f"Unexpected {collection} page payload from {path}: {exc}") from exc

    async def fetch_categories(self, collection: Collection) -> list[Category]:
        path = f"/{collection}/categories"
        payload = await self._get_json(path)
        try:
            return [Category.model_validate(item) for item in payload]
        except (TypeError, ValidationError) as exc:
            raise DecodeError(f"Unexpected category payload from {path}: {exc}") from exc

    async def fetch_item(self, collection: Collection, item_id: int) -> dict[str, Any]:
        path = f"/{collection}/{item_id}"
        payload = await self._get_json(path)
        if not isinstance(payload, dict):
            raise DecodeError(f"Unexpected item payload from {path}")
        return payload

    async def _get_json(self, path: str, params: dict[str, str | int] | None = None) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            log.warning("fetch_transport_error", url=url, error=str(exc))
            raise TransportError(f"Network error fetching {path}: {exc}") from exc

        if not response.is_success:
            log.warning("fetch_status_error", url=url, status_code=response.status_code)
            raise ResponseError(
                f"HTTP {response.status_code} fetching {path}", status=response.status_code
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise DecodeError(f"Response from {path} is not valid JSON") from exc

        log.debug("fetch_complete", url=url, status_code=response.status_code)
        return payload
