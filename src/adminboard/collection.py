"""Read-through page cache for one remote collection.

A CollectionCache owns one CollectionState and is the only thing that mutates
it. Every fetched page is kept under its query key for the rest of the
session and is never refreshed in place: paging back or re-selecting a filter
is answered from memory without touching the network, at the price of never
seeing server-side changes until the process restarts.

Fetch failures never cross the CollectionCache boundary. They are recorded in
``state.error`` and the previously displayed page stays in place.

Requests are last-issued-wins. Each request takes the next sequence number;
a network resolution whose number is no longer the newest is stored in the
cache under its own key but does not touch what is displayed.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from adminboard.errors import AdminboardError
from adminboard.models.query import QueryMode
from adminboard.query_key import make_key

if TYPE_CHECKING:
    from adminboard.models.query import QuerySpec
    from adminboard.models.resources import Category, Collection, Page
    from adminboard.protocols import ResourceClientProtocol

log = structlog.get_logger()


@dataclass
class CollectionState:
    """Observable state of one collection, as rendered by the dashboard."""

    current_items: list[dict[str, Any]] = field(default_factory=list)
    current_total: int = 0
    loading: bool = False
    error: str | None = None

    # query key → fetched page, oldest first
    cache: OrderedDict[str, Page] = field(default_factory=OrderedDict)

    # products only; fetched once per process unless the first fetch came back empty
    categories: list[Category] = field(default_factory=list)
    categories_loading: bool = False


class CollectionCache:
    """Read-through cache and loading/error bookkeeping for one collection."""

    def __init__(
        self,
        collection: Collection,
        client: ResourceClientProtocol,
        *,
        state: CollectionState | None = None,
        capacity: int | None = None,
    ) -> None:
        if capacity is not None and capacity < 1:
            raise ValueError("capacity must be a positive integer or None")
        self.collection = collection
        self.state = state if state is not None else CollectionState()
        self._client = client
        self._capacity = capacity
        self._log = log.bind(collection=str(collection))

        self._last_issued = 0
        self._in_flight: set[int] = set()
        self._categories_lock = asyncio.Lock()

    async def request(self, spec: QuerySpec) -> None:
        """Show the page described by ``spec``, from cache or from the network."""
        if spec.mode is QueryMode.BY_CATEGORY and not self.collection.supports_categories:
            raise ValueError(f"{self.collection} cannot be filtered by category")

        key = make_key(spec)
        self._last_issued += 1
        seq = self._last_issued

        cached = self.state.cache.get(key)
        if cached is not None:
            self._log.debug("cache_hit", key=key)
            if self._capacity is not None:
                self.state.cache.move_to_end(key)
            self._display(cached)
            return

        self._log.debug("cache_miss", key=key, seq=seq)
        self.state.loading = True
        self.state.error = None
        self._in_flight.add(seq)

        try:
            page = await self._client.fetch_page(self.collection, spec)
        except AdminboardError as exc:
            if seq != self._last_issued:
                self._log.info("stale_error_discarded", key=key, seq=seq, error=exc.message)
                return
            self._log.warning("fetch_failed", key=key, code=exc.code, error=exc.message)
            self.state.error = exc.message
            return
        except Exception:
            self._log.error("fetch_unexpected_error", key=key, seq=seq, exc_info=True)
            raise
        finally:
            self._resolve(seq)

        self._store(key, page)
        if seq != self._last_issued:
            self._log.info("stale_result_discarded", key=key, seq=seq, latest=self._last_issued)
            return
        self._display(page)

    async def fetch_categories_once(self) -> None:
        """Load the category list unless it is already non-empty."""
        async with self._categories_lock:
            if self.state.categories:
                return
            self.state.categories_loading = True
            try:
                categories = await self._client.fetch_categories(self.collection)
            except AdminboardError as exc:
                self._log.warning("categories_fetch_failed", code=exc.code, error=exc.message)
                self.state.error = exc.message
                return
            finally:
                self.state.categories_loading = False

            self.state.categories = categories
            self._log.info("categories_loaded", count=len(categories))

    def clear_error(self) -> None:
        self.state.error = None

    def _display(self, page: Page) -> None:
        self.state.current_items = page.items
        self.state.current_total = page.total

    def _resolve(self, seq: int) -> None:
        self._in_flight.discard(seq)
        self.state.loading = self._last_issued in self._in_flight

    def _store(self, key: str, page: Page) -> None:
        self.state.cache[key] = page
        if self._capacity is None:
            return
        self.state.cache.move_to_end(key)
        while len(self.state.cache) > self._capacity:
            evicted, _ = self.state.cache.popitem(last=False)
            self._log.debug("cache_evicted", key=evicted)
