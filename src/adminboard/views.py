"""Dashboard list views: search box + category picker + paginator over one cache.

A CollectionView plays the role of a list page. It feeds keystrokes through a
SearchDebouncer, resets its PaginationController whenever the effective
filter changes, and turns the current inputs into a QuerySpec for its
CollectionCache.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from adminboard.debounce import SearchDebouncer
from adminboard.models.query import QuerySpec
from adminboard.pagination import PaginationController, page_count

if TYPE_CHECKING:
    from adminboard.collection import CollectionCache

log = structlog.get_logger()


class CollectionView:
    def __init__(
        self,
        cache: CollectionCache,
        *,
        page_size: int,
        debounce_seconds: float = 0.4,
        first_page: int = 1,
    ) -> None:
        self.cache = cache
        self.page_size = page_size
        self.pagination = PaginationController(first_page=first_page)
        self.debouncer = SearchDebouncer(debounce_seconds)
        self.debouncer.subscribe(self._on_stable_search)

        self.search = ""
        self.category: str | None = None
        self._tasks: set[asyncio.Task] = set()

    def current_spec(self) -> QuerySpec:
        return QuerySpec.from_filters(
            search=self.search,
            category=self.category,
            limit=self.page_size,
            offset=self.pagination.offset(self.page_size),
        )

    # ------------------------------------------------------------------
    # Interactive inputs
    # ------------------------------------------------------------------

    def on_search_input(self, text: str) -> None:
        self.debouncer.on_input(text)

    def select_category(self, category: str | None) -> None:
        if category and not self.cache.collection.supports_categories:
            raise ValueError(f"{self.cache.collection} cannot be filtered by category")
        if self._apply_filters(self.search, category or None):
            self._schedule_refresh()

    def set_page(self, page: int) -> None:
        self.pagination.set_page(page)
        self._schedule_refresh()

    async def drain(self) -> None:
        """Wait until every scheduled refresh has finished."""
        while self._tasks:
            await asyncio.gather(*self._tasks)

    # ------------------------------------------------------------------
    # One-shot inputs
    # ------------------------------------------------------------------

    async def show(
        self,
        *,
        search: str | None = None,
        category: str | None = None,
        page: int | None = None,
    ) -> None:
        """Apply all inputs at once and refresh.

        A changed filter always lands on the first page; ``page`` only
        applies when the filter stayed the same.
        """
        self.debouncer.cancel()
        filter_changed = self._apply_filters(search or "", category or None)
        if page is not None and not filter_changed:
            self.pagination.set_page(page)
        await self.refresh()

    async def refresh(self) -> None:
        await self.cache.request(self.current_spec())

    def snapshot(self) -> dict[str, Any]:
        state = self.cache.state
        return {
            "collection": str(self.cache.collection),
            "items": state.current_items,
            "total": state.current_total,
            "page": self.pagination.page,
            "page_size": self.page_size,
            "page_count": page_count(state.current_total, self.page_size),
            "search": self.search,
            "category": self.category,
            "loading": state.loading,
            "error": state.error,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _on_stable_search(self, text: str) -> None:
        if self._apply_filters(text, self.category):
            self._schedule_refresh()

    def _apply_filters(self, search: str, category: str | None) -> bool:
        """Store new filter inputs; reset pagination if the effective filter moved."""
        before = self.current_spec().filter_identity
        self.search = search
        self.category = category
        after = self.current_spec().filter_identity
        if before == after:
            return False
        log.debug(
            "filter_changed",
            collection=str(self.cache.collection),
            mode=after[0],
            previous_page=self.pagination.page,
        )
        self.pagination.on_filter_changed()
        return True

    def _schedule_refresh(self) -> None:
        task = asyncio.create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
