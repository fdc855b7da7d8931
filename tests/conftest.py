"""Shared test fixtures for the adminboard test suite."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from adminboard.errors import AdminboardError
from adminboard.models.query import QuerySpec
from adminboard.models.resources import Category, Collection, Page
from adminboard.query_key import make_key


def make_items(prefix: str, start: int, count: int) -> list[dict[str, Any]]:
    return [{"id": start + i, "title": f"{prefix}{start + i}"} for i in range(count)]


class FakeResourceClient:
    """In-memory ResourceClientProtocol double that counts calls.

    Pages are looked up by query key. ``hold(key)`` makes the next fetch for
    that key block until ``release(key)`` (or ``fail(key, ...)``) is called,
    so tests control resolution order.
    """

    def __init__(self) -> None:
        self.pages: dict[str, Page] = {}
        self.errors: dict[str, AdminboardError] = {}
        self.categories: list[Category] = []
        self.items: dict[int, dict[str, Any]] = {}
        self.page_calls: list[tuple[Collection, QuerySpec]] = []
        self.category_calls = 0
        self._gates: dict[str, asyncio.Event] = {}

    def add_page(self, spec: QuerySpec, page: Page) -> None:
        self.pages[make_key(spec)] = page

    def hold(self, spec: QuerySpec) -> None:
        self._gates[make_key(spec)] = asyncio.Event()

    def release(self, spec: QuerySpec) -> None:
        self._gates[make_key(spec)].set()

    async def fetch_page(self, collection: Collection, spec: QuerySpec) -> Page:
        self.page_calls.append((collection, spec))
        key = make_key(spec)
        gate = self._gates.get(key)
        if gate is not None:
            await gate.wait()
        if key in self.errors:
            raise self.errors[key]
        return self.pages[key]

    async def fetch_categories(self, collection: Collection) -> list[Category]:
        self.category_calls += 1
        await asyncio.sleep(0)
        return list(self.categories)

    async def fetch_item(self, collection: Collection, item_id: int) -> dict[str, Any]:
        return self.items[item_id]


@pytest.fixture()
def fake_client() -> FakeResourceClient:
    return FakeResourceClient()


@pytest.fixture()
def first_products_page() -> Page:
    return Page(items=make_items("p", 1, 12), total=194)


@pytest.fixture()
def second_products_page() -> Page:
    return Page(items=make_items("p", 13, 12), total=194)
