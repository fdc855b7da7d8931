from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Collection(StrEnum):
    USERS = "users"
    PRODUCTS = "products"

    @property
    def supports_categories(self) -> bool:
        return self is Collection.PRODUCTS


class Page(BaseModel):
    """One window of a remote collection.

    ``total`` is the server-reported size of the full result set, not
    ``len(items)``.
    """

    model_config = ConfigDict(frozen=True)

    items: list[dict[str, Any]]
    total: int = Field(ge=0)


class Category(BaseModel):
    slug: str
    name: str
    url: str | None = None
