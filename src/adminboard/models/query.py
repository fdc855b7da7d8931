from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QueryMode(StrEnum):
    PLAIN = "plain"
    SEARCH = "search"
    BY_CATEGORY = "by_category"


class QuerySpec(BaseModel):
    """Normalized description of one page request: mode, filter and window."""

    model_config = ConfigDict(frozen=True)

    mode: QueryMode = QueryMode.PLAIN
    filter_value: str | None = None
    limit: int = Field(gt=0)
    offset: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _filter_matches_mode(self) -> QuerySpec:
        if self.mode is QueryMode.PLAIN and self.filter_value is not None:
            raise ValueError("filter_value must be None in plain mode")
        if self.mode is not QueryMode.PLAIN and self.filter_value is None:
            raise ValueError(f"filter_value is required in {self.mode} mode")
        return self

    @classmethod
    def from_filters(
        cls,
        *,
        search: str | None = None,
        category: str | None = None,
        limit: int,
        offset: int = 0,
    ) -> QuerySpec:
        """Build the effective spec from raw UI inputs.

        Non-blank search text wins over a selected category; blank or
        whitespace-only search text counts as no search at all.
        """
        if search is not None and search.strip():
            return cls(mode=QueryMode.SEARCH, filter_value=search, limit=limit, offset=offset)
        if category:
            return cls(
                mode=QueryMode.BY_CATEGORY, filter_value=category, limit=limit, offset=offset
            )
        return cls(limit=limit, offset=offset)

    @property
    def filter_identity(self) -> tuple[QueryMode, str | None]:
        """The part of the spec that pagination must reset on."""
        return self.mode, self.filter_value
