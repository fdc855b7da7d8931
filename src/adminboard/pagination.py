"""Page/offset bookkeeping that resets whenever the active filter changes."""

from __future__ import annotations

import math


def page_count(total: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return math.ceil(total / page_size) if total > 0 else 0


class PaginationController:
    """Tracks the current page.

    ``first_page`` selects the numbering convention: 1 for "page 1 of N"
    widgets, 0 for zero-based table paginators.
    """

    def __init__(self, first_page: int = 1) -> None:
        if first_page not in (0, 1):
            raise ValueError("first_page must be 0 or 1")
        self.first_page = first_page
        self.page = first_page

    def set_page(self, page: int) -> None:
        if page < self.first_page:
            raise ValueError(f"page must be >= {self.first_page}, got {page}")
        self.page = page

    def on_filter_changed(self) -> None:
        self.page = self.first_page

    def offset(self, page_size: int) -> int:
        return (self.page - self.first_page) * page_size
