"""Cache key construction for page requests.

Keys look like ``all::0:12``, ``search:phone:12:12`` or ``cat:laptops:0:12``.
The mode prefix comes first and offset/limit are always the last two
integer fields, so the filter text in between is recovered unambiguously
even when it contains ``:`` itself. Key construction does not trim or
otherwise normalise the filter.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from adminboard.models.query import QueryMode

if TYPE_CHECKING:
    from adminboard.models.query import QuerySpec

_MODE_PREFIX: dict[QueryMode, str] = {
    QueryMode.PLAIN: "all",
    QueryMode.SEARCH: "search",
    QueryMode.BY_CATEGORY: "cat",
}


def make_key(spec: QuerySpec) -> str:
    filter_value = spec.filter_value if spec.filter_value is not None else ""
    return f"{_MODE_PREFIX[spec.mode]}:{filter_value}:{spec.offset}:{spec.limit}"
