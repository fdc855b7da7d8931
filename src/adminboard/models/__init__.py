from __future__ import annotations

from adminboard.models.query import QueryMode, QuerySpec
from adminboard.models.resources import Category, Collection, Page
from adminboard.models.session import AuthSession, SessionState, SessionStatus

__all__ = [
    # query
    "QueryMode",
    "QuerySpec",
    # resources
    "Collection",
    "Page",
    "Category",
    # session
    "AuthSession",
    "SessionState",
    "SessionStatus",
]
