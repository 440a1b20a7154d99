"""Query builder for Spinta DSQL query strings."""

from __future__ import annotations

from typing import Callable

from .filters import Expression, FilterBuilder, filter_to_string
from .types import SortDirection, SortSpec

FilterCallback = Callable[[FilterBuilder], Expression]


def append_clause(query_string: str, clause: str) -> str:
    """Append one clause to a rendered query string ('' or '?...')."""
    separator = "&" if query_string else "?"
    return f"{query_string}{separator}{clause}"


def page_clause(cursor: str) -> str:
    """Render the continuation clause for a page cursor."""
    return f'page("{cursor}")'


class QueryBuilder:
    """
    Accumulates select/filter/sort/limit/count directives.

    Usage:
        query = (
            QueryBuilder()
            .select("name", "population")
            .filter(lambda f: f.field("country").eq("lt"))
            .sort("name")
            .limit(10)
        )
        query.to_query_string()
        # ?select(name,population)&country=%22lt%22&sort(name)&limit(10)

    Clauses always render in the order select, filter, sort, limit, count no
    matter which order the methods were called in.
    """

    def __init__(self):
        self._select: list[str] = []
        self._sort: list[SortSpec] = []
        self._limit: int | None = None
        self._count = False
        self._filter: Expression | None = None

    def select(self, *fields: str) -> QueryBuilder:
        """Add fields to return. Dot notation selects through refs: country.name"""
        self._select.extend(str(f) for f in fields)
        return self

    def sort(self, field: str) -> QueryBuilder:
        self._sort.append(SortSpec(str(field), SortDirection.ASC))
        return self

    def sort_desc(self, field: str) -> QueryBuilder:
        self._sort.append(SortSpec(str(field), SortDirection.DESC))
        return self

    def limit(self, n: int) -> QueryBuilder:
        self._limit = n
        return self

    def count(self) -> QueryBuilder:
        self._count = True
        return self

    def filter(self, callback: FilterCallback) -> QueryBuilder:
        """
        Add filter conditions. Repeated calls are AND-combined.

            .filter(lambda f: f.field("a").eq(1).or_(f.field("b").eq(2)))
            .filter(lambda f: f.field("c").gt(3))
            # (a=1|b=2)&c>3
        """
        expr = callback(FilterBuilder())
        self._filter = expr if self._filter is None else self._filter.and_(expr)
        return self

    @property
    def has_limit(self) -> bool:
        return self._limit is not None

    @property
    def filter_expression(self) -> Expression | None:
        return self._filter

    def to_query_string(self) -> str:
        parts: list[str] = []

        if self._select:
            parts.append(f"select({','.join(self._select)})")
        if self._filter is not None:
            parts.append(filter_to_string(self._filter.node))
        if self._sort:
            parts.append(f"sort({','.join(str(s) for s in self._sort)})")
        if self._limit is not None:
            parts.append(f"limit({self._limit})")
        if self._count:
            parts.append("count()")

        if not parts:
            return ""
        return "?" + "&".join(parts)

    def clone(self) -> QueryBuilder:
        """Independent copy. The filter tree is immutable so it is shared."""
        copy = QueryBuilder()
        copy._select = list(self._select)
        copy._sort = list(self._sort)
        copy._limit = self._limit
        copy._count = self._count
        copy._filter = self._filter
        return copy

    def __str__(self) -> str:
        return self.to_query_string()

    def __repr__(self) -> str:
        return f"QueryBuilder({self.to_query_string()!r})"
