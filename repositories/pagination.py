"""
Pagination, filtering, search and sort for list queries.

`limit=0` means "every row"; otherwise rows [skip, skip + limit) are returned
with skip = (page - 1) * limit. The default page size comes from PAGE_SIZE.

List requests may also carry, keyed by API field name:
- filter: exact match (`.eq`)
- search: case-insensitive substring match (`.ilike`), text fields only
- sort:   "asc" / "desc", applied before the list's own default order

Each repository publishes a `ListFields` naming which API fields map to which
columns; a request naming any other field is rejected.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar

from domain.errors import LedgerValidationError
from repositories.client import QueryBuilder, execute_with_count, fetch_all

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20

_SORT_DIRECTIONS = {"asc": False, "desc": True}


def default_page_size() -> int:
    raw = os.getenv("PAGE_SIZE")
    try:
        return int(raw) if raw else DEFAULT_PAGE_SIZE
    except ValueError:
        return DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class ListFields:
    """API field name -> column for one list, and which fields accept search."""

    columns: Mapping[str, str]
    text: FrozenSet[str] = frozenset()

    def column(self, name: str, kind: str) -> str:
        column = self.columns.get(name)
        if column is None or (kind == "search" and name not in self.text):
            raise LedgerValidationError(f"Cannot {kind} by '{name}'.")
        return column


@dataclass(frozen=True, slots=True)
class PageRequest:
    limit: int
    page: int = 1
    filters: Tuple[Tuple[str, str], ...] = ()
    search: Tuple[Tuple[str, str], ...] = ()
    sort: Tuple[Tuple[str, str], ...] = ()

    @staticmethod
    def of(
        limit: Optional[int] = None,
        page: Optional[int] = None,
        filters: Optional[Mapping[str, str]] = None,
        search: Optional[Mapping[str, str]] = None,
        sort: Optional[Mapping[str, str]] = None,
    ) -> "PageRequest":
        directions = tuple((name, str(direction).lower()) for name, direction in (sort or {}).items())
        for name, direction in directions:
            if direction not in _SORT_DIRECTIONS:
                raise LedgerValidationError(f"Sort direction for '{name}' must be asc or desc.")
        return PageRequest(
            limit=default_page_size() if limit is None else max(limit, 0),
            page=max(page or 1, 1),
            filters=tuple((filters or {}).items()),
            search=tuple((search or {}).items()),
            sort=directions,
        )

    @staticmethod
    def everything() -> "PageRequest":
        return PageRequest(limit=0, page=1)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit if self.limit else 0

    def narrow(self, build_query: QueryBuilder, fields: ListFields) -> QueryBuilder:
        """Wrap a query builder so each query it returns carries this request's filter/search/sort."""

        filters = [(fields.column(name, "filter"), value) for name, value in self.filters]
        search = [(fields.column(name, "search"), value) for name, value in self.search]
        sort = [(fields.column(name, "sort"), _SORT_DIRECTIONS[d]) for name, d in self.sort]

        def build(**select_kwargs: Any) -> Any:
            query = build_query(**select_kwargs)
            for column, value in filters:
                query = query.eq(column, value)
            for column, value in search:
                query = query.ilike(column, f"%{value}%")
            for column, desc in sort:
                query = query.order(column, desc=desc)
            return query

        return build

    def fetch(
        self,
        build_query: QueryBuilder,
        action: str,
        fields: ListFields,
        order: Sequence[str] = (),
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Run a list query for this page and return (rows, total_records).

        `build_query(**select_kwargs)` returns a fresh, unordered query; `order`
        is the list's default order, applied after any requested sort.
        """

        narrowed = self.narrow(build_query, fields)
        if not self.limit:
            rows = fetch_all(narrowed, action, order=order)
            return rows, len(rows)

        query = narrowed(count="exact")
        for column in order:
            query = query.order(column)
        return execute_with_count(query.range(self.skip, self.skip + self.limit - 1), action)


@dataclass(frozen=True, slots=True)
class PageDetails:
    limit: int
    page: int
    skip: int
    total_records: int
    previous: Optional[int]
    next: Optional[int]
    total_pages: int
    filters: Tuple[Tuple[str, str], ...] = ()
    search: Tuple[Tuple[str, str], ...] = ()
    sort: Tuple[Tuple[str, str], ...] = ()

    @staticmethod
    def for_request(request: PageRequest, total_records: int) -> "PageDetails":
        if request.limit:
            total_pages = math.ceil(total_records / request.limit)
        else:
            total_pages = 1 if total_records else 0
        return PageDetails(
            limit=request.limit,
            page=request.page,
            skip=request.skip,
            total_records=total_records,
            previous=request.page - 1 if request.page > 1 else None,
            next=request.page + 1 if request.page < total_pages else None,
            total_pages=total_pages,
            filters=request.filters,
            search=request.search,
            sort=request.sort,
        )


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    details: PageDetails


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "ListFields",
    "PageRequest",
    "PageDetails",
    "Page",
    "default_page_size",
]
