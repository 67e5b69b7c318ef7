"""
List query parameters shared by every list endpoint.

    ?limit=10&page=2
    ?filter[categoryId]=c1&filter[brandId]=b1    exact match
    ?search[name]=gui                             case-insensitive substring
    ?sort[price]=desc&sort[name]=asc              applied in the order given

Field names are the camelCase names of the listed objects. A field the list
does not support, or a sort direction other than asc/desc, is a 400.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

from fastapi import Query, Request

from api.errors import to_http_exception
from domain.errors import LedgerError
from repositories.pagination import PageRequest

_BRACKET_PARAM = re.compile(r"^(filter|search|sort)\[([^\]]+)\]$")


def list_request(
    request: Request,
    limit: Optional[int] = Query(None, ge=0, description="Page size (default PAGE_SIZE, 0 = all)"),
    page: Optional[int] = Query(None, ge=1, description="1-based page number"),
) -> PageRequest:
    """FastAPI dependency building a PageRequest from the query string."""

    groups: Dict[str, Dict[str, str]] = {"filter": {}, "search": {}, "sort": {}}
    for key, value in request.query_params.multi_items():
        match = _BRACKET_PARAM.match(key)
        if match:
            groups[match.group(1)][match.group(2)] = value

    try:
        return PageRequest.of(
            limit,
            page,
            filters=groups["filter"],
            search=groups["search"],
            sort=groups["sort"],
        )
    except LedgerError as e:
        raise to_http_exception(e)


__all__ = ["list_request"]
