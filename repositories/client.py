"""
Supabase client initialization.

This module contains *only* the database connection setup. Repository modules
call `get_supabase()`; the client is created on first use so that importing
the application (or its tests) does not require credentials.

Environment variables required:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from dotenv import load_dotenv
from postgrest.exceptions import APIError
from supabase import Client, create_client

# Load environment variables from the project's .env file
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

_client: Optional[Client] = None

# Supabase answers any single request with at most db-max-rows (1000) rows.
FETCH_PAGE_SIZE = 1000


def _require_env(name: str, hint: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing environment variable: {name}. Set {name} to {hint}.")
    return value


def get_supabase() -> Client:
    """Return the process-wide Supabase client, creating it on first use."""

    global _client
    if _client is None:
        url = _require_env("SUPABASE_URL", "your Supabase project URL")
        key = _require_env("SUPABASE_KEY", "your Supabase API key")
        _client = create_client(url, key)
    return _client


def execute(query: Any, action: str) -> list[dict[str, Any]]:
    """
    Run a PostgREST query and return its rows.

    Failures are raised as RuntimeError("Failed to <action>: ...") whether the
    client raises APIError or returns a response carrying an error.
    """

    try:
        response = query.execute()
    except APIError as e:
        raise RuntimeError(f"Failed to {action}: {e.message or e}") from e

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")

    return getattr(response, "data", None) or []


def execute_with_count(query: Any, action: str) -> tuple[list[dict[str, Any]], int]:
    """Like `execute` for a query selected with count="exact"; also returns the total."""

    try:
        response = query.execute()
    except APIError as e:
        raise RuntimeError(f"Failed to {action}: {e.message or e}") from e

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")

    rows = getattr(response, "data", None) or []
    count = getattr(response, "count", None)
    return rows, count if count is not None else len(rows)


def execute_count(query: Any, action: str) -> int:
    """Total rows matched by a query selected with count="exact"."""

    _, total = execute_with_count(query, action)
    return total


QueryBuilder = Callable[..., Any]


def fetch_all(
    build_query: QueryBuilder,
    action: str,
    order: Sequence[str] = (),
    page_size: int = FETCH_PAGE_SIZE,
) -> list[dict[str, Any]]:
    """
    Read every row a query matches, one `.range()` window at a time.

    `build_query(**select_kwargs)` must return a fresh filtered query on each
    call; `order` columns are appended so that windows do not overlap. The
    first window is counted (count="exact") and windows are requested until
    that many rows have been read, so a server row cap below `page_size`
    only costs extra round trips.
    """

    def window(start: int, **select_kwargs: Any) -> Any:
        query = build_query(**select_kwargs)
        for column in order:
            query = query.order(column)
        return query.range(start, start + page_size - 1)

    all_rows, total_count = execute_with_count(window(0, count="exact"), action)
    all_rows = list(all_rows)
    offset = len(all_rows)

    while offset < total_count:
        page_rows = execute(window(offset), action)
        if not page_rows:
            break

        all_rows.extend(page_rows)
        offset += len(page_rows)

    return all_rows


__all__ = ["FETCH_PAGE_SIZE", "get_supabase", "execute", "execute_with_count", "execute_count", "fetch_all"]
