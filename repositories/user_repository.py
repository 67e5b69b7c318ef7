"""
User repository for team members.

Read-only: the reports need names and roles, and the ledger service checks
that sellers and buyers exist.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from domain.users import User, UserRole
from repositories.client import execute, fetch_all, get_supabase
from repositories.pagination import ListFields, Page, PageDetails, PageRequest

_USERS_TABLE: str = "users"

_USER_ORDER = ("username", "user_id")

USER_FIELDS = ListFields(
    columns={
        "username": "username",
        "role": "role",
        "firstName": "first_name",
        "lastName": "last_name",
        "email": "email",
    },
    text=frozenset({"username", "firstName", "lastName", "email"}),
)


def _row_to_user(row: Mapping[str, Any]) -> User:
    role = row.get("role") or UserRole.USER.value
    return User(
        user_id=str(row["user_id"]),
        username=str(row["username"]),
        role=UserRole(role),
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        email=row.get("email"),
    )


def _users_query(**select_kwargs: Any) -> Any:
    # Never select credential columns.
    columns = "user_id, username, role, first_name, last_name, email"
    return get_supabase().table(_USERS_TABLE).select(columns, **select_kwargs)


def list_users(page: PageRequest) -> Page[User]:
    rows, total = page.fetch(_users_query, "list users", USER_FIELDS, order=_USER_ORDER)
    return Page(items=[_row_to_user(r) for r in rows], details=PageDetails.for_request(page, total))


def list_all_users() -> List[User]:
    return [_row_to_user(r) for r in fetch_all(_users_query, "list users", order=_USER_ORDER)]


def get_user_by_id(user_id: str) -> Optional[User]:
    rows = execute(_users_query().eq("user_id", user_id).limit(1), "get user")
    return _row_to_user(rows[0]) if rows else None


__all__ = ["USER_FIELDS", "list_users", "list_all_users", "get_user_by_id"]
