"""
Domain: Team members (sellers and buyers).

Only the fields the reports need are modeled; credentials and profile images
are managed elsewhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional

UNKNOWN_PERSON = "Unknown Person"


class UserRole(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    USER = "user"


@dataclass(frozen=True, slots=True)
class User:
    user_id: str
    username: str
    role: UserRole = UserRole.USER
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        """'First Last' when either part is set, otherwise the username."""
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or self.username

    def can_sell(self) -> bool:
        """Only staff and admins appear as sellers."""
        return self.role in (UserRole.ADMIN, UserRole.STAFF)


def index_users(users: Iterable[User]) -> Mapping[str, User]:
    return {user.user_id: user for user in users}


def display_name_for(users: Mapping[str, User], user_id: Optional[str]) -> str:
    if not user_id:
        return UNKNOWN_PERSON
    user = users.get(user_id)
    if user is None:
        return UNKNOWN_PERSON
    return user.display_name or UNKNOWN_PERSON


__all__ = ["UNKNOWN_PERSON", "UserRole", "User", "index_users", "display_name_for"]
