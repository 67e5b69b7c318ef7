"""
Firm repository (persistence).

Firms are the vendors recorded on purchases.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
from uuid import uuid4

from domain.catalog import Firm
from repositories.client import execute, get_supabase
from repositories.pagination import ListFields, Page, PageDetails, PageRequest
from repositories.rows import optional_str

_FIRMS_TABLE: str = "firms"

_FIRM_ORDER = ("name", "firm_id")

FIRM_FIELDS = ListFields(
    columns={"name": "name", "phone": "phone", "address": "address"},
    text=frozenset({"name", "phone", "address"}),
)


def _row_to_firm(row: Mapping[str, Any]) -> Firm:
    return Firm(
        firm_id=str(row["firm_id"]),
        name=str(row["name"]),
        phone=optional_str(row.get("phone")),
        address=optional_str(row.get("address")),
        image=optional_str(row.get("image")),
    )


def _firms_query(**select_kwargs: Any) -> Any:
    return get_supabase().table(_FIRMS_TABLE).select("*", **select_kwargs)


def list_firms(page: PageRequest) -> Page[Firm]:
    rows, total = page.fetch(_firms_query, "list firms", FIRM_FIELDS, order=_FIRM_ORDER)
    return Page(items=[_row_to_firm(r) for r in rows], details=PageDetails.for_request(page, total))


def get_firm_by_id(firm_id: str) -> Optional[Firm]:
    rows = execute(_firms_query().eq("firm_id", firm_id).limit(1), "get firm")
    return _row_to_firm(rows[0]) if rows else None


def create_firm(
    name: str,
    phone: Optional[str] = None,
    address: Optional[str] = None,
    image: Optional[str] = None,
) -> Firm:
    firm = Firm(firm_id=str(uuid4()), name=name, phone=phone, address=address, image=image)
    payload: dict[str, Any] = {
        "firm_id": firm.firm_id,
        "name": name,
        "phone": phone,
        "address": address,
        "image": image,
    }
    execute(get_supabase().table(_FIRMS_TABLE).insert(payload), "create firm")
    return firm


def update_firm(firm_id: str, changes: Mapping[str, Any]) -> Optional[Firm]:
    query = get_supabase().table(_FIRMS_TABLE).update(dict(changes)).eq("firm_id", firm_id)
    rows = execute(query, "update firm")
    return _row_to_firm(rows[0]) if rows else None


def delete_firm(firm_id: str) -> bool:
    rows = execute(get_supabase().table(_FIRMS_TABLE).delete().eq("firm_id", firm_id), "delete firm")
    return bool(rows)


__all__ = [
    "FIRM_FIELDS",
    "list_firms",
    "get_firm_by_id",
    "create_firm",
    "update_firm",
    "delete_firm",
]
