"""
Purchase repository (persistence).

Reads purchase rows; inserts, edits and deletes go through the purchase
ledger functions so the product's stock moves in the same transaction.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Mapping, Optional
from uuid import uuid4

from domain.ledger import Purchase
from domain.time import utc_now
from repositories.client import execute, execute_count, fetch_all, get_supabase
from repositories.ledger_functions import call_ledger_function
from repositories.pagination import ListFields, Page, PageDetails, PageRequest
from repositories.rows import optional_str, optional_timestamp, to_decimal, to_int, to_iso_utc

_PURCHASES_TABLE: str = "purchases"

_PURCHASE_ORDER = ("created_at_utc", "purchase_id")

PURCHASE_FIELDS = ListFields(
    columns={
        "productId": "product_id",
        "userId": "user_id",
        "firmId": "firm_id",
        "brandId": "brand_id",
        "quantity": "quantity",
        "purchasePrice": "purchase_price",
        "createdAt": "created_at_utc",
    },
    text=frozenset({"productId", "userId", "firmId", "brandId"}),
)


def _row_to_purchase(row: Mapping[str, Any]) -> Purchase:
    return Purchase(
        purchase_id=str(row["purchase_id"]),
        product_id=str(row["product_id"]),
        quantity=to_int(row.get("quantity")),
        purchase_price=to_decimal(row.get("purchase_price")),
        user_id=row.get("user_id"),
        firm_id=optional_str(row.get("firm_id")),
        brand_id=optional_str(row.get("brand_id")),
        created_at=optional_timestamp(row, "created_at_utc"),
    )


def _purchases_query(**select_kwargs: Any) -> Any:
    return get_supabase().table(_PURCHASES_TABLE).select("*", **select_kwargs)


def list_purchases(page: PageRequest) -> Page[Purchase]:
    rows, total = page.fetch(_purchases_query, "list purchases", PURCHASE_FIELDS, order=_PURCHASE_ORDER)
    return Page(items=[_row_to_purchase(r) for r in rows], details=PageDetails.for_request(page, total))


def list_all_purchases() -> List[Purchase]:
    rows = fetch_all(_purchases_query, "list purchases", order=_PURCHASE_ORDER)
    return [_row_to_purchase(r) for r in rows]


def get_purchase_by_id(purchase_id: str) -> Optional[Purchase]:
    rows = execute(_purchases_query().eq("purchase_id", purchase_id).limit(1), "get purchase")
    return _row_to_purchase(rows[0]) if rows else None


def count_purchases(column: str, value: str) -> int:
    """Number of purchases whose `column` (product_id or firm_id) equals `value`."""

    query = (
        get_supabase()
        .table(_PURCHASES_TABLE)
        .select("purchase_id", count="exact")
        .eq(column, value)
        .limit(1)
    )
    return execute_count(query, "count purchases")


def record_purchase(
    product_id: str,
    user_id: Optional[str],
    quantity: int,
    purchase_price: Decimal,
    firm_id: Optional[str] = None,
) -> Purchase:
    purchase_id = str(uuid4())
    now = utc_now()

    result = call_ledger_function(
        "record_purchase_atomic",
        {
            "p_purchase_id": purchase_id,
            "p_product_id": product_id,
            "p_user_id": user_id,
            "p_firm_id": firm_id,
            "p_quantity": quantity,
            "p_purchase_price": str(purchase_price),
            "p_created_at": to_iso_utc(now, name="created_at"),
        },
    )

    return Purchase(
        purchase_id=purchase_id,
        product_id=product_id,
        quantity=quantity,
        purchase_price=purchase_price,
        user_id=user_id,
        firm_id=firm_id,
        brand_id=optional_str(result.get("brand_id")),
        created_at=now,
    )


def update_purchase(
    purchase_id: str,
    quantity: int,
    purchase_price: Decimal,
    firm_id: Optional[str] = None,
) -> int:
    """Persist a purchase edit; returns the product's quantity afterwards."""

    result = call_ledger_function(
        "update_purchase_atomic",
        {
            "p_purchase_id": purchase_id,
            "p_quantity": quantity,
            "p_purchase_price": str(purchase_price),
            "p_firm_id": firm_id,
        },
    )
    return to_int(result.get("quantity_after"))


def delete_purchase(purchase_id: str) -> None:
    call_ledger_function("delete_purchase_atomic", {"p_purchase_id": purchase_id})


__all__ = [
    "PURCHASE_FIELDS",
    "list_purchases",
    "list_all_purchases",
    "get_purchase_by_id",
    "count_purchases",
    "record_purchase",
    "update_purchase",
    "delete_purchase",
]
