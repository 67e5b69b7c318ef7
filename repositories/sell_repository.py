"""
Sell repository (persistence).

Reads go straight to the sells table. Writes go through the sell ledger
functions, which check and move the product's stock in the same transaction
as the sell row; services/ledger_service.py validates the request first.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional
from uuid import uuid4

from domain.ledger import Sell
from domain.time import utc_now
from repositories.client import execute, execute_count, fetch_all, get_supabase
from repositories.ledger_functions import call_ledger_function
from repositories.pagination import ListFields, Page, PageDetails, PageRequest
from repositories.rows import optional_str, optional_timestamp, to_decimal, to_int, to_iso_utc

# Supabase table name for sell records.
_SELLS_TABLE: str = "sells"

# Collection order; "first encountered" tie-breaks rely on it.
_SELL_ORDER = ("created_at_utc", "sell_id")

SELL_FIELDS = ListFields(
    columns={
        "productId": "product_id",
        "sellerId": "seller_id",
        "userId": "user_id",
        "brandId": "brand_id",
        "quantity": "quantity",
        "sellPrice": "sell_price",
        "createdAt": "created_at_utc",
    },
    text=frozenset({"productId", "sellerId", "userId", "brandId"}),
)


def _row_to_sell(row: Mapping[str, Any]) -> Sell:
    """Convert a Supabase row into a Sell. User references are kept as delivered."""

    return Sell(
        sell_id=str(row["sell_id"]),
        product_id=str(row["product_id"]),
        quantity=to_int(row.get("quantity")),
        sell_price=to_decimal(row.get("sell_price")),
        seller_id=row.get("seller_id"),
        user_id=row.get("user_id"),
        brand_id=optional_str(row.get("brand_id")),
        created_at=optional_timestamp(row, "created_at_utc"),
    )


def _sells_query(**select_kwargs: Any) -> Any:
    return get_supabase().table(_SELLS_TABLE).select("*", **select_kwargs)


def list_sells(page: PageRequest, seller_id: Optional[str] = None) -> Page[Sell]:
    def build(**select_kwargs: Any) -> Any:
        query = _sells_query(**select_kwargs)
        return query.eq("seller_id", seller_id) if seller_id else query

    rows, total = page.fetch(build, "list sells", SELL_FIELDS, order=_SELL_ORDER)
    return Page(items=[_row_to_sell(r) for r in rows], details=PageDetails.for_request(page, total))


def list_all_sells() -> List[Sell]:
    return [_row_to_sell(r) for r in fetch_all(_sells_query, "list sells", order=_SELL_ORDER)]


def list_sells_for_products(product_ids: Iterable[str]) -> List[Sell]:
    """All sells of the given products (e.g. every product of one category)."""

    ids = list(product_ids)
    if not ids:
        return []
    rows = fetch_all(
        lambda **kw: _sells_query(**kw).in_("product_id", ids),
        "list sells for products",
        order=_SELL_ORDER,
    )
    return [_row_to_sell(r) for r in rows]


def get_sell_by_id(sell_id: str) -> Optional[Sell]:
    rows = execute(_sells_query().eq("sell_id", sell_id).limit(1), "get sell")
    return _row_to_sell(rows[0]) if rows else None


def count_sells_for_product(product_id: str) -> int:
    query = (
        get_supabase()
        .table(_SELLS_TABLE)
        .select("sell_id", count="exact")
        .eq("product_id", product_id)
        .limit(1)
    )
    return execute_count(query, "count sells")


def record_sell(
    product_id: str,
    seller_id: str,
    user_id: str,
    quantity: int,
    sell_price: Decimal,
) -> Sell:
    """
    Insert a sell and take its quantity out of the product's stock.

    The brand is copied from the product inside the same transaction.

    Returns:
        Sell domain record as stored

    Raises:
        InsufficientStockError: the product no longer has `quantity` on hand
        NotFoundError: the product no longer exists
    """

    sell_id = str(uuid4())
    now = utc_now()

    result = call_ledger_function(
        "record_sell_atomic",
        {
            "p_sell_id": sell_id,
            "p_product_id": product_id,
            "p_seller_id": seller_id,
            "p_user_id": user_id,
            "p_quantity": quantity,
            "p_sell_price": str(sell_price),
            "p_created_at": to_iso_utc(now, name="created_at"),
        },
    )

    return Sell(
        sell_id=sell_id,
        product_id=product_id,
        quantity=quantity,
        sell_price=sell_price,
        seller_id=seller_id,
        user_id=user_id,
        brand_id=optional_str(result.get("brand_id")),
        created_at=now,
    )


def update_sell(sell_id: str, quantity: int, sell_price: Decimal, seller_id: Optional[str] = None) -> int:
    """
    Persist the editable fields of a sell and move stock by the quantity difference.

    Returns:
        The product's quantity after the change
    """

    result = call_ledger_function(
        "update_sell_atomic",
        {
            "p_sell_id": sell_id,
            "p_quantity": quantity,
            "p_sell_price": str(sell_price),
            "p_seller_id": seller_id,
        },
    )
    return to_int(result.get("quantity_after"))


def delete_sell(sell_id: str) -> None:
    """Delete a sell and put its quantity back into stock."""
    call_ledger_function("delete_sell_atomic", {"p_sell_id": sell_id})


__all__ = [
    "SELL_FIELDS",
    "list_sells",
    "list_all_sells",
    "list_sells_for_products",
    "get_sell_by_id",
    "count_sells_for_product",
    "record_sell",
    "update_sell",
    "delete_sell",
]
