"""
Catalog repository (persistence).

Reads and writes categories, brands and products. Product stock counters are
never written here: they move only through the ledger functions. Products are
always listed in collection order (created_at_utc, then product_id) so that
"first encountered" tie-breaks are stable between calls.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional
from uuid import uuid4

from domain.catalog import Brand, Category, Product
from domain.time import utc_now
from repositories.client import execute, execute_count, fetch_all, get_supabase
from repositories.pagination import ListFields, Page, PageDetails, PageRequest
from repositories.rows import optional_timestamp, to_decimal, to_int, to_iso_utc

_CATEGORIES_TABLE: str = "categories"
_BRANDS_TABLE: str = "brands"
_PRODUCTS_TABLE: str = "products"

_NAME_ORDER = ("name",)
_PRODUCT_ORDER = ("created_at_utc", "product_id")

CATEGORY_FIELDS = ListFields(columns={"name": "name"}, text=frozenset({"name"}))

BRAND_FIELDS = ListFields(
    columns={"name": "name", "description": "description"},
    text=frozenset({"name", "description"}),
)

PRODUCT_FIELDS = ListFields(
    columns={
        "name": "name",
        "categoryId": "category_id",
        "brandId": "brand_id",
        "price": "price",
        "quantity": "quantity",
        "purchaseCount": "purchase_count",
        "soldCount": "sold_count",
        "createdAt": "created_at_utc",
    },
    text=frozenset({"name"}),
)


def _row_to_category(row: Mapping[str, Any]) -> Category:
    return Category(category_id=str(row["category_id"]), name=str(row["name"]))


def _row_to_brand(row: Mapping[str, Any]) -> Brand:
    return Brand(
        brand_id=str(row["brand_id"]),
        name=str(row["name"]),
        description=str(row.get("description") or ""),
    )


def _row_to_product(row: Mapping[str, Any]) -> Product:
    return Product(
        product_id=str(row["product_id"]),
        name=str(row["name"]),
        category_id=str(row["category_id"]),
        brand_id=str(row["brand_id"]),
        price=to_decimal(row.get("price")),
        quantity=to_int(row.get("quantity")),
        purchase_count=to_int(row.get("purchase_count")),
        sold_count=to_int(row.get("sold_count")),
        created_at=optional_timestamp(row, "created_at_utc"),
    )


def _table_query(table: str, **select_kwargs: Any) -> Any:
    return get_supabase().table(table).select("*", **select_kwargs)


def _categories_query(**select_kwargs: Any) -> Any:
    return _table_query(_CATEGORIES_TABLE, **select_kwargs)


def _brands_query(**select_kwargs: Any) -> Any:
    return _table_query(_BRANDS_TABLE, **select_kwargs)


def _products_query(**select_kwargs: Any) -> Any:
    return _table_query(_PRODUCTS_TABLE, **select_kwargs)


def _first(table: str, column: str, value: str, action: str) -> Optional[Mapping[str, Any]]:
    rows = execute(_table_query(table).eq(column, value).limit(1), action)
    return rows[0] if rows else None


def _update(table: str, key: str, key_value: str, payload: Mapping[str, Any], action: str) -> Optional[Mapping[str, Any]]:
    query = get_supabase().table(table).update(dict(payload)).eq(key, key_value)
    rows = execute(query, action)
    return rows[0] if rows else None


def _delete(table: str, key: str, key_value: str, action: str) -> bool:
    rows = execute(get_supabase().table(table).delete().eq(key, key_value), action)
    return bool(rows)


# ============================================================================
# Categories
# ============================================================================

def list_categories(page: PageRequest) -> Page[Category]:
    rows, total = page.fetch(_categories_query, "list categories", CATEGORY_FIELDS, order=_NAME_ORDER)
    return Page(items=[_row_to_category(r) for r in rows], details=PageDetails.for_request(page, total))


def get_category_by_id(category_id: str) -> Optional[Category]:
    row = _first(_CATEGORIES_TABLE, "category_id", category_id, "get category")
    return _row_to_category(row) if row else None


def find_category_by_name(name: str) -> Optional[Category]:
    row = _first(_CATEGORIES_TABLE, "name", name, "find category")
    return _row_to_category(row) if row else None


def create_category(name: str) -> Category:
    category = Category(category_id=str(uuid4()), name=name)
    payload = {"category_id": category.category_id, "name": name}
    execute(get_supabase().table(_CATEGORIES_TABLE).insert(payload), "create category")
    return category


def update_category(category_id: str, name: str) -> Optional[Category]:
    row = _update(_CATEGORIES_TABLE, "category_id", category_id, {"name": name}, "update category")
    return _row_to_category(row) if row else None


def delete_category(category_id: str) -> bool:
    return _delete(_CATEGORIES_TABLE, "category_id", category_id, "delete category")


# ============================================================================
# Brands
# ============================================================================

def list_brands(page: PageRequest) -> Page[Brand]:
    rows, total = page.fetch(_brands_query, "list brands", BRAND_FIELDS, order=_NAME_ORDER)
    return Page(items=[_row_to_brand(r) for r in rows], details=PageDetails.for_request(page, total))


def get_brand_by_id(brand_id: str) -> Optional[Brand]:
    row = _first(_BRANDS_TABLE, "brand_id", brand_id, "get brand")
    return _row_to_brand(row) if row else None


def find_brand_by_name(name: str) -> Optional[Brand]:
    row = _first(_BRANDS_TABLE, "name", name, "find brand")
    return _row_to_brand(row) if row else None


def create_brand(name: str, description: str = "") -> Brand:
    brand = Brand(brand_id=str(uuid4()), name=name, description=description)
    payload = {"brand_id": brand.brand_id, "name": name, "description": description}
    execute(get_supabase().table(_BRANDS_TABLE).insert(payload), "create brand")
    return brand


def update_brand(brand_id: str, changes: Mapping[str, Any]) -> Optional[Brand]:
    """Apply `changes` (name and/or description) to a brand; None when it does not exist."""
    row = _update(_BRANDS_TABLE, "brand_id", brand_id, changes, "update brand")
    return _row_to_brand(row) if row else None


def delete_brand(brand_id: str) -> bool:
    return _delete(_BRANDS_TABLE, "brand_id", brand_id, "delete brand")


# ============================================================================
# Products
# ============================================================================

def list_products(page: PageRequest) -> Page[Product]:
    rows, total = page.fetch(_products_query, "list products", PRODUCT_FIELDS, order=_PRODUCT_ORDER)
    return Page(items=[_row_to_product(r) for r in rows], details=PageDetails.for_request(page, total))


def list_all_products() -> List[Product]:
    rows = fetch_all(_products_query, "list products", order=_PRODUCT_ORDER)
    return [_row_to_product(r) for r in rows]


def list_products_by_category(category_id: str) -> List[Product]:
    rows = fetch_all(
        lambda **kw: _products_query(**kw).eq("category_id", category_id),
        "list products by category",
        order=_PRODUCT_ORDER,
    )
    return [_row_to_product(r) for r in rows]


def count_products(column: str, value: str) -> int:
    """Number of products whose `column` (category_id or brand_id) equals `value`."""

    query = (
        get_supabase()
        .table(_PRODUCTS_TABLE)
        .select("product_id", count="exact")
        .eq(column, value)
        .limit(1)
    )
    return execute_count(query, "count products")


def get_product_by_id(product_id: str) -> Optional[Product]:
    row = _first(_PRODUCTS_TABLE, "product_id", product_id, "get product")
    return _row_to_product(row) if row else None


def create_product(name: str, category_id: str, brand_id: str, price: Decimal) -> Product:
    """Insert a product with empty stock; stock arrives through purchases."""

    now = utc_now()
    product = Product(
        product_id=str(uuid4()),
        name=name,
        category_id=category_id,
        brand_id=brand_id,
        price=price,
        created_at=now,
    )
    payload: dict[str, Any] = {
        "product_id": product.product_id,
        "name": name,
        "category_id": category_id,
        "brand_id": brand_id,
        "price": str(price),
        "quantity": 0,
        "purchase_count": 0,
        "sold_count": 0,
        "created_at_utc": to_iso_utc(now, name="created_at"),
    }
    execute(get_supabase().table(_PRODUCTS_TABLE).insert(payload), "create product")
    return product


def update_product(product_id: str, changes: Mapping[str, Any]) -> Optional[Product]:
    """
    Apply catalog changes (name, category_id, brand_id, price) to a product.

    Stock counters are not accepted here.
    """

    payload = {k: (str(v) if isinstance(v, Decimal) else v) for k, v in changes.items()}
    row = _update(_PRODUCTS_TABLE, "product_id", product_id, payload, "update product")
    return _row_to_product(row) if row else None


def delete_product(product_id: str) -> bool:
    return _delete(_PRODUCTS_TABLE, "product_id", product_id, "delete product")


def index_products(products: Iterable[Product]) -> dict[str, Product]:
    return {p.product_id: p for p in products}


__all__ = [
    "CATEGORY_FIELDS",
    "BRAND_FIELDS",
    "PRODUCT_FIELDS",
    "list_categories",
    "get_category_by_id",
    "find_category_by_name",
    "create_category",
    "update_category",
    "delete_category",
    "list_brands",
    "get_brand_by_id",
    "find_brand_by_name",
    "create_brand",
    "update_brand",
    "delete_brand",
    "list_products",
    "list_all_products",
    "list_products_by_category",
    "count_products",
    "get_product_by_id",
    "create_product",
    "update_product",
    "delete_product",
    "index_products",
]
