"""
In-memory stand-in for the Supabase client used by repository, service and
API tests.

Supports the subset of the PostgREST fluent builder the repositories call:
table / select(columns, count) / eq / in_ / ilike / order(desc) / range /
limit / insert / update / delete / execute, plus rpc() for the ledger
functions. Like a Supabase project, no single select returns more than
`max_rows` rows (db-max-rows); `count` is still the full match count.

Every write is appended to `writes` so tests can assert that a rejected
mutation wrote nothing. Ledger functions run under one lock, as the row lock
serializes them in PostgreSQL.
"""

from __future__ import annotations

import copy
import re
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError

SUPABASE_MAX_ROWS = 1000


@dataclass
class FakeResponse:
    data: Any
    count: Optional[int] = None


def _ilike(value: Any, pattern: str) -> bool:
    if value is None:
        return False
    regex = "".join(".*" if ch == "%" else "." if ch == "_" else re.escape(ch) for ch in pattern)
    return re.fullmatch(regex, str(value), flags=re.IGNORECASE | re.DOTALL) is not None


def _sort_key(column: str) -> Callable[[Dict[str, Any]], Tuple[bool, Any]]:
    def key(row: Dict[str, Any]) -> Tuple[bool, Any]:
        value = row.get(column)
        return (value is None, "" if value is None else value)

    return key


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self._db = db
        self._table = table
        self._op = "select"
        self._columns = "*"
        self._count = False
        self._payload: Optional[Dict[str, Any]] = None
        self._filters: List[Tuple[str, str, Any]] = []
        self._orders: List[Tuple[str, bool]] = []
        self._range: Optional[Tuple[int, int]] = None
        self._limit: Optional[int] = None

    def select(self, columns: str = "*", count: Optional[str] = None) -> "FakeQuery":
        self._op = "select"
        self._columns = columns
        self._count = count is not None
        return self

    def insert(self, payload: Dict[str, Any]) -> "FakeQuery":
        self._op = "insert"
        self._payload = payload
        return self

    def update(self, payload: Dict[str, Any]) -> "FakeQuery":
        self._op = "update"
        self._payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(("eq", column, value))
        return self

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        self._filters.append(("in", column, list(values)))
        return self

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        self._filters.append(("ilike", column, pattern))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._orders.append((column, desc))
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self._range = (start, end)
        return self

    def limit(self, size: int) -> "FakeQuery":
        self._limit = size
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        for op, column, value in self._filters:
            if op == "eq" and row.get(column) != value:
                return False
            if op == "in" and row.get(column) not in value:
                return False
            if op == "ilike" and not _ilike(row.get(column), value):
                return False
        return True

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self._columns.strip() == "*":
            return copy.deepcopy(row)
        wanted = [c.strip() for c in self._columns.split(",")]
        return {c: copy.deepcopy(row.get(c)) for c in wanted}

    def execute(self) -> FakeResponse:
        if self._table in self._db.failing_tables:
            raise APIError({"message": f"{self._table} unavailable", "code": "500", "hint": None, "details": None})

        with self._db.lock:
            return self._run()

    def _run(self) -> FakeResponse:
        rows = self._db.tables.setdefault(self._table, [])

        if self._op == "insert":
            row = copy.deepcopy(self._payload or {})
            rows.append(row)
            self._db.writes.append(("insert", self._table, row))
            return FakeResponse(data=[copy.deepcopy(row)])

        matched = [r for r in rows if self._matches(r)]

        if self._op == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload or {}))
            self._db.writes.append(("update", self._table, dict(self._payload or {})))
            return FakeResponse(data=copy.deepcopy(matched))

        if self._op == "delete":
            self._db.tables[self._table] = [r for r in rows if not self._matches(r)]
            self._db.writes.append(("delete", self._table, {"rows": len(matched)}))
            return FakeResponse(data=copy.deepcopy(matched))

        # Stable sorts applied last-to-first give multi-column ordering.
        for column, desc in reversed(self._orders):
            matched.sort(key=_sort_key(column), reverse=desc)

        total = len(matched)
        if self._range is not None:
            start, end = self._range
            matched = matched[start:end + 1]
        if self._limit is not None:
            matched = matched[: self._limit]
        matched = matched[: self._db.max_rows]

        return FakeResponse(
            data=[self._project(r) for r in matched],
            count=total if self._count else None,
        )


class FakeRpc:
    def __init__(self, db: "FakeSupabase", function: str, params: Dict[str, Any]) -> None:
        self._db = db
        self._function = function
        self._params = dict(params)

    def execute(self) -> FakeResponse:
        handler = getattr(self._db, f"_fn_{self._function}", None)
        if handler is None:
            raise APIError({"message": f"function {self._function} does not exist", "code": "42883",
                            "hint": None, "details": None})
        with self._db.lock:
            result = handler(**self._params)
            if result.get("success"):
                self._db.writes.append(("rpc", self._function, dict(self._params)))
        return FakeResponse(data=result)


def _failure(code: str, message: str, **extra: Any) -> Dict[str, Any]:
    return {"success": False, "error": code, "message": message, **extra}


class FakeSupabase:
    """
    In-memory tables plus Python versions of the ledger functions.

    The `_fn_*` methods mirror sql/ledger_functions.sql: same checks, same
    messages, relative counter updates.
    """

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(tables or {})
        self.writes: List[Tuple[str, str, Dict[str, Any]]] = []
        self.failing_tables: set[str] = set()
        self.max_rows = SUPABASE_MAX_ROWS
        self.lock = threading.RLock()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, function: str, params: Dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, function, params)

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])

    def row(self, table: str, key: str, value: Any) -> Optional[Dict[str, Any]]:
        return next((r for r in self.rows(table) if r.get(key) == value), None)

    # ------------------------------------------------------------------
    # Ledger functions
    # ------------------------------------------------------------------

    def _fn_record_sell_atomic(self, p_sell_id, p_product_id, p_seller_id, p_user_id, p_quantity,
                               p_sell_price, p_created_at) -> Dict[str, Any]:
        if p_quantity < 1:
            return _failure("INVALID_QUANTITY", "Quantity must be at least 1.")
        product = self.row("products", "product_id", p_product_id)
        if product is None:
            return _failure("PRODUCT_NOT_FOUND", "Product not found")
        if product["quantity"] < p_quantity:
            return _failure("INSUFFICIENT_STOCK", "Not enough stock available.",
                            available_stock=product["quantity"])

        self.tables.setdefault("sells", []).append({
            "sell_id": p_sell_id,
            "product_id": p_product_id,
            "seller_id": p_seller_id,
            "user_id": p_user_id,
            "brand_id": product["brand_id"],
            "quantity": p_quantity,
            "sell_price": p_sell_price,
            "created_at_utc": p_created_at,
        })
        product["quantity"] -= p_quantity
        product["sold_count"] += p_quantity
        return {"success": True, "sell_id": p_sell_id, "brand_id": product["brand_id"],
                "quantity_after": product["quantity"]}

    def _fn_update_sell_atomic(self, p_sell_id, p_quantity, p_sell_price, p_seller_id) -> Dict[str, Any]:
        if p_quantity < 1:
            return _failure("INVALID_QUANTITY", "Quantity must be at least 1.")
        sell = self.row("sells", "sell_id", p_sell_id)
        if sell is None:
            return _failure("SELL_NOT_FOUND", "Sell not found")
        product = self.row("products", "product_id", sell["product_id"])
        if product is None:
            return _failure("PRODUCT_NOT_FOUND", "Product not found")

        diff = p_quantity - sell["quantity"]
        if diff > 0 and product["quantity"] < diff:
            return _failure(
                "INSUFFICIENT_STOCK",
                f"Not enough stock to increase sell quantity by {diff}. Only {product['quantity']} left.",
                available_stock=product["quantity"],
            )

        sell.update({"quantity": p_quantity, "sell_price": p_sell_price})
        if p_seller_id is not None:
            sell["seller_id"] = p_seller_id
        product["quantity"] -= diff
        product["sold_count"] = max(product["sold_count"] + diff, 0)
        return {"success": True, "sell_id": p_sell_id, "quantity_after": product["quantity"]}

    def _fn_delete_sell_atomic(self, p_sell_id) -> Dict[str, Any]:
        sell = self.row("sells", "sell_id", p_sell_id)
        if sell is None:
            return _failure("SELL_NOT_FOUND", "Sell not found")

        self.tables["sells"] = [r for r in self.rows("sells") if r.get("sell_id") != p_sell_id]
        product = self.row("products", "product_id", sell["product_id"])
        if product is not None:
            product["quantity"] += sell["quantity"]
            product["sold_count"] = max(product["sold_count"] - sell["quantity"], 0)
        return {"success": True, "sell_id": p_sell_id, "restored": sell["quantity"]}

    def _fn_record_purchase_atomic(self, p_purchase_id, p_product_id, p_user_id, p_firm_id, p_quantity,
                                   p_purchase_price, p_created_at) -> Dict[str, Any]:
        if p_quantity < 1:
            return _failure("INVALID_QUANTITY", "Quantity must be at least 1.")
        product = self.row("products", "product_id", p_product_id)
        if product is None:
            return _failure("PRODUCT_NOT_FOUND", "Product not found")

        self.tables.setdefault("purchases", []).append({
            "purchase_id": p_purchase_id,
            "product_id": p_product_id,
            "user_id": p_user_id,
            "firm_id": p_firm_id,
            "brand_id": product["brand_id"],
            "quantity": p_quantity,
            "purchase_price": p_purchase_price,
            "created_at_utc": p_created_at,
        })
        product["quantity"] += p_quantity
        product["purchase_count"] += p_quantity
        return {"success": True, "purchase_id": p_purchase_id, "brand_id": product["brand_id"],
                "quantity_after": product["quantity"]}

    def _fn_update_purchase_atomic(self, p_purchase_id, p_quantity, p_purchase_price, p_firm_id) -> Dict[str, Any]:
        if p_quantity < 1:
            return _failure("INVALID_QUANTITY", "Quantity must be at least 1.")
        purchase = self.row("purchases", "purchase_id", p_purchase_id)
        if purchase is None:
            return _failure("PURCHASE_NOT_FOUND", "Purchase not found")
        product = self.row("products", "product_id", purchase["product_id"])
        if product is None:
            return _failure("PRODUCT_NOT_FOUND", "Product not found")

        diff = p_quantity - purchase["quantity"]
        if product["quantity"] + diff < 0:
            return _failure(
                "INSUFFICIENT_STOCK",
                f"Cannot reduce purchase by {-diff}. Only {product['quantity']} left in stock.",
                available_stock=product["quantity"],
            )

        purchase.update({"quantity": p_quantity, "purchase_price": p_purchase_price})
        if p_firm_id is not None:
            purchase["firm_id"] = p_firm_id
        product["quantity"] += diff
        product["purchase_count"] = max(product["purchase_count"] + diff, 0)
        return {"success": True, "purchase_id": p_purchase_id, "quantity_after": product["quantity"]}

    def _fn_delete_purchase_atomic(self, p_purchase_id) -> Dict[str, Any]:
        purchase = self.row("purchases", "purchase_id", p_purchase_id)
        if purchase is None:
            return _failure("PURCHASE_NOT_FOUND", "Purchase not found")
        product = self.row("products", "product_id", purchase["product_id"])
        if product is not None and product["quantity"] < purchase["quantity"]:
            return _failure(
                "INSUFFICIENT_STOCK",
                f"Cannot delete purchase of {purchase['quantity']}. Only {product['quantity']} left in stock.",
                available_stock=product["quantity"],
            )

        self.tables["purchases"] = [r for r in self.rows("purchases") if r.get("purchase_id") != p_purchase_id]
        if product is not None:
            product["quantity"] -= purchase["quantity"]
            product["purchase_count"] = max(product["purchase_count"] - purchase["quantity"], 0)
        return {"success": True, "purchase_id": p_purchase_id, "removed": purchase["quantity"]}


def product_row(
    product_id: str,
    name: str,
    category_id: str = "c1",
    brand_id: str = "b1",
    price: str = "10",
    quantity: int = 0,
    purchase_count: int = 0,
    sold_count: int = 0,
    created_at: str = "2024-01-01T00:00:00+00:00",
) -> Dict[str, Any]:
    return {
        "product_id": product_id,
        "name": name,
        "category_id": category_id,
        "brand_id": brand_id,
        "price": price,
        "quantity": quantity,
        "purchase_count": purchase_count,
        "sold_count": sold_count,
        "created_at_utc": created_at,
    }


def sell_row(
    sell_id: str,
    product_id: str,
    quantity: int,
    sell_price: str,
    seller_id: Any = "s1",
    user_id: Any = "u1",
    created_at: str = "2024-02-01T00:00:00+00:00",
) -> Dict[str, Any]:
    return {
        "sell_id": sell_id,
        "product_id": product_id,
        "quantity": quantity,
        "sell_price": sell_price,
        "seller_id": seller_id,
        "user_id": user_id,
        "brand_id": "b1",
        "created_at_utc": created_at,
    }


def purchase_row(
    purchase_id: str,
    product_id: str,
    quantity: int,
    purchase_price: str,
    user_id: Any = "u9",
    created_at: str = "2024-01-15T00:00:00+00:00",
) -> Dict[str, Any]:
    return {
        "purchase_id": purchase_id,
        "product_id": product_id,
        "quantity": quantity,
        "purchase_price": purchase_price,
        "user_id": user_id,
        "firm_id": "f1",
        "brand_id": "b1",
        "created_at_utc": created_at,
    }
