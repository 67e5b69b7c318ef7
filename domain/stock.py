"""
Domain: Stock reconciliation for ledger mutations.

Each function takes the current Product and returns the Product as it would
be after the mutation, or raises. The ledger service runs these against the
product it just read so that bad requests fail before any write; the ledger
functions in sql/ledger_functions.sql apply the same rules again under a row
lock and are what actually move stock.

Rules:
- Recording a sell removes stock; it is rejected when the product does not
  have enough on hand.
- Editing a sell applies only the quantity difference; increasing it needs
  stock for the difference.
- Purchases add stock; editing or deleting one may never leave the product
  with negative stock.
- purchase_count and sold_count track the same deltas and never go below 0.
"""

from __future__ import annotations

from .catalog import Product
from .errors import InsufficientStockError, LedgerValidationError


def _require_positive(quantity: int) -> None:
    if quantity < 1:
        raise LedgerValidationError("Quantity must be at least 1.")


def apply_sell(product: Product, quantity: int) -> Product:
    _require_positive(quantity)
    if product.quantity < quantity:
        raise InsufficientStockError("Not enough stock available.", available_stock=product.quantity)
    return product.with_stock(
        quantity=product.quantity - quantity,
        purchase_count=product.purchase_count,
        sold_count=product.sold_count + quantity,
    )


def apply_sell_change(product: Product, old_quantity: int, new_quantity: int) -> Product:
    _require_positive(new_quantity)
    diff = new_quantity - old_quantity
    if diff > 0 and product.quantity < diff:
        raise InsufficientStockError(
            f"Not enough stock to increase sell quantity by {diff}. Only {product.quantity} left.",
            available_stock=product.quantity,
        )
    return product.with_stock(
        quantity=product.quantity - diff,
        purchase_count=product.purchase_count,
        sold_count=max(product.sold_count + diff, 0),
    )


def apply_purchase(product: Product, quantity: int) -> Product:
    _require_positive(quantity)
    return product.with_stock(
        quantity=product.quantity + quantity,
        purchase_count=product.purchase_count + quantity,
        sold_count=product.sold_count,
    )


def apply_purchase_change(product: Product, old_quantity: int, new_quantity: int) -> Product:
    _require_positive(new_quantity)
    diff = new_quantity - old_quantity
    if product.quantity + diff < 0:
        raise InsufficientStockError(
            f"Cannot reduce purchase by {-diff}. Only {product.quantity} left in stock.",
            available_stock=product.quantity,
        )
    return product.with_stock(
        quantity=product.quantity + diff,
        purchase_count=max(product.purchase_count + diff, 0),
        sold_count=product.sold_count,
    )


def revert_purchase(product: Product, quantity: int) -> Product:
    if product.quantity < quantity:
        raise InsufficientStockError(
            f"Cannot delete purchase of {quantity}. Only {product.quantity} left in stock.",
            available_stock=product.quantity,
        )
    return product.with_stock(
        quantity=product.quantity - quantity,
        purchase_count=max(product.purchase_count - quantity, 0),
        sold_count=product.sold_count,
    )


__all__ = [
    "apply_sell",
    "apply_sell_change",
    "apply_purchase",
    "apply_purchase_change",
    "revert_purchase",
]
