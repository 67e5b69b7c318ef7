"""
Ledger service for recording, editing and deleting sells and purchases.

Handles:
- Required-selection validation (product, seller, buyer) before any write
- Party checks: the seller must be an existing staff/admin user, the buyer an
  existing user, and a purchase's firm must exist
- Server-side stock checks (the client is never trusted for stock)

Each write is a single call to a ledger function (sql/ledger_functions.sql)
that re-checks stock under a row lock, writes the ledger row and moves the
product counters by the quantity difference in one transaction. The checks
made here against the product just read reject bad requests without writing;
the ledger function is what makes concurrent requests on one product safe.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from domain.catalog import Product
from domain.errors import InsufficientStockError, LedgerValidationError, NotFoundError
from domain.ledger import Purchase, Reference, Sell, resolve_id
from domain.stock import (
    apply_purchase,
    apply_purchase_change,
    apply_sell,
    apply_sell_change,
    revert_purchase,
)
from repositories.catalog_repository import get_product_by_id
from repositories.firm_repository import get_firm_by_id
from repositories.purchase_repository import (
    delete_purchase,
    get_purchase_by_id,
    record_purchase,
    update_purchase,
)
from repositories.sell_repository import delete_sell, get_sell_by_id, record_sell, update_sell
from repositories.user_repository import get_user_by_id

logger = logging.getLogger(__name__)

SELECT_SELLER_MESSAGE = "Please select a seller (staff/admin)."


@dataclass(frozen=True, slots=True)
class SellRequest:
    """Request to record a sell. References may be bare ids or embedded user objects."""
    product_id: Optional[str]
    seller_id: Reference
    user_id: Reference
    quantity: int
    sell_price: Decimal


@dataclass(frozen=True, slots=True)
class SellChange:
    """Editable fields of a sell; None leaves a field unchanged."""
    quantity: Optional[int] = None
    sell_price: Optional[Decimal] = None
    seller_id: Reference = None


@dataclass(frozen=True, slots=True)
class PurchaseRequest:
    product_id: Optional[str]
    user_id: Reference
    quantity: int
    purchase_price: Decimal
    firm_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PurchaseChange:
    quantity: Optional[int] = None
    purchase_price: Optional[Decimal] = None
    firm_id: Optional[str] = None


def _require_price(value: Decimal, field: str) -> None:
    if value < 0:
        raise LedgerValidationError(f"{field} must not be negative.")


def _require_product(product_id: Optional[str]) -> Product:
    if not product_id:
        raise LedgerValidationError("Please select a product.")
    product = get_product_by_id(product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def _require_seller(reference: Reference) -> str:
    """Resolve the seller reference to the id of an existing staff or admin user."""
    seller_id = resolve_id(reference)
    if not seller_id:
        raise LedgerValidationError(SELECT_SELLER_MESSAGE)
    seller = get_user_by_id(seller_id)
    if seller is None:
        raise NotFoundError("Seller", seller_id)
    if not seller.can_sell():
        raise LedgerValidationError(SELECT_SELLER_MESSAGE)
    return seller_id


def _require_buyer(reference: Reference) -> str:
    user_id = resolve_id(reference)
    if not user_id:
        raise LedgerValidationError("A buyer (userId) is required.")
    if get_user_by_id(user_id) is None:
        raise NotFoundError("User", user_id)
    return user_id


def _require_firm(firm_id: Optional[str]) -> None:
    if firm_id and get_firm_by_id(firm_id) is None:
        raise NotFoundError("Firm", firm_id)


def _log_rejection(action: str, product: Product, requested: int) -> None:
    logger.warning(
        f"{action} rejected for product '{product.name}'",
        extra={
            "product_id": product.product_id,
            "requested": requested,
            "available": product.quantity,
        },
    )


def record_new_sell(request: SellRequest) -> Sell:
    """
    Record a sell and remove its quantity from stock.

    Raises:
        LedgerValidationError: product, seller or buyer missing; seller is not
            staff/admin; bad quantity/price
        NotFoundError: product, seller or buyer does not exist
        InsufficientStockError: quantity exceeds stock on hand
    """
    product = _require_product(request.product_id)
    seller_id = _require_seller(request.seller_id)
    user_id = _require_buyer(request.user_id)
    _require_price(request.sell_price, "Sell price")

    try:
        apply_sell(product, request.quantity)
        sell = record_sell(
            product_id=product.product_id,
            seller_id=seller_id,
            user_id=user_id,
            quantity=request.quantity,
            sell_price=request.sell_price,
        )
    except InsufficientStockError:
        _log_rejection("Sell", product, request.quantity)
        raise

    logger.info(
        "Sell recorded",
        extra={
            "sell_id": sell.sell_id,
            "product_id": product.product_id,
            "quantity": sell.quantity,
        },
    )
    return sell


def edit_sell(sell_id: str, change: SellChange) -> Sell:
    """Change a sell's quantity, price or seller; stock moves by the quantity difference."""
    sell = get_sell_by_id(sell_id)
    if sell is None:
        raise NotFoundError("Sell", sell_id)
    product = get_product_by_id(sell.product_id)
    if product is None:
        raise NotFoundError("Product", sell.product_id)

    new_quantity = change.quantity if change.quantity is not None else sell.quantity
    new_price = change.sell_price if change.sell_price is not None else sell.sell_price
    _require_price(new_price, "Sell price")
    if change.seller_id is not None:
        seller_id = _require_seller(change.seller_id)
    else:
        seller_id = resolve_id(sell.seller_id)

    try:
        apply_sell_change(product, sell.quantity, new_quantity)
        stock_after = update_sell(sell_id, new_quantity, new_price, seller_id=seller_id)
    except InsufficientStockError:
        _log_rejection("Sell update", product, new_quantity - sell.quantity)
        raise

    logger.info(
        "Sell updated",
        extra={
            "sell_id": sell_id,
            "quantity_diff": new_quantity - sell.quantity,
            "stock_after": stock_after,
        },
    )
    return replace(
        sell,
        quantity=new_quantity,
        sell_price=new_price,
        seller_id=seller_id,
    )


def remove_sell(sell_id: str) -> None:
    """Delete a sell and put its quantity back into stock."""
    sell = get_sell_by_id(sell_id)
    if sell is None:
        raise NotFoundError("Sell", sell_id)

    delete_sell(sell_id)
    logger.info("Sell deleted", extra={"sell_id": sell_id, "quantity_restored": sell.quantity})


def record_new_purchase(request: PurchaseRequest) -> Purchase:
    product = _require_product(request.product_id)
    _require_price(request.purchase_price, "Purchase price")
    _require_firm(request.firm_id)
    apply_purchase(product, request.quantity)

    purchase = record_purchase(
        product_id=product.product_id,
        user_id=resolve_id(request.user_id),
        quantity=request.quantity,
        purchase_price=request.purchase_price,
        firm_id=request.firm_id,
    )

    logger.info(
        "Purchase recorded",
        extra={
            "purchase_id": purchase.purchase_id,
            "product_id": product.product_id,
            "quantity": purchase.quantity,
        },
    )
    return purchase


def edit_purchase(purchase_id: str, change: PurchaseChange) -> Purchase:
    purchase = get_purchase_by_id(purchase_id)
    if purchase is None:
        raise NotFoundError("Purchase", purchase_id)
    product = get_product_by_id(purchase.product_id)
    if product is None:
        raise NotFoundError("Product", purchase.product_id)

    new_quantity = change.quantity if change.quantity is not None else purchase.quantity
    new_price = change.purchase_price if change.purchase_price is not None else purchase.purchase_price
    _require_price(new_price, "Purchase price")
    _require_firm(change.firm_id)

    try:
        apply_purchase_change(product, purchase.quantity, new_quantity)
        stock_after = update_purchase(purchase_id, new_quantity, new_price, firm_id=change.firm_id)
    except InsufficientStockError:
        _log_rejection("Purchase update", product, new_quantity - purchase.quantity)
        raise

    logger.info(
        "Purchase updated",
        extra={
            "purchase_id": purchase_id,
            "quantity_diff": new_quantity - purchase.quantity,
            "stock_after": stock_after,
        },
    )
    return replace(
        purchase,
        quantity=new_quantity,
        purchase_price=new_price,
        firm_id=change.firm_id if change.firm_id is not None else purchase.firm_id,
    )


def remove_purchase(purchase_id: str) -> None:
    purchase = get_purchase_by_id(purchase_id)
    if purchase is None:
        raise NotFoundError("Purchase", purchase_id)

    product = get_product_by_id(purchase.product_id)
    try:
        if product is not None:
            revert_purchase(product, purchase.quantity)
        delete_purchase(purchase_id)
    except InsufficientStockError:
        if product is not None:
            _log_rejection("Purchase delete", product, purchase.quantity)
        raise

    logger.info("Purchase deleted", extra={"purchase_id": purchase_id, "quantity_removed": purchase.quantity})


__all__ = [
    "SellRequest",
    "SellChange",
    "PurchaseRequest",
    "PurchaseChange",
    "record_new_sell",
    "edit_sell",
    "remove_sell",
    "record_new_purchase",
    "edit_purchase",
    "remove_purchase",
]
