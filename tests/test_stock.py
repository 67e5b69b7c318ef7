"""
Tests for `domain/stock.py`.

Covers contract rules:
- Sells decrement stock and are rejected when stock is short.
- Sell edits apply only the quantity difference.
- Purchases add stock; their edits/deletes may not make stock negative.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from domain.catalog import Product
from domain.errors import InsufficientStockError, LedgerValidationError
from domain.stock import (
    apply_purchase,
    apply_purchase_change,
    apply_sell,
    apply_sell_change,
    revert_purchase,
)


def _product(quantity: int = 10, purchase_count: int = 10, sold_count: int = 0) -> Product:
    return Product(product_id="p1", name="P", category_id="c1", brand_id="b1", price=Decimal("10"),
                   quantity=quantity, purchase_count=purchase_count, sold_count=sold_count)


def test_sell_moves_quantity_to_sold_count() -> None:
    before = _product(quantity=10, sold_count=2)

    after_sell = apply_sell(before, 4)

    assert (after_sell.quantity, after_sell.sold_count) == (6, 6)
    assert after_sell.purchase_count == before.purchase_count


def test_sell_larger_than_stock_is_rejected() -> None:
    """Verify an oversized sell raises with the available stock attached."""

    with pytest.raises(InsufficientStockError) as exc_info:
        apply_sell(_product(quantity=3), 4)

    assert exc_info.value.available_stock == 3
    assert exc_info.value.message == "Not enough stock available."


def test_quantity_must_be_positive() -> None:
    """Verify zero quantities are validation errors."""

    with pytest.raises(LedgerValidationError):
        apply_sell(_product(), 0)
    with pytest.raises(LedgerValidationError):
        apply_purchase(_product(), 0)


def test_sell_change_applies_difference() -> None:
    """Verify increasing a sell needs stock for the difference only."""

    product = _product(quantity=2, sold_count=5)

    increased = apply_sell_change(product, old_quantity=5, new_quantity=7)
    decreased = apply_sell_change(product, old_quantity=5, new_quantity=1)

    assert (increased.quantity, increased.sold_count) == (0, 7)
    assert (decreased.quantity, decreased.sold_count) == (6, 1)
    with pytest.raises(InsufficientStockError, match="by 3. Only 2 left"):
        apply_sell_change(product, old_quantity=5, new_quantity=8)


def test_purchase_adds_stock_and_count() -> None:
    product = apply_purchase(_product(quantity=1, purchase_count=1), 9)

    assert (product.quantity, product.purchase_count) == (10, 10)


def test_purchase_change_and_delete_keep_stock_non_negative() -> None:
    """Verify shrinking or deleting a purchase cannot go below zero stock."""

    product = _product(quantity=3, purchase_count=10)

    assert apply_purchase_change(product, old_quantity=10, new_quantity=7).quantity == 0
    with pytest.raises(InsufficientStockError):
        apply_purchase_change(product, old_quantity=10, new_quantity=6)
    with pytest.raises(InsufficientStockError):
        revert_purchase(product, 10)
    assert revert_purchase(product, 3).quantity == 0


def test_counters_never_go_negative() -> None:
    """Verify shrinking a sell by more than was counted floors the counter at zero."""

    product = apply_sell_change(_product(quantity=0, sold_count=1), 5, 1)

    assert product.sold_count == 0
    assert product.quantity == 4
