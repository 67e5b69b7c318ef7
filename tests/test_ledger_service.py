"""
Tests for `services/ledger_service.py`.

Covers contract rules:
- Every check runs before the first write.
- Creating a sell decrements stock; deleting it restores the pre-sell quantity.
- Oversized sells are rejected with the available stock and write nothing.
- Purchases add stock; deleting one may not leave negative stock.
- The seller must be an existing staff/admin user and the buyer an existing user.
- Concurrent sells of one product never take more than the stock on hand.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from decimal import Decimal

import pytest

import services.ledger_service as ledger_service

from domain.errors import InsufficientStockError, LedgerValidationError, NotFoundError
from repositories.catalog_repository import get_product_by_id
from services.ledger_service import (
    PurchaseChange,
    PurchaseRequest,
    SellChange,
    SellRequest,
    edit_purchase,
    edit_sell,
    record_new_purchase,
    record_new_sell,
    remove_purchase,
    remove_sell,
)


def _sell_request(**overrides: object) -> SellRequest:
    fields = {
        "product_id": "pB",
        "seller_id": "s1",
        "user_id": "u1",
        "quantity": 2,
        "sell_price": Decimal("25"),
    }
    fields.update(overrides)
    return SellRequest(**fields)  # type: ignore[arg-type]


def test_delete_sell_restores_quantity(fake_db) -> None:
    """Verify create then delete leaves the product as it was before the sell."""

    before = get_product_by_id("pB")

    sell = record_new_sell(_sell_request(quantity=4))
    assert get_product_by_id("pB").quantity == before.quantity - 4

    remove_sell(sell.sell_id)

    assert get_product_by_id("pB") == before
    assert fake_db.row("sells", "sell_id", sell.sell_id) is None


def test_new_sell_takes_brand_from_product(fake_db) -> None:
    sell = record_new_sell(_sell_request(seller_id={"_id": "s2", "username": "bo"}))

    assert sell.brand_id == "b1"
    assert sell.seller_id == "s2"
    assert get_product_by_id("pB").sold_count == 2


def test_oversized_sell_writes_nothing(fake_db) -> None:
    """Verify a sell larger than stock is rejected before any write."""

    with pytest.raises(InsufficientStockError) as exc_info:
        record_new_sell(_sell_request(quantity=13))

    assert exc_info.value.available_stock == 12
    assert fake_db.writes == []


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"product_id": None}, "Please select a product."),
        ({"seller_id": None}, "Please select a seller (staff/admin)."),
        ({"seller_id": {"username": "no id"}}, "Please select a seller (staff/admin)."),
        ({"user_id": ""}, "A buyer (userId) is required."),
        ({"sell_price": Decimal("-1")}, "Sell price must not be negative."),
    ],
)
def test_sell_validation(fake_db, overrides: dict, message: str) -> None:
    with pytest.raises(LedgerValidationError) as exc_info:
        record_new_sell(_sell_request(**overrides))

    assert exc_info.value.message == message
    assert fake_db.writes == []


def test_sell_for_unknown_product(fake_db) -> None:
    with pytest.raises(NotFoundError, match="Product not found"):
        record_new_sell(_sell_request(product_id="missing"))


def test_edit_sell_moves_stock_by_difference(fake_db) -> None:
    """Verify raising a sell from 2 to 5 takes 3 more units out of stock."""

    before = get_product_by_id("pA")

    updated = edit_sell("s-1", SellChange(quantity=5))

    after = get_product_by_id("pA")
    assert updated.quantity == 5
    assert after.quantity == before.quantity - 3
    assert after.sold_count == before.sold_count + 3
    assert fake_db.row("sells", "sell_id", "s-1")["quantity"] == 5


def test_edit_sell_price_only_leaves_stock(fake_db) -> None:
    before = get_product_by_id("pA")

    edit_sell("s-2", SellChange(sell_price=Decimal("15")))

    assert fake_db.row("sells", "sell_id", "s-2")["sell_price"] == "15"
    assert fake_db.row("sells", "sell_id", "s-2")["seller_id"] == "s2"
    assert get_product_by_id("pA") == before


def test_edit_sell_beyond_stock_is_rejected(fake_db) -> None:
    with pytest.raises(InsufficientStockError):
        edit_sell("s-1", SellChange(quantity=8))

    assert fake_db.writes == []


def test_edit_missing_sell(fake_db) -> None:
    with pytest.raises(NotFoundError, match="Sell not found"):
        edit_sell("nope", SellChange(quantity=1))
    with pytest.raises(NotFoundError):
        remove_sell("nope")


def test_purchase_lifecycle(fake_db) -> None:
    """Verify a purchase adds stock, an edit adjusts it and a delete removes it."""

    purchase = record_new_purchase(
        PurchaseRequest(product_id="pB", user_id={"_id": "s1"}, quantity=8, purchase_price=Decimal("9"))
    )
    assert purchase.user_id == "s1"
    assert get_product_by_id("pB").quantity == 20
    assert get_product_by_id("pB").purchase_count == 20

    edit_purchase(purchase.purchase_id, PurchaseChange(quantity=3))
    assert get_product_by_id("pB").quantity == 15

    remove_purchase(purchase.purchase_id)
    assert get_product_by_id("pB").quantity == 12
    assert fake_db.row("purchases", "purchase_id", purchase.purchase_id) is None


def test_purchase_delete_cannot_make_stock_negative(fake_db) -> None:
    """Verify deleting a purchase whose units were already sold is rejected."""

    with pytest.raises(InsufficientStockError):
        remove_purchase("pu1")

    assert fake_db.row("purchases", "purchase_id", "pu1") is not None
    assert fake_db.writes == []


def test_unknown_seller_is_not_found(fake_db) -> None:
    with pytest.raises(NotFoundError, match="Seller not found"):
        record_new_sell(_sell_request(seller_id="ghost"))

    assert fake_db.writes == []


def test_plain_user_cannot_sell(fake_db) -> None:
    """Verify a seller with the "user" role is rejected like a missing seller."""

    with pytest.raises(LedgerValidationError) as exc_info:
        record_new_sell(_sell_request(seller_id="u1"))

    assert exc_info.value.message == "Please select a seller (staff/admin)."
    assert fake_db.writes == []


def test_unknown_buyer_is_not_found(fake_db) -> None:
    with pytest.raises(NotFoundError, match="User not found"):
        record_new_sell(_sell_request(user_id={"_id": "ghost"}))

    assert fake_db.writes == []


def test_edit_sell_seller_must_be_staff(fake_db) -> None:
    with pytest.raises(LedgerValidationError):
        edit_sell("s-1", SellChange(seller_id="u1"))

    assert fake_db.row("sells", "sell_id", "s-1")["seller_id"] == "s1"
    assert fake_db.writes == []


def test_purchase_firm_must_exist(fake_db) -> None:
    request = PurchaseRequest(product_id="pB", user_id="s1", quantity=1, purchase_price=Decimal("9"), firm_id="nope")

    with pytest.raises(NotFoundError, match="Firm not found"):
        record_new_purchase(request)
    assert fake_db.writes == []

    with pytest.raises(NotFoundError, match="Firm not found"):
        edit_purchase("pu1", PurchaseChange(firm_id="nope"))
    assert fake_db.writes == []

    purchase = record_new_purchase(PurchaseRequest(product_id="pB", user_id="s1", quantity=1,
                                                   purchase_price=Decimal("9"), firm_id="f1"))
    assert purchase.firm_id == "f1"


def test_concurrent_sells_cannot_oversell(fake_db, monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Two sells of 3 against a stock of 5, both past the stock check before
    either writes: exactly one succeeds and stock never goes negative.
    """

    both_read = threading.Barrier(2, timeout=5)
    read_product = ledger_service.get_product_by_id

    def read_then_wait(product_id: str):
        product = read_product(product_id)
        both_read.wait()
        return product

    monkeypatch.setattr(ledger_service, "get_product_by_id", read_then_wait)

    outcomes: list = []

    def sell() -> None:
        try:
            outcomes.append(record_new_sell(_sell_request(product_id="pA", quantity=3)))
        except InsufficientStockError as e:
            outcomes.append(e)

    threads = [threading.Thread(target=sell) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    rejected = [o for o in outcomes if isinstance(o, InsufficientStockError)]
    assert len(outcomes) == 2
    assert len(rejected) == 1
    assert rejected[0].available_stock == 2

    product = read_product("pA")
    assert product.quantity == 2
    assert product.sold_count == 8


def test_stale_stock_read_is_caught_by_ledger_function(fake_db, monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify the write itself re-checks stock when the service saw an outdated product."""

    read_product = ledger_service.get_product_by_id
    monkeypatch.setattr(
        ledger_service,
        "get_product_by_id",
        lambda product_id: replace(read_product(product_id), quantity=50),
    )

    with pytest.raises(InsufficientStockError) as exc_info:
        record_new_sell(_sell_request(quantity=20))

    assert exc_info.value.available_stock == 12
    assert fake_db.writes == []
    assert read_product("pB").quantity == 12
