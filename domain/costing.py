"""
Domain: Purchase cost resolution and per-sell profit.

Rules implemented here:
- The average purchase price of a product is the quantity-weighted average
  over every purchase of that product:
      sum(quantity * purchase_price) / sum(quantity)
- A product with no purchase history is assumed to have cost 75% of its
  market price (ASSUMED_COST_RATIO). This is a business rule, not an
  approximation of the formula above.
- A product that cannot be resolved in the catalog and has no history costs 0.
- Sell revenue is sell_price * quantity; sell profit is
  (sell_price - average_purchase_price) * quantity.

Costs are always derived from the snapshot passed in; nothing is cached
between snapshots because purchase history changes between requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Mapping, Optional

from .catalog import Product
from .ledger import Purchase, Sell

ASSUMED_COST_RATIO = Decimal("0.75")
ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class PurchaseTotals:
    total_spent: Decimal
    total_quantity: int


@dataclass(frozen=True, slots=True)
class SellProfit:
    """Revenue and profit of a single sell row."""

    sell_id: str
    product_id: str
    quantity: int
    sell_price: Decimal
    average_purchase_price: Decimal
    revenue: Decimal
    profit: Decimal


class PurchaseCostIndex:
    """
    Weighted-average purchase cost per product for one snapshot.

    Built once from the purchase ledger; lookups are O(1). The result for a
    product does not depend on the order purchases are supplied in.
    """

    __slots__ = ("_totals", "_products")

    def __init__(
        self,
        purchases: Iterable[Purchase],
        products: Optional[Mapping[str, Product]] = None,
    ) -> None:
        spent: Dict[str, Decimal] = {}
        quantity: Dict[str, int] = {}
        for purchase in purchases:
            pid = purchase.product_id
            spent[pid] = spent.get(pid, ZERO) + purchase.purchase_price * purchase.quantity
            quantity[pid] = quantity.get(pid, 0) + purchase.quantity

        self._totals: Dict[str, PurchaseTotals] = {
            pid: PurchaseTotals(total_spent=spent[pid], total_quantity=quantity[pid])
            for pid in spent
        }
        self._products: Mapping[str, Product] = products or {}

    def totals_for(self, product_id: str) -> PurchaseTotals:
        return self._totals.get(product_id, PurchaseTotals(total_spent=ZERO, total_quantity=0))

    def average_purchase_price(self, product_id: str) -> Decimal:
        """
        Weighted-average unit cost, falling back to 75% of market price.

        Returns 0 when there is no history and the product is unknown.
        """

        totals = self.totals_for(product_id)
        if totals.total_quantity > 0:
            return totals.total_spent / totals.total_quantity

        product = self._products.get(product_id)
        if product is None:
            return ZERO
        return ASSUMED_COST_RATIO * product.price


def average_purchase_price(
    product_id: str,
    purchases: Iterable[Purchase],
    products: Optional[Mapping[str, Product]] = None,
) -> Decimal:
    """One-off lookup; build a PurchaseCostIndex when resolving many products."""

    return PurchaseCostIndex(purchases, products).average_purchase_price(product_id)


def sell_profit(sell: Sell, costs: PurchaseCostIndex) -> SellProfit:
    avg_cost = costs.average_purchase_price(sell.product_id)
    return SellProfit(
        sell_id=sell.sell_id,
        product_id=sell.product_id,
        quantity=sell.quantity,
        sell_price=sell.sell_price,
        average_purchase_price=avg_cost,
        revenue=sell.amount,
        profit=(sell.sell_price - avg_cost) * sell.quantity,
    )


__all__ = [
    "ASSUMED_COST_RATIO",
    "PurchaseTotals",
    "SellProfit",
    "PurchaseCostIndex",
    "average_purchase_price",
    "sell_profit",
]
