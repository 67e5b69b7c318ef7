"""
Domain: Filtered sales rollup.

Given the sells matching a selection (category, brand, product, seller), this
module computes three views without touching storage:

- Global totals: revenue and profit summed over the filtered sells.
- Per-product averages: quantity-weighted average sell price, the product's
  average purchase price, and the resulting average profit per unit.
- Per-seller totals: revenue and profit grouped by seller, sorted by revenue
  (descending, stable for ties).

Seller references are normalized with `resolve_id`, so an embedded user object
and a bare identifier for the same user land in the same group. Sells with no
resolvable seller are grouped under UNKNOWN_SELLER.

Invariant: the per-seller partition is exhaustive and non-overlapping, so
sum(total_sold over sellers) == totals.revenue.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from .catalog import Product
from .costing import ZERO, PurchaseCostIndex, SellProfit, sell_profit
from .ledger import Sell, resolve_id

UNKNOWN_SELLER = "unknown"
_ALL = "all"


def _selected(value: Optional[str]) -> Optional[str]:
    """Treat empty values and the 'all' sentinel as 'no filter'."""
    if value is None:
        return None
    value = value.strip()
    if not value or value == _ALL:
        return None
    return value


@dataclass(frozen=True, slots=True)
class SellSelection:
    """
    Filter selection for a rollup. None means "all".

    Category and brand are matched through the sell's product; sells whose
    product is not in the catalog never match a category or brand filter.
    """

    category_id: Optional[str] = None
    brand_id: Optional[str] = None
    product_id: Optional[str] = None
    seller_id: Optional[str] = None

    @staticmethod
    def of(
        category_id: Optional[str] = None,
        brand_id: Optional[str] = None,
        product_id: Optional[str] = None,
        seller_id: Optional[str] = None,
    ) -> "SellSelection":
        return SellSelection(
            category_id=_selected(category_id),
            brand_id=_selected(brand_id),
            product_id=_selected(product_id),
            seller_id=_selected(seller_id),
        )

    def matches(self, sell: Sell, products: Mapping[str, Product]) -> bool:
        product = products.get(sell.product_id)

        if self.category_id is not None:
            if product is None or product.category_id != self.category_id:
                return False
        if self.brand_id is not None:
            if product is None or product.brand_id != self.brand_id:
                return False
        if self.product_id is not None and sell.product_id != self.product_id:
            return False
        if self.seller_id is not None and resolve_id(sell.seller_id) != self.seller_id:
            return False
        return True


@dataclass(frozen=True, slots=True)
class RollupTotals:
    revenue: Decimal
    profit: Decimal
    quantity: int
    sell_count: int


@dataclass(frozen=True, slots=True)
class ProductAverage:
    product_id: str
    total_quantity: int
    average_sell_price: Decimal
    average_purchase_price: Decimal
    average_profit: Decimal


@dataclass(frozen=True, slots=True)
class SellerTotal:
    seller_id: str
    total_sold: Decimal
    total_profit: Decimal


@dataclass(frozen=True, slots=True)
class SalesRollup:
    """All rollup views for one filtered set of sells."""

    rows: List[SellProfit]
    totals: RollupTotals
    product_averages: List[ProductAverage]
    seller_totals: List[SellerTotal]


def filter_sells(
    sells: Iterable[Sell],
    products: Mapping[str, Product],
    selection: SellSelection,
) -> List[Sell]:
    return [sell for sell in sells if selection.matches(sell, products)]


def seller_key(sell: Sell) -> str:
    return resolve_id(sell.seller_id) or UNKNOWN_SELLER


def compute_totals(sells: Iterable[Sell], costs: PurchaseCostIndex) -> RollupTotals:
    revenue = ZERO
    profit = ZERO
    quantity = 0
    count = 0
    for sell in sells:
        row = sell_profit(sell, costs)
        revenue += row.revenue
        profit += row.profit
        quantity += row.quantity
        count += 1
    return RollupTotals(revenue=revenue, profit=profit, quantity=quantity, sell_count=count)


def compute_product_averages(sells: Iterable[Sell], costs: PurchaseCostIndex) -> List[ProductAverage]:
    """Per-product averages, in order of each product's first sell."""

    sold: Dict[str, Decimal] = {}
    quantity: Dict[str, int] = {}
    for sell in sells:
        sold[sell.product_id] = sold.get(sell.product_id, ZERO) + sell.amount
        quantity[sell.product_id] = quantity.get(sell.product_id, 0) + sell.quantity

    averages: List[ProductAverage] = []
    for product_id, total_sold in sold.items():
        total_qty = quantity[product_id]
        avg_sell = total_sold / total_qty if total_qty > 0 else ZERO
        avg_cost = costs.average_purchase_price(product_id)
        averages.append(ProductAverage(
            product_id=product_id,
            total_quantity=total_qty,
            average_sell_price=avg_sell,
            average_purchase_price=avg_cost,
            average_profit=avg_sell - avg_cost,
        ))
    return averages


def compute_seller_totals(sells: Iterable[Sell], costs: PurchaseCostIndex) -> List[SellerTotal]:
    """Revenue and profit per seller, highest revenue first."""

    sold: Dict[str, Decimal] = {}
    profit: Dict[str, Decimal] = {}
    for sell in sells:
        key = seller_key(sell)
        row = sell_profit(sell, costs)
        sold[key] = sold.get(key, ZERO) + row.revenue
        profit[key] = profit.get(key, ZERO) + row.profit

    totals = [
        SellerTotal(seller_id=key, total_sold=sold[key], total_profit=profit[key])
        for key in sold
    ]
    totals.sort(key=lambda t: t.total_sold, reverse=True)
    return totals


def build_rollup(
    sells: Iterable[Sell],
    products: Mapping[str, Product],
    costs: PurchaseCostIndex,
    selection: Optional[SellSelection] = None,
) -> SalesRollup:
    """Filter the sells by `selection` and compute every rollup view."""

    filtered = filter_sells(sells, products, selection or SellSelection())
    return SalesRollup(
        rows=[sell_profit(sell, costs) for sell in filtered],
        totals=compute_totals(filtered, costs),
        product_averages=compute_product_averages(filtered, costs),
        seller_totals=compute_seller_totals(filtered, costs),
    )


__all__ = [
    "UNKNOWN_SELLER",
    "SellSelection",
    "RollupTotals",
    "ProductAverage",
    "SellerTotal",
    "SalesRollup",
    "filter_sells",
    "seller_key",
    "compute_totals",
    "compute_product_averages",
    "compute_seller_totals",
    "build_rollup",
]
