"""
Domain: Category-level summaries.

Two views are built here, both pure and computed fresh from a snapshot:

CategorySummary (the category summary endpoint):
1. product_count: products whose category_id equals the category.
2. most_purchased: the product with the highest purchase_count.
3. most_sold: the product with the highest sold_count.
   Ties go to the first product in collection order.
4. top_buyers / top_sellers: the category's sells grouped by buyer (user_id)
   and by seller (seller_id), quantities summed, highest first, top 3.
   Sells without a resolvable party are left out of that grouping.
An empty category has no most_purchased/most_sold and empty top lists.

CategoryReport (the dashboard's financial report):
- Money spent (purchase amounts) and gained (sell amounts) for the category.
- Top sold / top purchased product by ledger quantities.
- Per-product profit (price - effective cost) * units sold, where the
  effective cost is the weighted-average purchase price or the 75% fallback.
- Biggest buyer by purchase spend and biggest seller by sell revenue.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from .catalog import Category, Product
from .costing import ZERO, PurchaseCostIndex
from .ledger import Purchase, Sell, resolve_id
from .users import User, display_name_for

TOP_PARTIES = 3
TOP_PROFITABLE = 3
UNKNOWN_PRODUCT = "Unknown Product"

N = TypeVar("N", int, Decimal)


@dataclass(frozen=True, slots=True)
class ProductRank:
    product_id: str
    name: str
    count: int


@dataclass(frozen=True, slots=True)
class PartyTotal:
    party_id: str
    total: int


@dataclass(frozen=True, slots=True)
class CategorySummary:
    category_id: str
    product_count: int
    most_purchased: Optional[ProductRank]
    most_sold: Optional[ProductRank]
    top_buyers: List[PartyTotal]
    top_sellers: List[PartyTotal]


@dataclass(frozen=True, slots=True)
class ProductProfit:
    product_id: str
    name: str
    profit: Decimal


@dataclass(frozen=True, slots=True)
class PartyAmount:
    party_id: str
    name: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class CategoryReport:
    category_id: str
    category_name: str
    product_count: int
    total_money_spent: Decimal
    total_money_gained: Decimal
    profit: Decimal
    top_sold_product: Optional[ProductRank]
    top_purchased_product: Optional[ProductRank]
    profitable_products: List[ProductProfit]
    big_buyer: Optional[PartyAmount]
    big_seller: Optional[PartyAmount]


def _products_in(category: Category, products: Iterable[Product]) -> List[Product]:
    return [p for p in products if p.category_id == category.category_id]


def _rank_by(products: Sequence[Product], counter: Callable[[Product], int]) -> Optional[ProductRank]:
    if not products:
        return None
    # max() keeps the first maximal element, which is the tie-break we want.
    best = max(products, key=counter)
    return ProductRank(product_id=best.product_id, name=best.name, count=counter(best))


def _sum_by(items: Iterable[Tuple[Optional[str], N]], zero: N) -> Dict[str, N]:
    totals: Dict[str, N] = {}
    for key, value in items:
        if key is None:
            continue
        totals[key] = totals.get(key, zero) + value
    return totals


def _top(totals: Mapping[str, int], limit: int) -> List[PartyTotal]:
    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    return [PartyTotal(party_id=key, total=value) for key, value in ranked[:limit]]


def _first_positive_max(totals: Mapping[str, N]) -> Optional[Tuple[str, N]]:
    """First key whose value is strictly the largest positive value."""
    best: Optional[Tuple[str, N]] = None
    for key, value in totals.items():
        if value > 0 and (best is None or value > best[1]):
            best = (key, value)
    return best


def summarize_category(
    category: Category,
    products: Iterable[Product],
    sells: Iterable[Sell],
    top_n: int = TOP_PARTIES,
) -> CategorySummary:
    """
    Build the category summary.

    `products` may be the whole catalog; only the category's products count.
    `sells` may be the whole ledger; only sells of those products count.
    """

    in_category = _products_in(category, products)
    product_ids = {p.product_id for p in in_category}
    category_sells = [s for s in sells if s.product_id in product_ids]

    buyers = _sum_by(((resolve_id(s.user_id), s.quantity) for s in category_sells), 0)
    sellers = _sum_by(((resolve_id(s.seller_id), s.quantity) for s in category_sells), 0)

    return CategorySummary(
        category_id=category.category_id,
        product_count=len(in_category),
        most_purchased=_rank_by(in_category, lambda p: p.purchase_count),
        most_sold=_rank_by(in_category, lambda p: p.sold_count),
        top_buyers=_top(buyers, top_n),
        top_sellers=_top(sellers, top_n),
    )


def build_category_report(
    category: Category,
    products: Iterable[Product],
    purchases: Iterable[Purchase],
    sells: Iterable[Sell],
    users: Mapping[str, User],
    top_n: int = TOP_PROFITABLE,
) -> CategoryReport:
    in_category = _products_in(category, products)
    by_id: Dict[str, Product] = {p.product_id: p for p in in_category}
    category_purchases = [p for p in purchases if p.product_id in by_id]
    category_sells = [s for s in sells if s.product_id in by_id]

    spent = sum((p.amount for p in category_purchases), ZERO)
    gained = sum((s.amount for s in category_sells), ZERO)

    def product_name(product_id: str) -> str:
        product = by_id.get(product_id)
        return product.name if product else UNKNOWN_PRODUCT

    sold_qty = _sum_by(((s.product_id, s.quantity) for s in category_sells), 0)
    bought_qty = _sum_by(((p.product_id, p.quantity) for p in category_purchases), 0)

    top_sold = _first_positive_max(sold_qty)
    top_bought = _first_positive_max(bought_qty)

    costs = PurchaseCostIndex(category_purchases, by_id)
    profits = [
        ProductProfit(
            product_id=p.product_id,
            name=p.name,
            profit=(p.price - costs.average_purchase_price(p.product_id)) * sold_qty.get(p.product_id, 0),
        )
        for p in in_category
    ]
    total_profit = sum((pp.profit for pp in profits), ZERO)
    ranked = sorted(profits, key=lambda pp: pp.profit, reverse=True)

    buyer_spend = _sum_by(((resolve_id(p.user_id), p.amount) for p in category_purchases), ZERO)
    seller_revenue = _sum_by(((resolve_id(s.seller_id), s.amount) for s in category_sells), ZERO)
    big_buyer = _first_positive_max(buyer_spend)
    big_seller = _first_positive_max(seller_revenue)

    return CategoryReport(
        category_id=category.category_id,
        category_name=category.name,
        product_count=len(in_category),
        total_money_spent=spent,
        total_money_gained=gained,
        profit=total_profit,
        top_sold_product=(
            ProductRank(product_id=top_sold[0], name=product_name(top_sold[0]), count=top_sold[1])
            if top_sold else None
        ),
        top_purchased_product=(
            ProductRank(product_id=top_bought[0], name=product_name(top_bought[0]), count=top_bought[1])
            if top_bought else None
        ),
        profitable_products=ranked[:top_n],
        big_buyer=(
            PartyAmount(party_id=big_buyer[0], name=display_name_for(users, big_buyer[0]), amount=big_buyer[1])
            if big_buyer else None
        ),
        big_seller=(
            PartyAmount(party_id=big_seller[0], name=display_name_for(users, big_seller[0]), amount=big_seller[1])
            if big_seller else None
        ),
    )


__all__ = [
    "ProductRank",
    "PartyTotal",
    "CategorySummary",
    "ProductProfit",
    "PartyAmount",
    "CategoryReport",
    "summarize_category",
    "build_category_report",
]
