"""
Ledger snapshot loading.

A snapshot is every product, purchase, sell and user read once for a single
report. Reports are computed only from the snapshot they were given, so one
report never mixes rows from two different reads of the same table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Mapping

from domain.catalog import Product
from domain.costing import PurchaseCostIndex
from domain.ledger import Purchase, Sell
from domain.users import User, index_users
from repositories.catalog_repository import index_products, list_all_products
from repositories.purchase_repository import list_all_purchases
from repositories.sell_repository import list_all_sells
from repositories.user_repository import list_all_users

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerSnapshot:
    products: List[Product]
    purchases: List[Purchase]
    sells: List[Sell]
    users: List[User] = field(default_factory=list)

    @property
    def products_by_id(self) -> Mapping[str, Product]:
        return index_products(self.products)

    @property
    def users_by_id(self) -> Mapping[str, User]:
        return index_users(self.users)

    def cost_index(self) -> PurchaseCostIndex:
        return PurchaseCostIndex(self.purchases, self.products_by_id)


def load_snapshot(*, include_users: bool = True) -> LedgerSnapshot:
    snapshot = LedgerSnapshot(
        products=list_all_products(),
        purchases=list_all_purchases(),
        sells=list_all_sells(),
        users=list_all_users() if include_users else [],
    )
    logger.debug(
        "Loaded ledger snapshot",
        extra={
            "products": len(snapshot.products),
            "purchases": len(snapshot.purchases),
            "sells": len(snapshot.sells),
            "users": len(snapshot.users),
        },
    )
    return snapshot


__all__ = ["LedgerSnapshot", "load_snapshot"]
