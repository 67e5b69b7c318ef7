"""
Domain: Catalog reference data.

Products belong to exactly one Category and one Brand; Firms are the
vendors purchases are bought from. A Product carries its
market (selling) price, the quantity currently on hand, and the cumulative
number of units purchased and sold through the ledger.

Invariant:
- quantity >= 0 after any ledger mutation. Reconciliation lives in
  domain/stock.py; this module only rejects records that already violate it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class Category:
    category_id: str
    name: str


@dataclass(frozen=True, slots=True)
class Brand:
    brand_id: str
    name: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class Firm:
    """A vendor that stock is purchased from."""

    firm_id: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    image: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Product:
    """
    Immutable catalog entry.

    purchase_count and sold_count are cumulative unit counters maintained by
    ledger reconciliation; they are what the category summary ranks by.
    """

    product_id: str
    name: str
    category_id: str
    brand_id: str
    price: Decimal = Decimal("0")
    quantity: int = 0
    purchase_count: int = 0
    sold_count: int = 0
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError("quantity must be >= 0")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    def with_stock(self, *, quantity: int, purchase_count: int, sold_count: int) -> "Product":
        """Return a copy with updated stock counters."""

        return replace(
            self,
            quantity=quantity,
            purchase_count=purchase_count,
            sold_count=sold_count,
        )


__all__ = ["Category", "Brand", "Firm", "Product"]
