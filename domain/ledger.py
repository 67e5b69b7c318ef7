"""
Domain: Ledger transactions (purchases and sells).

A Purchase adds stock for a product; a Sell removes it. Both are immutable
once recorded; edits produce new records and are reconciled against product
stock by domain/stock.py.

References to users may arrive either as a bare identifier or as an embedded
user object (e.g. {"_id": "u1", "username": "ana"}). Consumers must normalize
them with `resolve_id` rather than inspecting the shape inline.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from .time import require_utc_timestamp

# A user reference as delivered by the store or a client payload.
Reference = Union[str, Mapping[str, Any], None]


def resolve_id(ref: Any) -> Optional[str]:
    """
    Normalize a reference to its identifier string.

    Accepts a bare identifier, or an embedded object carrying `_id` (or `id`).
    Returns None when the reference is missing or carries no identifier.

    Example:
        resolve_id({"_id": "u1", "username": "ana"})  # "u1"
        resolve_id("u1")                              # "u1"
    """

    if ref is None:
        return None
    if isinstance(ref, Mapping):
        inner = ref.get("_id", ref.get("id"))
        return resolve_id(inner) if inner is not None else None
    text = str(ref).strip()
    return text or None


@dataclass(frozen=True, slots=True)
class Purchase:
    """
    Immutable record of stock bought for a product.

    user_id is the user who recorded (bought) the stock; firm_id is the
    vendor when known.
    """

    purchase_id: str
    product_id: str
    quantity: int
    purchase_price: Decimal
    user_id: Reference = None
    firm_id: Optional[str] = None
    brand_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def amount(self) -> Decimal:
        return self.purchase_price * self.quantity


@dataclass(frozen=True, slots=True)
class Sell:
    """
    Immutable record of stock sold for a product.

    seller_id is the staff/admin who made the sell; user_id is the buyer (the
    user the record was created for).
    """

    sell_id: str
    product_id: str
    quantity: int
    sell_price: Decimal
    seller_id: Reference = None
    user_id: Reference = None
    brand_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def amount(self) -> Decimal:
        """Revenue of this sell: sell_price * quantity."""
        return self.sell_price * self.quantity


__all__ = ["Reference", "resolve_id", "Purchase", "Sell"]
