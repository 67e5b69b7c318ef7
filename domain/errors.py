"""
Domain: error taxonomy for catalog lookups and ledger mutations.

The HTTP layer maps these to status codes; anything not listed here is an
unexpected server error.
"""

from __future__ import annotations

from typing import Optional


class LedgerError(Exception):
    """Base class for expected, user-facing failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(LedgerError):
    """A referenced category, product, sell or purchase does not exist."""

    def __init__(self, entity: str, entity_id: Optional[str] = None) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class LedgerValidationError(LedgerError):
    """A required selection is missing or a value is out of range."""

    pass


class InsufficientStockError(LedgerError):
    """Requested quantity exceeds the product's on-hand quantity."""

    def __init__(self, message: str, available_stock: int) -> None:
        super().__init__(message)
        self.available_stock = available_stock


__all__ = [
    "LedgerError",
    "NotFoundError",
    "LedgerValidationError",
    "InsufficientStockError",
]
