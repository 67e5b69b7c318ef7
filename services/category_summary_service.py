"""
Category summary service.

Resolves the category, loads the rows the summary needs and hands them to the
pure aggregation in domain/category_summary.py.

- get_category_summary reads only the category's products and their sells.
- get_category_report reads a full ledger snapshot (purchases, sells, users).

Both raise NotFoundError when the category does not exist. Reads are not
wrapped in a transaction: concurrent ledger writes may make counts slightly
stale, which is acceptable for reporting.
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.category_summary import (
    CategoryReport,
    CategorySummary,
    build_category_report,
    summarize_category,
)
from domain.errors import NotFoundError
from repositories.catalog_repository import get_category_by_id, list_products_by_category
from repositories.sell_repository import list_sells_for_products
from services.snapshot import LedgerSnapshot, load_snapshot

logger = logging.getLogger(__name__)


def get_category_summary(category_id: str) -> CategorySummary:
    """
    Build the summary for one category.

    Example:
        summary = get_category_summary("cat-strings")
        summary.most_purchased  # ProductRank(name="B", count=12, ...)
    """
    category = get_category_by_id(category_id)
    if category is None:
        raise NotFoundError("Category", category_id)

    products = list_products_by_category(category.category_id)
    sells = list_sells_for_products(p.product_id for p in products)

    summary = summarize_category(category, products, sells)
    logger.info(
        f"Category summary computed for '{category.name}'",
        extra={
            "category_id": category.category_id,
            "product_count": summary.product_count,
            "sell_count": len(sells),
        },
    )
    return summary


def get_category_report(category_id: str, snapshot: Optional[LedgerSnapshot] = None) -> CategoryReport:
    category = get_category_by_id(category_id)
    if category is None:
        raise NotFoundError("Category", category_id)

    snapshot = snapshot or load_snapshot()
    return build_category_report(
        category,
        snapshot.products,
        snapshot.purchases,
        snapshot.sells,
        snapshot.users_by_id,
    )


__all__ = ["get_category_summary", "get_category_report"]
