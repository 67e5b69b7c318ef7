"""
Sales report service.

Loads a ledger snapshot once and computes the filtered rollup (totals,
per-product averages, per-seller totals) for a selection of category, brand,
product and seller.

Reports are stamped with generated_at so callers that issue several report
requests can discard a response older than one they already applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from domain.rollup import SalesRollup, SellSelection, build_rollup
from domain.time import utc_now
from services.snapshot import LedgerSnapshot, load_snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SalesReport:
    selection: SellSelection
    rollup: SalesRollup
    generated_at: datetime


def build_sales_report(
    selection: SellSelection,
    snapshot: Optional[LedgerSnapshot] = None,
) -> SalesReport:
    """
    Compute the rollup views for the sells matching `selection`.

    Args:
        selection: Filter selection; None fields mean "all"
        snapshot: Preloaded snapshot (the CLI reuses one); loaded when omitted

    Returns:
        SalesReport with the rollup and its generation timestamp
    """
    snapshot = snapshot or load_snapshot(include_users=False)
    rollup = build_rollup(
        snapshot.sells,
        snapshot.products_by_id,
        snapshot.cost_index(),
        selection,
    )
    logger.info(
        "Sales report built",
        extra={
            "category_id": selection.category_id,
            "brand_id": selection.brand_id,
            "product_id": selection.product_id,
            "seller_id": selection.seller_id,
            "sell_count": rollup.totals.sell_count,
        },
    )
    return SalesReport(selection=selection, rollup=rollup, generated_at=utc_now())


__all__ = ["SalesReport", "build_sales_report"]
