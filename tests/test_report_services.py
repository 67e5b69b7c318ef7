"""
Tests for `services/category_summary_service.py` and
`services/sales_report_service.py` against the in-memory Supabase fake.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from domain.errors import NotFoundError
from fakes import sell_row
from domain.rollup import SellSelection
from services.category_summary_service import get_category_report, get_category_summary
from services.sales_report_service import build_sales_report
from services.snapshot import load_snapshot


def test_category_summary_from_store(fake_db) -> None:
    """Verify Strings ranks B as most purchased and merges u1 references."""

    summary = get_category_summary("c1")

    assert summary.product_count == 2
    assert (summary.most_purchased.name, summary.most_purchased.count) == ("B", 12)
    assert (summary.most_sold.name, summary.most_sold.count) == ("A", 5)
    assert [(t.party_id, t.total) for t in summary.top_buyers] == [("u1", 5)]
    assert [(t.party_id, t.total) for t in summary.top_sellers] == [("s2", 3), ("s1", 2)]


def test_empty_category_summary(fake_db) -> None:
    summary = get_category_summary("c2")

    assert summary.product_count == 0
    assert summary.most_purchased is None
    assert summary.top_buyers == []


def test_unknown_category(fake_db) -> None:
    with pytest.raises(NotFoundError, match="Category not found"):
        get_category_summary("missing")
    with pytest.raises(NotFoundError):
        get_category_report("missing")


def test_category_report_from_store(fake_db) -> None:
    report = get_category_report("c1")

    assert report.category_name == "Strings"
    assert report.total_money_spent == Decimal("60")
    assert report.total_money_gained == Decimal("56")
    assert report.big_seller.name == "bo"


def test_sales_report_totals(fake_db) -> None:
    """Verify 2 @ 10 and 3 @ 12 with average cost 6 give revenue 56 and profit 26."""

    report = build_sales_report(SellSelection.of(category_id="c1"))

    assert report.rollup.totals.revenue == Decimal("56")
    assert report.rollup.totals.profit == Decimal("26")
    assert report.generated_at.tzinfo is not None


def test_sales_report_reuses_snapshot(fake_db) -> None:
    """Verify a preloaded snapshot is used as is."""

    snapshot = load_snapshot(include_users=False)
    fake_db.tables["sells"].clear()

    report = build_sales_report(SellSelection.of(seller_id="s2"), snapshot=snapshot)

    assert report.rollup.totals.sell_count == 1
    assert report.rollup.seller_totals[0].seller_id == "s2"


def test_sales_report_reads_past_server_row_cap(fake_db) -> None:
    """Verify a report over more sells than one response may carry counts every sell."""

    fake_db.tables["sells"] = [sell_row(f"bulk-{i:04d}", "pA", 1, "10") for i in range(1500)]

    report = build_sales_report(SellSelection())

    assert report.rollup.totals.sell_count == 1500
    assert report.rollup.totals.quantity == 1500
    assert report.rollup.totals.revenue == Decimal("15000")
