#!/usr/bin/env python3
"""
Sales Report Script

Prints the sales rollup (totals, per-product averages, per-seller totals) for
the current database, optionally filtered, and optionally a category summary.

Usage:
    python sales_report.py
    python sales_report.py --category c1 --seller s1
    python sales_report.py --summary c1
    python sales_report.py --output sells.csv
"""

from __future__ import annotations

import argparse
import csv
import sys
from pathlib import Path
from typing import List

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.costing import SellProfit
from domain.rollup import SellSelection
from services.category_summary_service import get_category_summary
from services.sales_report_service import SalesReport, build_sales_report

CSV_COLUMNS = [
    "Sell ID",
    "Product ID",
    "Quantity",
    "Sell Price",
    "Avg Purchase Price",
    "Total",
    "Profit",
]


def sell_to_csv_row(row: SellProfit) -> dict[str, str]:
    return {
        "Sell ID": row.sell_id,
        "Product ID": row.product_id,
        "Quantity": str(row.quantity),
        "Sell Price": str(row.sell_price),
        "Avg Purchase Price": str(row.average_purchase_price),
        "Total": str(row.revenue),
        "Profit": str(row.profit),
    }


def export_rows_to_csv(rows: List[SellProfit], output_path: str) -> None:
    """
    Write the report's per-sell rows to a CSV file.

    Raises:
        ValueError: If there are no rows to export
    """
    if not rows:
        raise ValueError("No sells to export")

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for row in rows:
            writer.writerow(sell_to_csv_row(row))

    print(f"✓ Exported {len(rows)} sells to {output_path}")


def format_report(report: SalesReport) -> List[str]:
    rollup = report.rollup
    totals = rollup.totals
    lines = [
        "=" * 60,
        "SALES REPORT",
        "=" * 60,
        f"Generated at: {report.generated_at.isoformat()}",
        f"Sells:    {totals.sell_count}",
        f"Quantity: {totals.quantity}",
        f"Revenue:  {totals.revenue:.2f}",
        f"Profit:   {totals.profit:.2f}",
        "",
        "Per product:",
    ]
    for item in rollup.product_averages:
        lines.append(
            f"  {item.product_id}: qty {item.total_quantity}, "
            f"avg sell {item.average_sell_price:.2f}, "
            f"avg cost {item.average_purchase_price:.2f}, "
            f"avg profit {item.average_profit:.2f}"
        )
    lines.append("")
    lines.append("Per seller:")
    for seller in rollup.seller_totals:
        lines.append(
            f"  {seller.seller_id}: sold {seller.total_sold:.2f}, profit {seller.total_profit:.2f}"
        )
    lines.append("=" * 60)
    return lines


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Print the sales rollup for the ledger database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rollup of every sell
  python sales_report.py

  # Only one seller's sells within a category
  python sales_report.py --category c1 --seller s1

  # Category summary (most purchased/sold, top buyers and sellers)
  python sales_report.py --summary c1
        """
    )
    parser.add_argument("--category", "-c", help="Filter by category id")
    parser.add_argument("--brand", "-b", help="Filter by brand id")
    parser.add_argument("--product", "-p", help="Filter by product id")
    parser.add_argument("--seller", "-s", help="Filter by seller id")
    parser.add_argument("--summary", metavar="CATEGORY_ID", help="Also print this category's summary")
    parser.add_argument("--output", "-o", help="Write the per-sell rows to this CSV file")

    args = parser.parse_args()

    try:
        selection = SellSelection.of(
            category_id=args.category,
            brand_id=args.brand,
            product_id=args.product,
            seller_id=args.seller,
        )
        report = build_sales_report(selection)
        for line in format_report(report):
            print(line)

        if args.output:
            export_rows_to_csv(report.rollup.rows, args.output)

        if args.summary:
            summary = get_category_summary(args.summary)
            print()
            print(f"Category {summary.category_id}: {summary.product_count} products")
            if summary.most_purchased:
                print(f"  Most purchased: {summary.most_purchased.name} ({summary.most_purchased.count})")
            if summary.most_sold:
                print(f"  Most sold:      {summary.most_sold.name} ({summary.most_sold.count})")
            for buyer in summary.top_buyers:
                print(f"  Buyer  {buyer.party_id}: {buyer.total}")
            for seller in summary.top_sellers:
                print(f"  Seller {seller.party_id}: {seller.total}")

        return 0

    except KeyboardInterrupt:
        print("\n\nReport interrupted by user")
        return 130

    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
