"""
Tests for `scripts/sales_report.py`.
"""

from __future__ import annotations

import csv
import sys

import pytest

from scripts import sales_report


def test_cli_prints_rollup_and_summary(fake_db, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.setattr(sys, "argv", ["sales_report.py", "--category", "c1", "--summary", "c1"])

    assert sales_report.main() == 0

    out = capsys.readouterr().out
    assert "Revenue:  56.00" in out
    assert "Profit:   26.00" in out
    assert "Most purchased: B (12)" in out


def test_cli_exports_rows_to_csv(fake_db, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    output = tmp_path / "sells.csv"
    monkeypatch.setattr(sys, "argv", ["sales_report.py", "--seller", "s1", "--output", str(output)])

    assert sales_report.main() == 0

    with open(output, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert [r["Sell ID"] for r in rows] == ["s-1"]
    assert rows[0]["Profit"] == "8"


def test_cli_reports_errors(fake_db, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["sales_report.py", "--summary", "missing"])

    assert sales_report.main() == 1
