"""
Pytest configuration.

Adds the project root to the Python path so tests can import the domain,
repositories, services and api packages, and provides `fake_db`: an in-memory
Supabase client installed in place of the real one.
"""

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from repositories import client as supabase_client  # noqa: E402
from fakes import FakeSupabase, product_row, purchase_row, sell_row  # noqa: E402


@pytest.fixture
def fake_db(monkeypatch: pytest.MonkeyPatch) -> FakeSupabase:
    """
    A small ledger: category "Strings" (c1) with products A and B, an empty
    category c2, firm f1, one purchase of A (from f1) and two sells of A.
    """

    db = FakeSupabase(
        {
            "categories": [
                {"category_id": "c1", "name": "Strings"},
                {"category_id": "c2", "name": "Drums"},
            ],
            "brands": [{"brand_id": "b1", "name": "Acme", "description": ""}],
            "firms": [{"firm_id": "f1", "name": "Music Supply", "phone": "555-0100", "address": "1 Main St",
                       "image": None}],
            "products": [
                product_row("pA", "A", price="10", quantity=5, purchase_count=10, sold_count=5,
                            created_at="2024-01-01T00:00:00+00:00"),
                product_row("pB", "B", price="20", quantity=12, purchase_count=12, sold_count=0,
                            created_at="2024-01-02T00:00:00+00:00"),
            ],
            "purchases": [purchase_row("pu1", "pA", 10, "6")],
            "sells": [
                sell_row("s-1", "pA", 2, "10", seller_id="s1", user_id="u1",
                         created_at="2024-02-01T00:00:00+00:00"),
                sell_row("s-2", "pA", 3, "12", seller_id={"_id": "s2", "username": "bo"}, user_id={"_id": "u1"},
                         created_at="2024-02-02T00:00:00+00:00"),
            ],
            "users": [
                {"user_id": "s1", "username": "ana", "role": "staff", "first_name": "Ana", "last_name": "Lee",
                 "email": "ana@example.com"},
                {"user_id": "s2", "username": "bo", "role": "admin", "first_name": None, "last_name": None,
                 "email": None},
                {"user_id": "u1", "username": "cy", "role": "user", "first_name": "Cy", "last_name": None,
                 "email": None},
            ],
        }
    )
    monkeypatch.setattr(supabase_client, "_client", db)
    return db
