"""
Row conversion helpers shared by the repository modules.

Supabase returns numerics as numbers or strings depending on the column type;
money is always converted through str() so no float noise reaches Decimal.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional

from domain.time import parse_utc_datetime, require_utc_timestamp


def to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def to_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    return int(value)


def optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def optional_timestamp(row: Mapping[str, Any], column: str) -> Optional[datetime]:
    value = row.get(column)
    return parse_utc_datetime(value) if value else None


def to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


__all__ = ["to_decimal", "to_int", "optional_str", "optional_timestamp", "to_iso_utc"]
