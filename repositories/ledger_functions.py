"""
Calls to the ledger functions defined in sql/ledger_functions.sql.

Every stock-moving write goes through one of these PostgreSQL functions so
that the stock check, the ledger row and the product counters change in one
transaction under a row lock. The functions answer with a JSON object; a
failure object is raised here as the matching domain error.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from postgrest.exceptions import APIError

from domain.errors import InsufficientStockError, LedgerValidationError, NotFoundError
from repositories.client import get_supabase

logger = logging.getLogger(__name__)

_NOT_FOUND_ENTITIES = {
    "PRODUCT_NOT_FOUND": "Product",
    "SELL_NOT_FOUND": "Sell",
    "PURCHASE_NOT_FOUND": "Purchase",
}


def _error_payload(error: APIError) -> Dict[str, Any]:
    raw = error.json() if callable(getattr(error, "json", None)) else {}
    return dict(raw) if isinstance(raw, Mapping) else {}


def _raise_failure(function: str, result: Mapping[str, Any]) -> None:
    code = result.get("error")
    message = str(result.get("message") or code or "unknown error")

    if code == "INSUFFICIENT_STOCK":
        raise InsufficientStockError(message, available_stock=int(result.get("available_stock") or 0))
    if code in _NOT_FOUND_ENTITIES:
        raise NotFoundError(_NOT_FOUND_ENTITIES[code])
    if code == "INVALID_QUANTITY":
        raise LedgerValidationError(message)

    raise RuntimeError(f"Failed to call {function}: {code}: {message}")


def call_ledger_function(function: str, params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Run a ledger function via RPC and return its success object.

    Raises:
        InsufficientStockError: the function refused a stock change
        NotFoundError: the product, sell or purchase no longer exists
        LedgerValidationError: the function rejected the quantity
        RuntimeError: transport or database failure
    """

    try:
        response = get_supabase().rpc(function, dict(params)).execute()
    except APIError as e:
        # Some client versions raise APIError for a function that returns
        # JSON, on success as well as failure; the body is the JSON result.
        result = _error_payload(e)
        if "success" not in result:
            raise RuntimeError(f"Failed to call {function}: {e.message or e}") from e
    else:
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to call {function}: {error}")
        data = getattr(response, "data", None)
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, Mapping):
            raise RuntimeError(f"Failed to call {function}: unexpected response {data!r}")
        result = dict(data)

    if not result.get("success"):
        logger.info(
            f"{function} refused",
            extra={"function": function, "error_code": result.get("error")},
        )
        _raise_failure(function, result)

    return result


__all__ = ["call_ledger_function"]
