"""
Catalog service for managing categories, brands, products and firms.

Handles:
- Required names (trimmed) and unique category/brand names
- Product references: the category and brand must exist
- Delete guards: nothing is deleted while ledger rows or products still
  point at it, so reports never meet a dangling reference

Stock is not editable here; it moves only through the ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from domain.catalog import Brand, Category, Firm, Product
from domain.errors import LedgerValidationError, NotFoundError
from repositories.catalog_repository import (
    count_products,
    create_brand,
    create_category,
    create_product,
    delete_brand,
    delete_category,
    delete_product,
    find_brand_by_name,
    find_category_by_name,
    get_brand_by_id,
    get_category_by_id,
    get_product_by_id,
    update_brand,
    update_category,
    update_product,
)
from repositories.firm_repository import create_firm, delete_firm, get_firm_by_id, update_firm
from repositories.purchase_repository import count_purchases
from repositories.sell_repository import count_sells_for_product

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProductDraft:
    name: str
    category_id: str
    brand_id: str
    price: Decimal = Decimal("0")


@dataclass(frozen=True, slots=True)
class ProductEdit:
    """Catalog fields of a product; None leaves a field unchanged."""
    name: Optional[str] = None
    category_id: Optional[str] = None
    brand_id: Optional[str] = None
    price: Optional[Decimal] = None


@dataclass(frozen=True, slots=True)
class FirmDraft:
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    image: Optional[str] = None


def _require_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise LedgerValidationError("Name is required.")
    return cleaned


def _require_category(category_id: str) -> None:
    if get_category_by_id(category_id) is None:
        raise NotFoundError("Category", category_id)


def _require_brand(brand_id: str) -> None:
    if get_brand_by_id(brand_id) is None:
        raise NotFoundError("Brand", brand_id)


def _refuse_if_referenced(count: int, message: str) -> None:
    if count:
        raise LedgerValidationError(message)


# ============================================================================
# Categories
# ============================================================================

def add_category(name: str) -> Category:
    name = _require_name(name)
    if find_category_by_name(name) is not None:
        raise LedgerValidationError(f"Category '{name}' already exists.")
    category = create_category(name)
    logger.info("Category created", extra={"category_id": category.category_id})
    return category


def rename_category(category_id: str, name: str) -> Category:
    name = _require_name(name)
    existing = find_category_by_name(name)
    if existing is not None and existing.category_id != category_id:
        raise LedgerValidationError(f"Category '{name}' already exists.")
    category = update_category(category_id, name)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


def remove_category(category_id: str) -> None:
    if get_category_by_id(category_id) is None:
        raise NotFoundError("Category", category_id)
    _refuse_if_referenced(count_products("category_id", category_id), "Category still has products.")
    delete_category(category_id)
    logger.info("Category deleted", extra={"category_id": category_id})


# ============================================================================
# Brands
# ============================================================================

def add_brand(name: str, description: str = "") -> Brand:
    name = _require_name(name)
    if find_brand_by_name(name) is not None:
        raise LedgerValidationError(f"Brand '{name}' already exists.")
    brand = create_brand(name, (description or "").strip())
    logger.info("Brand created", extra={"brand_id": brand.brand_id})
    return brand


def edit_brand(brand_id: str, name: Optional[str] = None, description: Optional[str] = None) -> Brand:
    changes: Dict[str, Any] = {}
    if name is not None:
        changes["name"] = _require_name(name)
        existing = find_brand_by_name(changes["name"])
        if existing is not None and existing.brand_id != brand_id:
            raise LedgerValidationError(f"Brand '{changes['name']}' already exists.")
    if description is not None:
        changes["description"] = description.strip()

    brand = update_brand(brand_id, changes) if changes else get_brand_by_id(brand_id)
    if brand is None:
        raise NotFoundError("Brand", brand_id)
    return brand


def remove_brand(brand_id: str) -> None:
    if get_brand_by_id(brand_id) is None:
        raise NotFoundError("Brand", brand_id)
    _refuse_if_referenced(count_products("brand_id", brand_id), "Brand still has products.")
    delete_brand(brand_id)
    logger.info("Brand deleted", extra={"brand_id": brand_id})


# ============================================================================
# Products
# ============================================================================

def add_product(draft: ProductDraft) -> Product:
    """
    Create a product with no stock.

    Raises:
        LedgerValidationError: missing name or negative price
        NotFoundError: category or brand does not exist
    """
    name = _require_name(draft.name)
    if draft.price < 0:
        raise LedgerValidationError("Price must not be negative.")
    _require_category(draft.category_id)
    _require_brand(draft.brand_id)

    product = create_product(name, draft.category_id, draft.brand_id, draft.price)
    logger.info("Product created", extra={"product_id": product.product_id, "category_id": product.category_id})
    return product


def edit_product(product_id: str, edit: ProductEdit) -> Product:
    changes: Dict[str, Any] = {}
    if edit.name is not None:
        changes["name"] = _require_name(edit.name)
    if edit.price is not None:
        if edit.price < 0:
            raise LedgerValidationError("Price must not be negative.")
        changes["price"] = edit.price
    if edit.category_id is not None:
        _require_category(edit.category_id)
        changes["category_id"] = edit.category_id
    if edit.brand_id is not None:
        _require_brand(edit.brand_id)
        changes["brand_id"] = edit.brand_id

    product = update_product(product_id, changes) if changes else get_product_by_id(product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def remove_product(product_id: str) -> None:
    if get_product_by_id(product_id) is None:
        raise NotFoundError("Product", product_id)
    _refuse_if_referenced(
        count_sells_for_product(product_id) + count_purchases("product_id", product_id),
        "Product has sells or purchases and cannot be deleted.",
    )
    delete_product(product_id)
    logger.info("Product deleted", extra={"product_id": product_id})


# ============================================================================
# Firms
# ============================================================================

def add_firm(draft: FirmDraft) -> Firm:
    firm = create_firm(_require_name(draft.name), phone=draft.phone, address=draft.address, image=draft.image)
    logger.info("Firm created", extra={"firm_id": firm.firm_id})
    return firm


def edit_firm(firm_id: str, changes: Dict[str, Any]) -> Firm:
    """Apply `changes` (name, phone, address, image); None values are ignored."""
    payload = {k: v for k, v in changes.items() if v is not None}
    if "name" in payload:
        payload["name"] = _require_name(payload["name"])

    firm = update_firm(firm_id, payload) if payload else get_firm_by_id(firm_id)
    if firm is None:
        raise NotFoundError("Firm", firm_id)
    return firm


def remove_firm(firm_id: str) -> None:
    if get_firm_by_id(firm_id) is None:
        raise NotFoundError("Firm", firm_id)
    _refuse_if_referenced(count_purchases("firm_id", firm_id), "Firm has purchases and cannot be deleted.")
    delete_firm(firm_id)
    logger.info("Firm deleted", extra={"firm_id": firm_id})


__all__ = [
    "ProductDraft",
    "ProductEdit",
    "FirmDraft",
    "add_category",
    "rename_category",
    "remove_category",
    "add_brand",
    "edit_brand",
    "remove_brand",
    "add_product",
    "edit_product",
    "remove_product",
    "add_firm",
    "edit_firm",
    "remove_firm",
]
