"""
Catalog API Endpoints.

Products and brands (list, lookup, create, update, delete) and the user
listing. Product stock is read-only here; it moves through the ledger.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.errors import server_error, to_http_exception
from api.listing import list_request
from api.models import (
    BrandCreateRequest,
    BrandOut,
    BrandUpdateRequest,
    DataResponse,
    ErrorResponse,
    ListResponse,
    MessageResponse,
    PageDetailsOut,
    ProductCreateRequest,
    ProductOut,
    ProductUpdateRequest,
    UserOut,
)
from domain.errors import LedgerError, NotFoundError
from repositories.catalog_repository import get_brand_by_id, get_product_by_id, list_brands, list_products
from repositories.pagination import PageRequest
from repositories.user_repository import list_users
from services.catalog_service import (
    ProductDraft,
    ProductEdit,
    add_brand,
    add_product,
    edit_brand,
    edit_product,
    remove_brand,
    remove_product,
)

router = APIRouter()

_ERRORS = {400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


# ============================================================================
# Products
# ============================================================================

@router.get(
    "/products",
    response_model=ListResponse[ProductOut],
    summary="List Products",
    description="Paginated products with current stock, purchase and sold counters. "
                "Supports filter[], search[name] and sort[].",
    tags=["Products"],
)
def get_products(page: PageRequest = Depends(list_request)):
    try:
        result = list_products(page)
        return ListResponse[ProductOut](
            details=PageDetailsOut.from_domain(result.details),
            data=[ProductOut.from_domain(p) for p in result.items],
        )
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("list products", e)


@router.get(
    "/products/{product_id}",
    response_model=DataResponse[ProductOut],
    summary="Get Product",
    tags=["Products"],
)
def get_product(product_id: str):
    try:
        product = get_product_by_id(product_id)
        if product is None:
            raise to_http_exception(NotFoundError("Product", product_id))
        return DataResponse[ProductOut](data=ProductOut.from_domain(product))
    except HTTPException:
        raise
    except Exception as e:
        raise server_error("get product", e)


@router.post(
    "/products",
    response_model=DataResponse[ProductOut],
    status_code=201,
    summary="Create Product",
    responses=_ERRORS,
    tags=["Products"],
)
def create_product(request: ProductCreateRequest):
    """
    Create a product. `categoryId` and `brandId` must exist (404 otherwise).
    The product starts with no stock.
    """
    try:
        product = add_product(
            ProductDraft(
                name=request.name or "",
                category_id=request.category_id,
                brand_id=request.brand_id,
                price=request.price,
            )
        )
        return DataResponse[ProductOut](data=ProductOut.from_domain(product))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("create product", e)


@router.put(
    "/products/{product_id}",
    response_model=DataResponse[ProductOut],
    summary="Update Product",
    responses=_ERRORS,
    tags=["Products"],
)
def update_product(product_id: str, request: ProductUpdateRequest):
    try:
        product = edit_product(
            product_id,
            ProductEdit(
                name=request.name,
                category_id=request.category_id,
                brand_id=request.brand_id,
                price=request.price,
            ),
        )
        return DataResponse[ProductOut](data=ProductOut.from_domain(product))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("update product", e)


@router.delete(
    "/products/{product_id}",
    response_model=MessageResponse,
    summary="Delete Product",
    description="Delete a product that has no sells or purchases.",
    responses=_ERRORS,
    tags=["Products"],
)
def delete_product(product_id: str):
    try:
        remove_product(product_id)
        return MessageResponse(message="Product successfully deleted")
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("delete product", e)


# ============================================================================
# Brands
# ============================================================================

@router.get(
    "/brands",
    response_model=ListResponse[BrandOut],
    summary="List Brands",
    tags=["Brands"],
)
def get_brands(page: PageRequest = Depends(list_request)):
    try:
        result = list_brands(page)
        return ListResponse[BrandOut](
            details=PageDetailsOut.from_domain(result.details),
            data=[BrandOut.from_domain(b) for b in result.items],
        )
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("list brands", e)


@router.get(
    "/brands/{brand_id}",
    response_model=DataResponse[BrandOut],
    summary="Get Brand",
    tags=["Brands"],
)
def get_brand(brand_id: str):
    try:
        brand = get_brand_by_id(brand_id)
        if brand is None:
            raise to_http_exception(NotFoundError("Brand", brand_id))
        return DataResponse[BrandOut](data=BrandOut.from_domain(brand))
    except HTTPException:
        raise
    except Exception as e:
        raise server_error("get brand", e)


@router.post(
    "/brands",
    response_model=DataResponse[BrandOut],
    status_code=201,
    summary="Create Brand",
    responses=_ERRORS,
    tags=["Brands"],
)
def create_brand(request: BrandCreateRequest):
    try:
        brand = add_brand(request.name or "", request.description)
        return DataResponse[BrandOut](data=BrandOut.from_domain(brand))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("create brand", e)


@router.put(
    "/brands/{brand_id}",
    response_model=DataResponse[BrandOut],
    summary="Update Brand",
    responses=_ERRORS,
    tags=["Brands"],
)
def update_brand(brand_id: str, request: BrandUpdateRequest):
    try:
        brand = edit_brand(brand_id, name=request.name, description=request.description)
        return DataResponse[BrandOut](data=BrandOut.from_domain(brand))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("update brand", e)


@router.delete(
    "/brands/{brand_id}",
    response_model=MessageResponse,
    summary="Delete Brand",
    description="Delete a brand that no product uses.",
    responses=_ERRORS,
    tags=["Brands"],
)
def delete_brand(brand_id: str):
    try:
        remove_brand(brand_id)
        return MessageResponse(message="Brand successfully deleted")
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("delete brand", e)


# ============================================================================
# Users
# ============================================================================

@router.get(
    "/users",
    response_model=ListResponse[UserOut],
    summary="List Users",
    description="Users with their role. Staff and admin users can be selected as sellers.",
    tags=["Users"],
)
def get_users(page: PageRequest = Depends(list_request)):
    try:
        result = list_users(page)
        return ListResponse[UserOut](
            details=PageDetailsOut.from_domain(result.details),
            data=[UserOut.from_domain(u) for u in result.items],
        )
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("list users", e)
