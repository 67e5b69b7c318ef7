"""
Category API Endpoints.

Category listing, lookup, create/rename/delete, the category summary (most
purchased/sold product, top buyers and sellers) and the category financial
report.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.errors import server_error, to_http_exception
from api.listing import list_request
from api.models import (
    CategoryOut,
    CategoryReportOut,
    CategoryRequest,
    CategorySummaryOut,
    DataResponse,
    ErrorResponse,
    ListResponse,
    MessageResponse,
    PageDetailsOut,
)
from domain.errors import LedgerError, NotFoundError
from repositories.catalog_repository import get_category_by_id, list_categories
from repositories.pagination import PageRequest
from services.catalog_service import add_category, remove_category, rename_category
from services.category_summary_service import get_category_report, get_category_summary

router = APIRouter()


@router.get(
    "/categories",
    response_model=ListResponse[CategoryOut],
    summary="List Categories",
    description="Paginated category list ordered by name. limit=0 returns every category.",
)
def get_categories(page: PageRequest = Depends(list_request)):
    try:
        result = list_categories(page)
        return ListResponse[CategoryOut](
            details=PageDetailsOut.from_domain(result.details),
            data=[CategoryOut.from_domain(c) for c in result.items],
        )
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("list categories", e)


@router.get(
    "/categories/{category_id}",
    response_model=DataResponse[CategoryOut],
    summary="Get Category",
)
def get_category(category_id: str):
    try:
        category = get_category_by_id(category_id)
        if category is None:
            raise to_http_exception(NotFoundError("Category", category_id))
        return DataResponse[CategoryOut](data=CategoryOut.from_domain(category))
    except HTTPException:
        raise
    except Exception as e:
        raise server_error("get category", e)


@router.get(
    "/categories/{category_id}/summary",
    response_model=DataResponse[CategorySummaryOut],
    summary="Category Summary",
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    description="Product count, most purchased and most sold product, and top 3 buyers and sellers.",
)
def get_summary(category_id: str):
    """
    Summarize one category.

    - **mostPurchased** is the product with the highest purchase count; ties go
      to the earliest-created product.
    - **mostSold** is the product with the highest sold count.
    - **topBuyers** / **topSellers** sum sell quantities per buyer and per
      seller, highest first, at most 3 each.

    **Example response:**
    ```json
    {
      "error": false,
      "data": {
        "productCount": 2,
        "mostPurchased": {"name": "B", "count": 12},
        "mostSold": {"name": "A", "count": 7},
        "topBuyers": [{"_id": "u1", "totalPurchased": 3}],
        "topSellers": [{"_id": "s1", "totalSold": 3}]
      }
    }
    ```

    Returns 404 `{"error": true, "message": "Category not found"}` for an
    unknown category.
    """
    try:
        summary = get_category_summary(category_id)
        return DataResponse[CategorySummaryOut](data=CategorySummaryOut.from_domain(summary))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("build category summary", e)


@router.get(
    "/categories/{category_id}/report",
    response_model=DataResponse[CategoryReportOut],
    summary="Category Financial Report",
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    description="Money spent and gained, profit, top products and biggest buyer and seller for a category.",
)
def get_report(category_id: str):
    """
    Financial report for one category.

    Money spent is the sum of purchase amounts, money gained the sum of sell
    amounts, profit their difference. profitableProducts lists the 3 products
    with the highest (price - average purchase price) x units sold.
    """
    try:
        report = get_category_report(category_id)
        return DataResponse[CategoryReportOut](data=CategoryReportOut.from_domain(report))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("build category report", e)


@router.post(
    "/categories",
    response_model=DataResponse[CategoryOut],
    status_code=201,
    summary="Create Category",
    responses={400: {"model": ErrorResponse}},
    description="Create a category. Names are trimmed and must be unique.",
)
def create_category(request: CategoryRequest):
    try:
        category = add_category(request.name or "")
        return DataResponse[CategoryOut](data=CategoryOut.from_domain(category))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("create category", e)


@router.put(
    "/categories/{category_id}",
    response_model=DataResponse[CategoryOut],
    summary="Rename Category",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def update_category(category_id: str, request: CategoryRequest):
    try:
        category = rename_category(category_id, request.name or "")
        return DataResponse[CategoryOut](data=CategoryOut.from_domain(category))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("update category", e)


@router.delete(
    "/categories/{category_id}",
    response_model=MessageResponse,
    summary="Delete Category",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    description="Delete a category that has no products.",
)
def delete_category(category_id: str):
    try:
        remove_category(category_id)
        return MessageResponse(message="Category successfully deleted")
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("delete category", e)
