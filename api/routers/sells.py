"""
Sells API Endpoints.

Sell ledger listing and mutations with server-side stock reconciliation, and
the filtered sales report (totals, per-product averages, per-seller totals).
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.errors import server_error, to_http_exception
from api.listing import list_request
from api.models import (
    DataResponse,
    ErrorResponse,
    ListResponse,
    MessageResponse,
    PageDetailsOut,
    SalesReportOut,
    SellCreateRequest,
    SellOut,
    SellUpdateRequest,
)
from domain.errors import LedgerError, NotFoundError
from domain.rollup import SellSelection
from repositories.pagination import PageRequest
from repositories.sell_repository import get_sell_by_id, list_sells
from services.ledger_service import (
    SellChange,
    SellRequest,
    edit_sell,
    record_new_sell,
    remove_sell,
)
from services.sales_report_service import build_sales_report

router = APIRouter()


@router.get(
    "/sells",
    response_model=ListResponse[SellOut],
    summary="List Sells",
    description="Paginated sells, oldest first. Optionally restricted to one seller. "
                "Supports filter[], search[] and sort[].",
)
def get_sells(
    page: PageRequest = Depends(list_request),
    seller_id: Optional[str] = Query(None, alias="sellerId", description="Only sells by this seller"),
):
    try:
        result = list_sells(page, seller_id=seller_id)
        return ListResponse[SellOut](
            details=PageDetailsOut.from_domain(result.details),
            data=[SellOut.from_domain(s) for s in result.items],
        )
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("list sells", e)


# Declared before /sells/{sell_id} so "report" is not taken as an id.
@router.get(
    "/sells/report",
    response_model=DataResponse[SalesReportOut],
    summary="Sales Report",
    description="Filtered rollup of sells by category, brand, product and seller.",
)
def get_sales_report(
    category_id: Optional[str] = Query(None, alias="categoryId"),
    brand_id: Optional[str] = Query(None, alias="brandId"),
    product_id: Optional[str] = Query(None, alias="productId"),
    seller_id: Optional[str] = Query(None, alias="sellerId"),
):
    """
    Compute the sales rollup for a selection.

    Every filter is optional; omitted, empty or `all` means no restriction.
    Category and brand are matched through the sold product. Each row's
    profit is `(sellPrice - avgPurchasePrice) x quantity`, where the average
    purchase price falls back to 75% of the product price when the product
    has never been purchased.

    **Example usage:**
    - All sells: `GET /api/sells/report`
    - One seller in a category: `GET /api/sells/report?categoryId=c1&sellerId=s1`

    Responses carry `generatedAt`; a client that fires several report
    requests should keep the newest one.
    """
    try:
        selection = SellSelection.of(
            category_id=category_id,
            brand_id=brand_id,
            product_id=product_id,
            seller_id=seller_id,
        )
        report = build_sales_report(selection)
        return DataResponse[SalesReportOut](data=SalesReportOut.from_domain(report))
    except Exception as e:
        raise server_error("build sales report", e)


@router.get(
    "/sells/{sell_id}",
    response_model=DataResponse[SellOut],
    summary="Get Sell",
)
def get_sell(sell_id: str):
    try:
        sell = get_sell_by_id(sell_id)
        if sell is None:
            raise to_http_exception(NotFoundError("Sell", sell_id))
        return DataResponse[SellOut](data=SellOut.from_domain(sell))
    except HTTPException:
        raise
    except Exception as e:
        raise server_error("get sell", e)


@router.post(
    "/sells",
    response_model=DataResponse[SellOut],
    status_code=201,
    summary="Record Sell",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    description="Record a sell and decrement the product's stock.",
)
def create_sell(request: SellCreateRequest):
    """
    Record a sell.

    The product, a seller (staff/admin) and a buyer must be selected. The
    quantity is checked against the product's stock on the server; when it
    exceeds the stock the request fails with 400 and nothing is written:

    ```json
    {"error": true, "message": "Not enough stock available.", "availableStock": 4}
    ```

    `sellerId` and `userId` accept a bare id or an embedded user object.
    """
    try:
        sell = record_new_sell(
            SellRequest(
                product_id=request.product_id,
                seller_id=request.seller_id,
                user_id=request.user_id,
                quantity=request.quantity,
                sell_price=request.sell_price,
            )
        )
        return DataResponse[SellOut](data=SellOut.from_domain(sell))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("record sell", e)


@router.put(
    "/sells/{sell_id}",
    response_model=DataResponse[SellOut],
    summary="Update Sell",
    description="Change quantity, price or seller; stock moves by the quantity difference.",
)
def update_sell(sell_id: str, request: SellUpdateRequest):
    try:
        sell = edit_sell(
            sell_id,
            SellChange(
                quantity=request.quantity,
                sell_price=request.sell_price,
                seller_id=request.seller_id,
            ),
        )
        return DataResponse[SellOut](data=SellOut.from_domain(sell))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("update sell", e)


@router.delete(
    "/sells/{sell_id}",
    response_model=MessageResponse,
    summary="Delete Sell",
    description="Delete a sell and return its quantity to stock.",
)
def delete_sell(sell_id: str):
    try:
        remove_sell(sell_id)
        return MessageResponse(message="Sell deleted")
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("delete sell", e)
