"""
Purchases API Endpoints.

Purchase ledger listing and mutations. Purchases add stock; editing or
deleting one may not leave the product with negative stock.
"""

from fastapi import APIRouter, Depends

from api.errors import server_error, to_http_exception
from api.listing import list_request
from api.models import (
    DataResponse,
    ListResponse,
    MessageResponse,
    PageDetailsOut,
    PurchaseCreateRequest,
    PurchaseOut,
    PurchaseUpdateRequest,
)
from domain.errors import LedgerError
from repositories.pagination import PageRequest
from repositories.purchase_repository import list_purchases
from services.ledger_service import (
    PurchaseChange,
    PurchaseRequest,
    edit_purchase,
    record_new_purchase,
    remove_purchase,
)

router = APIRouter()


@router.get(
    "/purchases",
    response_model=ListResponse[PurchaseOut],
    summary="List Purchases",
    description="Paginated purchases, oldest first. limit=0 returns every purchase.",
)
def get_purchases(page: PageRequest = Depends(list_request)):
    try:
        result = list_purchases(page)
        return ListResponse[PurchaseOut](
            details=PageDetailsOut.from_domain(result.details),
            data=[PurchaseOut.from_domain(p) for p in result.items],
        )
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("list purchases", e)


@router.post(
    "/purchases",
    response_model=DataResponse[PurchaseOut],
    status_code=201,
    summary="Record Purchase",
    description="Record a purchase and increment the product's stock and purchase count.",
)
def create_purchase(request: PurchaseCreateRequest):
    """
    Record a purchase of stock from a firm.

    **Example request:**
    ```json
    {"productId": "p1", "firmId": "f1", "quantity": 1000, "purchasePrice": "20.00"}
    ```

    The purchase's brand is taken from the product. Returns 404 when the
    product does not exist and 400 when no product is selected.
    """
    try:
        purchase = record_new_purchase(
            PurchaseRequest(
                product_id=request.product_id,
                user_id=request.user_id,
                quantity=request.quantity,
                purchase_price=request.purchase_price,
                firm_id=request.firm_id,
            )
        )
        return DataResponse[PurchaseOut](data=PurchaseOut.from_domain(purchase))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("record purchase", e)


@router.put(
    "/purchases/{purchase_id}",
    response_model=DataResponse[PurchaseOut],
    summary="Update Purchase",
)
def update_purchase(purchase_id: str, request: PurchaseUpdateRequest):
    try:
        purchase = edit_purchase(
            purchase_id,
            PurchaseChange(
                quantity=request.quantity,
                purchase_price=request.purchase_price,
                firm_id=request.firm_id,
            ),
        )
        return DataResponse[PurchaseOut](data=PurchaseOut.from_domain(purchase))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("update purchase", e)


@router.delete(
    "/purchases/{purchase_id}",
    response_model=MessageResponse,
    summary="Delete Purchase",
    description="Delete a purchase and remove its quantity from stock.",
)
def delete_purchase(purchase_id: str):
    try:
        remove_purchase(purchase_id)
        return MessageResponse(message="Purchase deleted")
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("delete purchase", e)
