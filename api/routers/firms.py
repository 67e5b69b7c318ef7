"""
Firms API Endpoints.

Vendors that purchases are bought from. A firm referenced by a purchase
cannot be deleted.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.errors import server_error, to_http_exception
from api.listing import list_request
from api.models import (
    DataResponse,
    ErrorResponse,
    FirmCreateRequest,
    FirmOut,
    FirmUpdateRequest,
    ListResponse,
    MessageResponse,
    PageDetailsOut,
)
from domain.errors import LedgerError, NotFoundError
from repositories.firm_repository import get_firm_by_id, list_firms
from repositories.pagination import PageRequest
from services.catalog_service import FirmDraft, add_firm, edit_firm, remove_firm

router = APIRouter()


@router.get(
    "/firms",
    response_model=ListResponse[FirmOut],
    summary="List Firms",
    description="Paginated firms ordered by name. Supports filter[], search[] and sort[].",
)
def get_firms(page: PageRequest = Depends(list_request)):
    try:
        result = list_firms(page)
        return ListResponse[FirmOut](
            details=PageDetailsOut.from_domain(result.details),
            data=[FirmOut.from_domain(f) for f in result.items],
        )
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("list firms", e)


@router.get(
    "/firms/{firm_id}",
    response_model=DataResponse[FirmOut],
    summary="Get Firm",
)
def get_firm(firm_id: str):
    try:
        firm = get_firm_by_id(firm_id)
        if firm is None:
            raise to_http_exception(NotFoundError("Firm", firm_id))
        return DataResponse[FirmOut](data=FirmOut.from_domain(firm))
    except HTTPException:
        raise
    except Exception as e:
        raise server_error("get firm", e)


@router.post(
    "/firms",
    response_model=DataResponse[FirmOut],
    status_code=201,
    summary="Create Firm",
    responses={400: {"model": ErrorResponse}},
)
def create_firm(request: FirmCreateRequest):
    try:
        firm = add_firm(
            FirmDraft(
                name=request.name or "",
                phone=request.phone,
                address=request.address,
                image=request.image,
            )
        )
        return DataResponse[FirmOut](data=FirmOut.from_domain(firm))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("create firm", e)


@router.put(
    "/firms/{firm_id}",
    response_model=DataResponse[FirmOut],
    summary="Update Firm",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def update_firm(firm_id: str, request: FirmUpdateRequest):
    try:
        firm = edit_firm(firm_id, request.model_dump(exclude_none=True))
        return DataResponse[FirmOut](data=FirmOut.from_domain(firm))
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("update firm", e)


@router.delete(
    "/firms/{firm_id}",
    response_model=MessageResponse,
    summary="Delete Firm",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def delete_firm(firm_id: str):
    try:
        remove_firm(firm_id)
        return MessageResponse(message="Firm successfully deleted")
    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise server_error("delete firm", e)
