"""
Error translation for the HTTP layer.

Ledger errors raised by services are converted to HTTPException inside each
router; the handlers installed here render every error as the standard
envelope {"error": true, "message": ...}.

    NotFoundError          -> 404
    LedgerValidationError  -> 400
    InsufficientStockError -> 400 (adds availableStock)
    request validation     -> 422 (adds details)
    anything else          -> 500 "Server error"
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from domain.errors import InsufficientStockError, LedgerError, NotFoundError

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error"


def to_http_exception(err: LedgerError) -> HTTPException:
    if isinstance(err, NotFoundError):
        return HTTPException(status_code=404, detail=err.message)
    if isinstance(err, InsufficientStockError):
        return HTTPException(
            status_code=400,
            detail={"message": err.message, "availableStock": err.available_stock},
        )
    return HTTPException(status_code=400, detail=err.message)


def server_error(action: str, err: Exception) -> HTTPException:
    """Log an unexpected failure and hide its details from the client."""
    logger.exception(f"Failed to {action}: {err}")
    return HTTPException(status_code=500, detail=SERVER_ERROR_MESSAGE)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        content = {"error": True, **exc.detail}
    else:
        content = {"error": True, "message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": True,
            "message": "Invalid request",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(status_code=500, content={"error": True, "message": SERVER_ERROR_MESSAGE})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)


__all__ = ["to_http_exception", "server_error", "install_error_handlers", "SERVER_ERROR_MESSAGE"]
