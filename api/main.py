"""
Stock Ledger API - Main Application.

FastAPI application serving the sell/purchase ledger, catalog listings and
the category and sales summaries.
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.errors import install_error_handlers

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def _allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()] or ["*"]


app = FastAPI(
    title="Stock Ledger API",
    description="REST API for recording sells and purchases and summarizing them",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "stock-ledger-api"
    }


@app.get("/", tags=["Root"])
def root():
    return {
        "message": "Stock Ledger API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


from api.routers import catalog, categories, firms, purchases, sells

app.include_router(categories.router, prefix="/api", tags=["Categories"])
app.include_router(sells.router, prefix="/api", tags=["Sells"])
app.include_router(purchases.router, prefix="/api", tags=["Purchases"])
app.include_router(firms.router, prefix="/api", tags=["Firms"])
app.include_router(catalog.router, prefix="/api")
