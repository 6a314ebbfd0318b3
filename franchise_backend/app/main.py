"""
FastAPI Application Entry Point.

This is the main application file for the Franchise Admin Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from franchise_backend.app.core.config import settings
from franchise_backend.app.api.v1.router import router as api_v1_router
from franchise_backend.app.db.session import engine, Base
from franchise_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from franchise_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    ledger_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from franchise_backend.app.domain.ledger.errors import LedgerError

# Import models to ensure they are registered with Base
from franchise_backend.app.models.franchise import Franchise
from franchise_backend.app.models.user import User
from franchise_backend.app.models.audit_log import AuditLog
from franchise_backend.app.models.parties import AccountResponsible, Volunteer
from franchise_backend.app.models.bank_account import Bank, BankAccount
from franchise_backend.app.models.petty_cash import PettyCash
from franchise_backend.app.models.product import Product, ProductStock
from franchise_backend.app.models.bank_movement import BankMovement
from franchise_backend.app.models.cash_movement import CashMovement
from franchise_backend.app.models.inventory_movement import InventoryMovement

configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup and disposes the engine on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Franchise administration backend: bank, petty cash and inventory ledgers",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(LedgerError, ledger_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Franchise Admin Backend API",
        "docs": "/docs",
        "health": "/health",
    }
