"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers, including
the mapping of ledger errors to HTTP responses.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict
from franchise_backend.app.domain.ledger.errors import (
    LedgerError,
    LedgerEntityNotFoundError,
    InvalidDeltaError,
    InsufficientBalanceError,
    TransactionFailureError,
)

logger = logging.getLogger("franchise_backend")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InsufficientPermissionsError(AppException):
    """Raised when the caller's franchise scope does not cover the resource."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


# Ledger error -> (HTTP status, error code)
LEDGER_ERROR_MAP = {
    LedgerEntityNotFoundError: (status.HTTP_404_NOT_FOUND, "ERR_LEDGER_NOT_FOUND"),
    InvalidDeltaError: (status.HTTP_400_BAD_REQUEST, "ERR_LEDGER_INVALID_DELTA"),
    InsufficientBalanceError: (status.HTTP_409_CONFLICT, "ERR_LEDGER_INSUFFICIENT_BALANCE"),
    TransactionFailureError: (status.HTTP_503_SERVICE_UNAVAILABLE, "ERR_LEDGER_TRANSACTION"),
}


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def ledger_exception_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Handler for errors raised by the ledger core."""
    status_code, error_code = status.HTTP_500_INTERNAL_SERVER_ERROR, "ERR_LEDGER"
    for error_class, mapping in LEDGER_ERROR_MAP.items():
        if isinstance(exc, error_class):
            status_code, error_code = mapping
            break

    if isinstance(exc, TransactionFailureError):
        logger.error(
            f"Ledger transaction failed: {exc.message}",
            exc_info=exc.__cause__,
            extra={"path": request.url.path, "error_code": error_code},
        )

    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_errors(exc)
            }
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with non-JSON context values (e.g. Decimal limits) stringified."""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        error.pop("input", None)
        errors.append(error)
    return errors


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=exc,
        extra={"path": request.url.path},
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
