"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from franchise_backend.app.api.v1.endpoints import (
    bank_movements, cash_movements, inventory,
    reports, ledger_admin
)

router = APIRouter()

# Balance-mutating endpoints
router.include_router(bank_movements.router)
router.include_router(cash_movements.router)
router.include_router(inventory.router)

# Statements
router.include_router(reports.router)

# Reconciliation (Superuser)
router.include_router(ledger_admin.router)
