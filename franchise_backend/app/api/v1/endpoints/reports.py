"""
Statement API Endpoints.

Running-balance statements for bank accounts, petty cash boxes and
product stock lines, plus the multi-franchise stock report. JSON only.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from franchise_backend.app.db.session import get_db
from franchise_backend.app.core.guards import require_role, scope_for, LEDGER_ROLES
from franchise_backend.app.domain.ledger.deltas import StockKey
from franchise_backend.app.domain.ledger.filters import DateRange, MovementFilter
from franchise_backend.app.domain.ledger.queries import get_entity_franchise
from franchise_backend.app.domain.ledger.statement_builder import build_statement
from franchise_backend.app.domain.ledger.stock_report import build_stock_report
from franchise_backend.app.models.ledger_enums import LedgerKind
from franchise_backend.app.schemas.statements import (
    BankStatementRequest,
    InventoryStatementRequest,
    Statement,
    StatementRequest,
    StockReport,
    StockReportRequest,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("/bank-accounts/{bank_account_id}/statement", response_model=Statement)
async def bank_account_statement(
    bank_account_id: int,
    request: BankStatementRequest,
    current_user: dict = Depends(require_role(LEDGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Statement of a bank account between two dates (inclusive)."""
    franchise_id = await get_entity_franchise(db, LedgerKind.BANK_ACCOUNT, bank_account_id)
    scope_for(current_user).enforce(franchise_id, "bank account")

    return await build_statement(
        db,
        LedgerKind.BANK_ACCOUNT,
        bank_account_id,
        DateRange.from_dates(request.start_date, request.end_date),
        request.movement_types,
    )


@router.post("/petty-cash/{petty_cash_id}/statement", response_model=Statement)
async def petty_cash_statement(
    petty_cash_id: int,
    request: StatementRequest,
    current_user: dict = Depends(require_role(LEDGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Statement of a petty cash box between two dates (inclusive)."""
    franchise_id = await get_entity_franchise(db, LedgerKind.PETTY_CASH, petty_cash_id)
    scope_for(current_user).enforce(franchise_id, "petty cash")

    return await build_statement(
        db,
        LedgerKind.PETTY_CASH,
        petty_cash_id,
        DateRange.from_dates(request.start_date, request.end_date),
    )


@router.post("/inventory/statement", response_model=Statement)
async def inventory_statement(
    request: InventoryStatementRequest,
    current_user: dict = Depends(require_role(LEDGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Entries and exits of one product at one franchise, with running stock."""
    key = StockKey(product_id=request.product_id, franchise_id=request.franchise_id)
    franchise_id = await get_entity_franchise(db, LedgerKind.INVENTORY, key)
    scope_for(current_user).enforce(franchise_id, "stock line")

    return await build_statement(
        db,
        LedgerKind.INVENTORY,
        key,
        DateRange.from_dates(request.start_date, request.end_date),
        request.movement_types,
    )


@router.post("/inventory/stock", response_model=StockReport)
async def inventory_stock_report(
    request: StockReportRequest,
    current_user: dict = Depends(require_role(LEDGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Inventory movements across franchises with entry/exit totals.

    Coordinators may only name their own franchise; without `franchise_ids`
    they get their franchise and superusers get all of them.
    """
    scope = scope_for(current_user)
    franchise_ids = tuple(sorted(set(request.franchise_ids or ())))
    for franchise_id in franchise_ids:
        scope.enforce(franchise_id, "franchise")

    movement_filter = scope.narrow(MovementFilter(
        franchise_ids=franchise_ids,
        date_range=DateRange.from_dates(request.start_date, request.end_date),
        movement_types=tuple(request.movement_types or ()),
    ))
    return await build_stock_report(db, movement_filter)
