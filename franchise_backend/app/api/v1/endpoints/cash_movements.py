"""
Petty Cash Movement API Endpoints.
"""

import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from franchise_backend.app.db.session import get_db
from franchise_backend.app.core.config import settings
from franchise_backend.app.core.guards import require_role, scope_for, LEDGER_ROLES
from franchise_backend.app.domain.ledger.balance_mutator import apply_movement
from franchise_backend.app.domain.ledger.deltas import MonetaryDelta, MovementMetadata
from franchise_backend.app.domain.ledger.filters import DateRange, MovementFilter
from franchise_backend.app.domain.ledger.queries import get_entity_franchise, get_movement, list_movements
from franchise_backend.app.models.ledger_enums import LedgerKind
from franchise_backend.app.schemas.movements import (
    CashMovementCreate,
    CashMovementResponse,
    CashMovementListResponse,
)
from franchise_backend.app.services.audit import log_movement_recorded

logger = logging.getLogger("franchise_backend")

router = APIRouter(prefix="/cash-movements", tags=["Petty Cash Movements"])


@router.post("", response_model=CashMovementResponse, status_code=status.HTTP_201_CREATED)
async def record_cash_movement(
    movement_data: CashMovementCreate,
    current_user: dict = Depends(require_role(LEDGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Record a petty cash movement and update the box balance."""
    scope = scope_for(current_user)
    franchise_id = await get_entity_franchise(db, LedgerKind.PETTY_CASH, movement_data.petty_cash_id)
    scope.enforce(franchise_id, "petty cash")

    async def audit(recorded):
        await log_movement_recorded(
            db, current_user, LedgerKind.PETTY_CASH, recorded.petty_cash_id, franchise_id, recorded
        )

    movement = await apply_movement(
        db,
        LedgerKind.PETTY_CASH,
        movement_data.petty_cash_id,
        MonetaryDelta(income=movement_data.income, expense=movement_data.expense),
        MovementMetadata(
            observation=movement_data.observation,
            actor_id=current_user["user_id"],
            occurred_at=movement_data.occurred_at,
        ),
        on_recorded=audit,
    )

    logger.info(
        "Cash movement recorded",
        extra={
            "movement_id": movement.id,
            "petty_cash_id": movement.petty_cash_id,
            "user_id": current_user["user_id"],
        },
    )

    return CashMovementResponse.model_validate(movement)


@router.get("", response_model=CashMovementListResponse)
async def list_cash_movements(
    petty_cash_id: Optional[int] = Query(None, gt=0),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(settings.default_list_limit, ge=1, le=settings.max_list_limit),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(require_role(LEDGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """List petty cash movements, newest first."""
    scope = scope_for(current_user)
    if petty_cash_id is not None:
        franchise_id = await get_entity_franchise(db, LedgerKind.PETTY_CASH, petty_cash_id)
        scope.enforce(franchise_id, "petty cash")

    try:
        date_range = DateRange.from_dates(start_date, end_date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    movement_filter = scope.narrow(MovementFilter(entity_id=petty_cash_id, date_range=date_range))
    movements = await list_movements(db, LedgerKind.PETTY_CASH, movement_filter, limit, offset)

    return CashMovementListResponse(
        items=[CashMovementResponse.model_validate(m) for m in movements],
        limit=limit,
        offset=offset,
    )


@router.get("/{movement_id}", response_model=CashMovementResponse)
async def get_cash_movement(
    movement_id: int,
    current_user: dict = Depends(require_role(LEDGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    movement, franchise_id = await get_movement(db, LedgerKind.PETTY_CASH, movement_id)
    scope_for(current_user).enforce(franchise_id, "petty cash movement")
    return CashMovementResponse.model_validate(movement)
