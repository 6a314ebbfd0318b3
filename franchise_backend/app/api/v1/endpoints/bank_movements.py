"""
Bank Movement API Endpoints.

Records bank account movements through the balance mutator and lists them
within the caller's franchise scope.
"""

import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from franchise_backend.app.db.session import get_db
from franchise_backend.app.core.config import settings
from franchise_backend.app.core.guards import require_role, scope_for, LEDGER_ROLES
from franchise_backend.app.domain.ledger.balance_mutator import apply_movement
from franchise_backend.app.domain.ledger.deltas import MonetaryDelta, MovementMetadata
from franchise_backend.app.domain.ledger.filters import DateRange, MovementFilter
from franchise_backend.app.domain.ledger.queries import get_entity_franchise, get_movement, list_movements
from franchise_backend.app.models.ledger_enums import BankMovementType, LedgerKind
from franchise_backend.app.schemas.movements import (
    BankMovementCreate,
    BankMovementResponse,
    BankMovementListResponse,
)
from franchise_backend.app.services.audit import log_movement_recorded

logger = logging.getLogger("franchise_backend")

router = APIRouter(prefix="/bank-movements", tags=["Bank Movements"])


@router.post("", response_model=BankMovementResponse, status_code=status.HTTP_201_CREATED)
async def record_bank_movement(
    movement_data: BankMovementCreate,
    current_user: dict = Depends(require_role(LEDGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a bank movement and update the account balance.

    Coordinators can only record movements on accounts of their franchise.
    """
    scope = scope_for(current_user)
    franchise_id = await get_entity_franchise(db, LedgerKind.BANK_ACCOUNT, movement_data.bank_account_id)
    scope.enforce(franchise_id, "bank account")

    async def audit(recorded):
        await log_movement_recorded(
            db, current_user, LedgerKind.BANK_ACCOUNT, recorded.bank_account_id, franchise_id, recorded
        )

    movement = await apply_movement(
        db,
        LedgerKind.BANK_ACCOUNT,
        movement_data.bank_account_id,
        MonetaryDelta(income=movement_data.income, expense=movement_data.expense),
        MovementMetadata(
            observation=movement_data.observation,
            movement_type=movement_data.movement_type,
            reference_number=movement_data.reference_number,
            actor_id=current_user["user_id"],
            occurred_at=movement_data.occurred_at,
        ),
        on_recorded=audit,
    )

    logger.info(
        "Bank movement recorded",
        extra={
            "movement_id": movement.id,
            "bank_account_id": movement.bank_account_id,
            "user_id": current_user["user_id"],
        },
    )

    return BankMovementResponse.model_validate(movement)


@router.get("", response_model=BankMovementListResponse)
async def list_bank_movements(
    bank_account_id: Optional[int] = Query(None, gt=0),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    movement_type: Optional[List[BankMovementType]] = Query(None),
    limit: int = Query(settings.default_list_limit, ge=1, le=settings.max_list_limit),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(require_role(LEDGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    List bank movements, newest first.

    Without `bank_account_id`, coordinators only see their franchise's accounts.
    """
    scope = scope_for(current_user)
    if bank_account_id is not None:
        franchise_id = await get_entity_franchise(db, LedgerKind.BANK_ACCOUNT, bank_account_id)
        scope.enforce(franchise_id, "bank account")

    try:
        date_range = DateRange.from_dates(start_date, end_date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    movement_filter = scope.narrow(MovementFilter(
        entity_id=bank_account_id,
        date_range=date_range,
        movement_types=tuple(movement_type or ()),
    ))
    movements = await list_movements(db, LedgerKind.BANK_ACCOUNT, movement_filter, limit, offset)

    return BankMovementListResponse(
        items=[BankMovementResponse.model_validate(m) for m in movements],
        limit=limit,
        offset=offset,
    )


@router.get("/{movement_id}", response_model=BankMovementResponse)
async def get_bank_movement(
    movement_id: int,
    current_user: dict = Depends(require_role(LEDGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Get one bank movement within the caller's scope."""
    movement, franchise_id = await get_movement(db, LedgerKind.BANK_ACCOUNT, movement_id)
    scope_for(current_user).enforce(franchise_id, "bank movement")
    return BankMovementResponse.model_validate(movement)
