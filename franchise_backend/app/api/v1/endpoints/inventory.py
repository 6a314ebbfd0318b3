"""
Inventory API Endpoints.

Entries and exits against a (product, franchise) stock line, plus the
stock level and movement history of a product.
"""

import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from franchise_backend.app.db.session import get_db
from franchise_backend.app.core.config import settings
from franchise_backend.app.core.guards import FranchiseScope, require_role, scope_for, LEDGER_ROLES
from franchise_backend.app.domain.ledger.balance_mutator import apply_movement
from franchise_backend.app.domain.ledger.deltas import InventoryDelta, MovementMetadata, StockKey
from franchise_backend.app.domain.ledger.errors import InsufficientBalanceError
from franchise_backend.app.domain.ledger.filters import DateRange, MovementFilter
from franchise_backend.app.domain.ledger.queries import get_entity_franchise, get_stock_level, list_movements
from franchise_backend.app.models.ledger_enums import InventoryMovementType, LedgerKind
from franchise_backend.app.schemas.movements import (
    InventoryMovementCreate,
    InventoryMovementResponse,
    InventoryMovementListResponse,
    StockLevelResponse,
)
from franchise_backend.app.services.audit import log_movement_recorded, log_movement_rejected

logger = logging.getLogger("franchise_backend")

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def resolve_franchise(scope: FranchiseScope, franchise_id: Optional[int]) -> int:
    """Coordinators default to their own franchise; superusers must name one."""
    if franchise_id is not None:
    scope.enforce(franchise_id, "stock line")

    async def audit(recorded):
        await log_movement_recorded(db, current_user, LedgerKind.INVENTORY, key, franchise_id, recorded)

    try:
        movement = await apply_movement(
            db,
            LedgerKind.INVENTORY,
            key,
            InventoryDelta(direction=movement_data.movement_type, quantity=movement_data.quantity),
            MovementMetadata(
                observation=movement_data.observation,
                actor_id=current_user["user_id"],
                occurred_at=movement_data.occurred_at,
            ),
            on_recorded=audit,
        )
    except InsufficientBalanceError as exc:
        try:
            await log_movement_rejected(
                db, current_user, LedgerKind.INVENTORY, key, franchise_id,
                reason="INSUFFICIENT_STOCK", details=exc.details,
            )
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Rejected inventory exit could not be audited", extra={"stock_key": str(key)})
        logger.warning(
            "Inventory exit rejected",
            extra={"stock_key": str(key), "requested": exc.requested, "current_stock": exc.current_balance},
        )
        raise

    logger.info(
        "Inventory movement recorded",
        extra={
            "movement_id": movement.id,
            "stock_key": str(key),
            "user_id": current_user["user_id"],
        },
    )

    return InventoryMovementResponse.model_validate(movement)


@router.get("/products/{product_id}/movements", response_model=InventoryMovementListResponse)
async def list_product_movements(
    product_id: int,
    franchise_id: Optional[int] = Query(None, gt=0),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    movement_type: Optional[List[InventoryMovementType]] = Query(None),
    limit: int = Query(settings.default_list_limit, ge=1, le=settings.max_list_limit),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(require_role(LEDGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """List the movements of a product at one franchise, newest first."""
    scope = scope_for(current_user)
    key = StockKey(product_id=product_id, franchise_id=resolve_franchise(scope, franchise_id))
    await get_entity_franchise(db, LedgerKind.INVENTORY, key)

    try:
        date_range = DateRange.from_dates(start_date, end_date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    movement_filter = scope.narrow(MovementFilter(
        entity_id=key,
        date_range=date_range,
        movement_types=tuple(movement_type or ()),
    ))
    movements = await list_movements(db, LedgerKind.INVENTORY, movement_filter, limit, offset)

    return InventoryMovementListResponse(
        items=[InventoryMovementResponse.model_validate(m) for m in movements],
        limit=limit,
        offset=offset,
    )


@router.get("/products/{product_id}/stock", response_model=StockLevelResponse)
async def get_product_stock(
    product_id: int,
    franchise_id: Optional[int] = Query(None, gt=0),
    current_user: dict = Depends(require_role(LEDGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Current stock of a product at a franchise (0 before the first movement)."""
    key = StockKey(product_id=product_id, franchise_id=resolve_franchise(scope_for(current_user), franchise_id))
    current_stock = await get_stock_level(db, key)
    return StockLevelResponse(product_id=key.product_id, franchise_id=key.franchise_id, current_stock=current_stock)
