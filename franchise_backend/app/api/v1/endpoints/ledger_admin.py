"""
Ledger administration endpoints (Superuser only).

Reconciles cached balances against the movement logs.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from franchise_backend.app.db.session import get_db
from franchise_backend.app.core.guards import require_role
from franchise_backend.app.domain.ledger.deltas import StockKey
from franchise_backend.app.domain.ledger.reconciliation import rebuild_balance
from franchise_backend.app.models.enums import UserRole
from franchise_backend.app.models.ledger_enums import LedgerKind
from franchise_backend.app.schemas.statements import ReconcileRequest, ReconciliationResponse
from franchise_backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger("franchise_backend")

router = APIRouter(prefix="/admin/ledger", tags=["Ledger Admin"])


@router.post("/{kind}/reconcile", response_model=ReconciliationResponse)
async def reconcile_ledger(
    kind: LedgerKind,
    request: ReconcileRequest,
    current_user: dict = Depends(require_role([UserRole.SUPERUSER])),
    db: AsyncSession = Depends(get_db)
):
    """
    Compare an entity's cached balance with the fold of its movements.

    With `apply=true` an inconsistent balance is rewritten to the folded value.
    """
    if kind == LedgerKind.INVENTORY:
        if request.product_id is None or request.franchise_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="product_id and franchise_id are required for inventory"
            )
        entity_id = StockKey(product_id=request.product_id, franchise_id=request.franchise_id)
    else:
        if request.entity_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="entity_id is required"
            )
        entity_id = request.entity_id

    result = await rebuild_balance(db, kind, entity_id, apply=request.apply)

    await log_event(
        db=db,
        action=AuditAction.LEDGER_RECONCILED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        ledger_kind=kind,
        entity_ref=entity_id,
        metadata={
            "stored_balance": str(result.stored_balance),
            "rebuilt_balance": str(result.rebuilt_balance),
            "is_consistent": result.is_consistent,
            "repaired": result.repaired,
        },
    )
    if not result.is_consistent:
        logger.warning(
            "Ledger balance drift detected",
            extra={"ledger_kind": kind.value, "entity_ref": str(entity_id), "repaired": result.repaired},
        )

    return ReconciliationResponse(
        kind=kind,
        reference=str(entity_id),
        stored_balance=result.stored_balance,
        rebuilt_balance=result.rebuilt_balance,
        last_balance_after=result.last_balance_after,
        movement_count=result.movement_count,
        is_consistent=result.is_consistent,
        repaired=result.repaired,
    )
