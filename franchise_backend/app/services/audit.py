"""
Audit logging service for ledger activity.

Every recorded movement, business-rule rejection and reconciliation run
leaves one row in the audit log. Recorded movements are audited inside the
movement's own transaction, so a movement never commits without its entry.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from franchise_backend.app.models.audit_log import AuditLog
from franchise_backend.app.models.ledger_enums import LedgerKind


class AuditAction:
    """Standardized audit action constants."""
    BANK_MOVEMENT_RECORDED = "BANK_MOVEMENT_RECORDED"
    CASH_MOVEMENT_RECORDED = "CASH_MOVEMENT_RECORDED"
    INVENTORY_MOVEMENT_RECORDED = "INVENTORY_MOVEMENT_RECORDED"
    MOVEMENT_REJECTED = "MOVEMENT_REJECTED"
    LEDGER_RECONCILED = "LEDGER_RECONCILED"


RECORDED_ACTIONS = {
    LedgerKind.BANK_ACCOUNT: AuditAction.BANK_MOVEMENT_RECORDED,
    LedgerKind.PETTY_CASH: AuditAction.CASH_MOVEMENT_RECORDED,
    LedgerKind.INVENTORY: AuditAction.INVENTORY_MOVEMENT_RECORDED,
}


async def stage_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    ledger_kind: Optional[LedgerKind] = None,
    entity_ref: Optional[Any] = None,
    franchise_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Add one audit entry to the current transaction without committing.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_username: Username of actor
        ledger_kind: Ledger family touched
        entity_ref: Entity id or stock key
        franchise_id: Franchise owning the entity
        metadata: Additional context as JSON

    Returns:
        Flushed AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        ledger_kind=LedgerKind(ledger_kind).value if ledger_kind else None,
        entity_ref=str(entity_ref) if entity_ref is not None else None,
        franchise_id=franchise_id,
        meta_data=metadata,
    )

    db.add(audit_log)
    await db.flush()

    return audit_log


async def log_event(db: AsyncSession, action: str, **fields) -> AuditLog:
    """Write one audit entry and commit it on its own."""
    audit_log = await stage_event(db, action, **fields)
    await db.commit()
    await db.refresh(audit_log)
    return audit_log


async def log_movement_recorded(
    db: AsyncSession,
    current_user: dict,
    kind: LedgerKind,
    entity_ref: Any,
    franchise_id: int,
    movement,
) -> AuditLog:
    """
    Audit a movement the balance mutator has flushed but not yet committed.

    Meant to run as the mutator's `on_recorded` hook.
    """
    return await stage_event(
        db,
        RECORDED_ACTIONS[LedgerKind(kind)],
        actor_id=current_user.get("user_id"),
        actor_username=current_user.get("sub"),
        ledger_kind=kind,
        entity_ref=entity_ref,
        franchise_id=franchise_id,
        metadata={
            "movement_id": movement.id,
            "balance_after": str(movement.balance_after),
        },
    )


async def log_movement_rejected(
    db: AsyncSession,
    current_user: dict,
    kind: LedgerKind,
    entity_ref: Any,
    franchise_id: Optional[int],
    reason: str,
    details: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Audit a movement refused by a business rule (e.g. insufficient stock)."""
    return await log_event(
        db,
        AuditAction.MOVEMENT_REJECTED,
        actor_id=current_user.get("user_id"),
        actor_username=current_user.get("sub"),
        ledger_kind=kind,
        entity_ref=entity_ref,
        franchise_id=franchise_id,
        metadata={"reason": reason, **(details or {})},
    )
