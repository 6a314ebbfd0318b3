"""
Audit Log Database Model.

Tracks who recorded which ledger movement, and reconciliation runs.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from franchise_backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for ledger activity.

    Events logged:
    - BANK_MOVEMENT_RECORDED / CASH_MOVEMENT_RECORDED / INVENTORY_MOVEMENT_RECORDED
    - MOVEMENT_REJECTED (business-rule rejections such as insufficient stock)
    - LEDGER_RECONCILED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Which ledger entity was touched
    ledger_kind = Column(String(20), nullable=True)
    entity_ref = Column(String(50), nullable=True)
    franchise_id = Column(Integer, index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username}, entity={self.entity_ref})>"
