"""
Bank Movement database model.

Immutable, append-only record of a change to a bank account balance.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Enum, CheckConstraint, Index
from franchise_backend.app.db.session import Base
from franchise_backend.app.models.ledger_enums import BankMovementType


class BankMovement(Base):
    """
    Bank Movement model.

    `balance_after` is computed server-side from the locked account row.
    NO updates or deletions allowed.
    """
    __tablename__ = "bank_movements"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    occurred_at = Column(DateTime, nullable=False)
    reference_number = Column(String(20), nullable=False)
    movement_type = Column(Enum(BankMovementType), nullable=False)
    observation = Column(String(30), nullable=False)

    # Financials
    income = Column(Numeric(12, 2), nullable=False, default=0)
    expense = Column(Numeric(12, 2), nullable=False, default=0)
    balance_after = Column(Numeric(12, 2), nullable=False)

    bank_account_id = Column(
        Integer,
        ForeignKey("bank_accounts.id", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("income >= 0 AND expense >= 0", name="ck_bank_movements_non_negative"),
        CheckConstraint("income > 0 OR expense > 0", name="ck_bank_movements_non_zero"),
        Index("ix_bank_movements_account_time", "bank_account_id", "occurred_at"),
    )

    def __repr__(self):
        return f"<BankMovement(id={self.id}, account={self.bank_account_id}, balance_after={self.balance_after})>"
