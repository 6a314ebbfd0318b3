"""
Cash Movement database model.

Immutable, append-only record of a change to a petty cash balance.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, CheckConstraint, Index
from franchise_backend.app.db.session import Base


class CashMovement(Base):
    """
    Cash Movement model.

    NO updates or deletions allowed.
    """
    __tablename__ = "cash_movements"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    occurred_at = Column(DateTime, nullable=False)
    observation = Column(String(30), nullable=False)

    income = Column(Numeric(12, 2), nullable=False, default=0)
    expense = Column(Numeric(12, 2), nullable=False, default=0)
    balance_after = Column(Numeric(12, 2), nullable=False)

    petty_cash_id = Column(
        Integer,
        ForeignKey("petty_cash.id", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("income >= 0 AND expense >= 0", name="ck_cash_movements_non_negative"),
        CheckConstraint("income > 0 OR expense > 0", name="ck_cash_movements_non_zero"),
        Index("ix_cash_movements_box_time", "petty_cash_id", "occurred_at"),
    )

    def __repr__(self):
        return f"<CashMovement(id={self.id}, petty_cash={self.petty_cash_id}, balance_after={self.balance_after})>"
