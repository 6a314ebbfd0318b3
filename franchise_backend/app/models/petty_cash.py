"""
Petty Cash database model.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Enum
from franchise_backend.app.db.session import Base
from franchise_backend.app.models.ledger_enums import Currency


class PettyCash(Base):
    """
    Petty cash box of a franchise.

    `balance` is written only by the balance mutator.
    """
    __tablename__ = "petty_cash"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(Enum(Currency), nullable=False)

    franchise_id = Column(
        Integer,
        ForeignKey("franchises.id", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    responsible_id = Column(
        Integer,
        ForeignKey("volunteers.id", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=False,
    )

    def __repr__(self):
        return f"<PettyCash(id={self.id}, code='{self.code}', balance={self.balance})>"
