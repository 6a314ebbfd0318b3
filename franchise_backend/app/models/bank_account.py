"""
Bank and Bank Account database models.

A bank account is a monetary ledger entity: `balance` is the cached
projection of its movement log and is only written by the balance mutator.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Enum
from franchise_backend.app.db.session import Base
from franchise_backend.app.models.ledger_enums import Currency


class Bank(Base):
    """Bank catalog entry, keyed by its 4-digit code."""
    __tablename__ = "banks"

    code = Column(String(4), primary_key=True)
    name = Column(String(100), nullable=False)


class BankAccount(Base):
    """
    Bank Account model.

    Owned by exactly one franchise. Balance has 2-decimal precision.
    """
    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    account_number = Column(String(20), unique=True, nullable=False)
    currency = Column(Enum(Currency), nullable=False)
    balance = Column(Numeric(12, 2), nullable=False, default=0)

    responsible_id = Column(
        Integer,
        ForeignKey("account_responsibles.id", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=False,
    )
    bank_code = Column(
        String(4),
        ForeignKey("banks.code", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=True,
    )
    franchise_id = Column(
        Integer,
        ForeignKey("franchises.id", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    def __repr__(self):
        return f"<BankAccount(id={self.id}, number='{self.account_number}', balance={self.balance})>"
