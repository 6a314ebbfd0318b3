"""
Responsible parties for monetary ledger entities.

Bank accounts are held by an account responsible identified by document;
petty cash boxes are kept by a volunteer.
"""

from sqlalchemy import Column, Integer, String
from franchise_backend.app.db.session import Base


class AccountResponsible(Base):
    """Holder of a bank account."""
    __tablename__ = "account_responsibles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    document_type = Column(String(2), nullable=False)
    document_number = Column(String(12), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)


class Volunteer(Base):
    """Volunteer (only the fields the ledger references)."""
    __tablename__ = "volunteers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)

    def __repr__(self):
        return f"<Volunteer(id={self.id}, name='{self.first_name} {self.last_name}')>"
