"""
Franchise database model.

A franchise is the tenant boundary: every ledger entity belongs to one.
"""

from sqlalchemy import Column, Integer, String, Boolean
from franchise_backend.app.db.session import Base


class Franchise(Base):
    """Franchise model."""
    __tablename__ = "franchises"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    rif = Column(String(12), nullable=False)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Franchise(id={self.id}, name='{self.name}')>"
