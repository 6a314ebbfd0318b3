"""
User database model.

Users act on the ledgers; the role and franchise drive the access scope.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from franchise_backend.app.db.session import Base
from franchise_backend.app.models.enums import UserRole


class User(Base):
    """
    User model.

    Credentials are managed outside this service; only the identity,
    role and franchise membership are stored here.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(120), unique=True, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    role = Column(Enum(UserRole), default=UserRole.VISIT_REGISTRAR, nullable=False)

    # Coordinators belong to exactly one franchise
    franchise_id = Column(
        Integer,
        ForeignKey("franchises.id", onupdate="CASCADE", ondelete="RESTRICT"),
        index=True,
        nullable=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role.value}')>"
