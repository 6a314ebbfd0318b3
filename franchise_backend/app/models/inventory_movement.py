"""
Inventory Movement database model.

Immutable entry/exit record against a (product, franchise) stock line.
"""

from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Enum,
    CheckConstraint, ForeignKeyConstraint, Index,
)
from franchise_backend.app.db.session import Base
from franchise_backend.app.models.ledger_enums import InventoryMovementType


class InventoryMovement(Base):
    """
    Inventory Movement model.

    `quantity` is always positive; the direction is `movement_type`.
    `user_id` is the acting user and is mandatory.
    """
    __tablename__ = "inventory_movements"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    movement_type = Column(Enum(InventoryMovementType), nullable=False)
    quantity = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    occurred_at = Column(DateTime, nullable=False)
    observation = Column(String(200), nullable=False)

    product_id = Column(Integer, nullable=False)
    franchise_id = Column(Integer, nullable=False)
    user_id = Column(
        Integer,
        ForeignKey("users.id", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=False,
    )

    __table_args__ = (
        ForeignKeyConstraint(
            ["product_id", "franchise_id"],
            ["product_stock.product_id", "product_stock.franchise_id"],
            onupdate="CASCADE",
            ondelete="RESTRICT",
        ),
        CheckConstraint("quantity > 0", name="ck_inventory_movements_positive_quantity"),
        CheckConstraint("balance_after >= 0", name="ck_inventory_movements_non_negative"),
        Index("ix_inventory_movements_line_time", "product_id", "franchise_id", "occurred_at"),
    )

    def __repr__(self):
        return (
            f"<InventoryMovement(id={self.id}, type='{self.movement_type.value}', "
            f"quantity={self.quantity}, balance_after={self.balance_after})>"
        )
