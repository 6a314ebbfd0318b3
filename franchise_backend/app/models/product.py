"""
Product and Product Stock database models.

Stock is tracked per (product, franchise) line and can never go negative.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint
from franchise_backend.app.db.session import Base


class Product(Base):
    """Product catalog entry."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    description = Column(String(200), nullable=False)


class ProductStock(Base):
    """
    Stock line of one product at one franchise.

    Composite identity (product_id, franchise_id).
    """
    __tablename__ = "product_stock"

    product_id = Column(
        Integer,
        ForeignKey("products.id", onupdate="CASCADE", ondelete="CASCADE"),
        primary_key=True,
    )
    franchise_id = Column(
        Integer,
        ForeignKey("franchises.id", onupdate="CASCADE", ondelete="CASCADE"),
        primary_key=True,
    )
    current_stock = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_product_stock_non_negative"),
    )

    def __repr__(self):
        return f"<ProductStock(product={self.product_id}, franchise={self.franchise_id}, stock={self.current_stock})>"
