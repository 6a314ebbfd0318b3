"""
Ledger movement Pydantic schemas.

Request models only carry the delta and descriptive fields; balances are
always computed server-side.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from franchise_backend.app.models.ledger_enums import BankMovementType, InventoryMovementType


class BankMovementCreate(BaseModel):
    """Schema for recording a bank account movement."""
    bank_account_id: int = Field(..., gt=0)
    movement_type: BankMovementType
    reference_number: str = Field(..., min_length=1, max_length=20, description="Bank reference")
    observation: str = Field(..., min_length=1, max_length=30)
    income: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    expense: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    occurred_at: Optional[datetime] = Field(None, description="Defaults to the recording time")


class CashMovementCreate(BaseModel):
    """Schema for recording a petty cash movement."""
    petty_cash_id: int = Field(..., gt=0)
    observation: str = Field(..., min_length=1, max_length=30)
    income: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    expense: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    occurred_at: Optional[datetime] = None


class InventoryMovementCreate(BaseModel):
    """Schema for recording an inventory entry or exit."""
    product_id: int = Field(..., gt=0)
    franchise_id: int = Field(..., gt=0)
    movement_type: InventoryMovementType
    quantity: int = Field(..., gt=0, description="Units moved, always positive")
    observation: str = Field(..., min_length=1, max_length=200)
    occurred_at: Optional[datetime] = None


class BankMovementResponse(BaseModel):
    id: int
    bank_account_id: int
    occurred_at: datetime
    movement_type: BankMovementType
    reference_number: str
    observation: str
    income: Decimal
    expense: Decimal
    balance_after: Decimal

    class Config:
        from_attributes = True


class CashMovementResponse(BaseModel):
    id: int
    petty_cash_id: int
    occurred_at: datetime
    observation: str
    income: Decimal
    expense: Decimal
    balance_after: Decimal

    class Config:
        from_attributes = True


class InventoryMovementResponse(BaseModel):
    id: int
    product_id: int
    franchise_id: int
    user_id: int
    movement_type: InventoryMovementType
    quantity: int
    balance_after: int
    occurred_at: datetime
    observation: str

    class Config:
        from_attributes = True


class BankMovementListResponse(BaseModel):
    """Schema for a window of bank movements, newest first."""
    items: List[BankMovementResponse]
    limit: int
    offset: int


class CashMovementListResponse(BaseModel):
    items: List[CashMovementResponse]
    limit: int
    offset: int


class InventoryMovementListResponse(BaseModel):
    items: List[InventoryMovementResponse]
    limit: int
    offset: int


class StockLevelResponse(BaseModel):
    """Current stock of one product at one franchise."""
    product_id: int
    franchise_id: int
    current_stock: int
