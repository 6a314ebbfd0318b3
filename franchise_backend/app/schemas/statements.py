"""
Statement and reconciliation schemas.

A statement is a recomputed running-balance view over a date window;
amounts are integers for inventory and 2-decimal values for money.
"""

from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Union
from franchise_backend.app.models.ledger_enums import (
    BankMovementType,
    Currency,
    InventoryMovementType,
    LedgerKind,
)

Amount = Union[int, Decimal]


class StatementRequest(BaseModel):
    """Inclusive date window; the end date covers the whole day."""
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_window(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class BankStatementRequest(StatementRequest):
    movement_types: Optional[List[BankMovementType]] = None


class InventoryStatementRequest(StatementRequest):
    product_id: int = Field(..., gt=0)
    franchise_id: int = Field(..., gt=0)
    movement_types: Optional[List[InventoryMovementType]] = None


class StatementEntity(BaseModel):
    """Descriptive header of the entity the statement covers."""
    kind: LedgerKind
    reference: str
    franchise_id: int
    name: str
    currency: Optional[Currency] = None
    bank_name: Optional[str] = None
    franchise_name: Optional[str] = None


class StatementLine(BaseModel):
    movement_id: int
    occurred_at: datetime
    movement_type: Optional[str] = None
    reference_number: Optional[str] = None
    observation: str
    income: Amount
    expense: Amount
    running_balance: Amount
    balance_after: Amount


class StatementTotals(BaseModel):
    total_income: Amount
    total_expense: Amount
    final_balance: Amount


class StatementFilters(BaseModel):
    start: datetime
    end: datetime
    movement_types: List[str] = []


class Statement(BaseModel):
    """Running-balance view. `entity` is None when the entity does not exist."""
    entity: Optional[StatementEntity] = None
    filters: StatementFilters
    items: List[StatementLine] = []
    totals: StatementTotals


class ReconciliationResponse(BaseModel):
    """Outcome of folding an entity's movement log against its stored balance."""
    kind: LedgerKind
    reference: str
    stored_balance: Amount
    rebuilt_balance: Amount
    last_balance_after: Optional[Amount] = None
    movement_count: int
    is_consistent: bool
    repaired: bool


class ReconcileRequest(BaseModel):
    """Target of a reconciliation run: `entity_id`, or product and franchise for inventory."""
    entity_id: Optional[int] = Field(None, gt=0)
    product_id: Optional[int] = Field(None, gt=0)
    franchise_id: Optional[int] = Field(None, gt=0)
    apply: bool = Field(default=False, description="Rewrite the cached balance when inconsistent")


class StockReportRequest(BaseModel):
    """
    Inventory movements across a set of franchises.

    Both dates are optional; a missing bound leaves the window open. No
    `franchise_ids` means every franchise the caller can see.
    """
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    franchise_ids: Optional[List[int]] = None
    movement_types: Optional[List[InventoryMovementType]] = None

    @model_validator(mode="after")
    def check_window(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        if self.franchise_ids and any(franchise_id <= 0 for franchise_id in self.franchise_ids):
            raise ValueError("franchise_ids must be positive")
        return self


class StockReportLine(BaseModel):
    movement_id: int
    occurred_at: datetime
    product_id: int
    product_name: Optional[str] = None
    franchise_id: int
    franchise_name: Optional[str] = None
    movement_type: InventoryMovementType
    quantity: int
    balance_after: int
    observation: str
    user_name: Optional[str] = None


class StockReportTotals(BaseModel):
    total_entries: int
    total_exits: int
    net_balance: int


class StockReportFilters(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    franchise_ids: List[int] = []
    movement_types: List[str] = []


class StockReport(BaseModel):
    """Movement rows in (occurred_at, id) order with entry/exit totals."""
    filters: StockReportFilters
    items: List[StockReportLine] = []
    totals: StockReportTotals
