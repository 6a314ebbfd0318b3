"""
Value objects handed to the ledger core.

Deltas and metadata are validated here, before any database access,
so an invalid request never opens a transaction.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from franchise_backend.app.domain.ledger.errors import InvalidDeltaError
from franchise_backend.app.models.ledger_enums import (
    BankMovementType,
    InventoryMovementType,
    LedgerKind,
)

CENTS = Decimal("0.01")
# Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")

OBSERVATION_MAX_LENGTH = {
    LedgerKind.BANK_ACCOUNT: 30,
    LedgerKind.PETTY_CASH: 30,
    LedgerKind.INVENTORY: 200,
}
REFERENCE_MAX_LENGTH = 20


def to_amount(value, field_name: str) -> Decimal:
    """Coerce to a 2-decimal monetary amount, rejecting finer precision."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvalidDeltaError(f"{field_name} must be a number", field=field_name) from exc

    if not amount.is_finite():
        raise InvalidDeltaError(f"{field_name} must be a finite number", field=field_name)
    if amount < 0:
        raise InvalidDeltaError(f"{field_name} cannot be negative", field=field_name)
    if amount != amount.quantize(CENTS):
        raise InvalidDeltaError(f"{field_name} supports at most 2 decimal places", field=field_name)
    if amount > MAX_AMOUNT:
        raise InvalidDeltaError(f"{field_name} exceeds the maximum amount", field=field_name)
    return amount.quantize(CENTS)


@dataclass(frozen=True)
class StockKey:
    """Composite identity of a product stock line."""
    product_id: int
    franchise_id: int

    def __str__(self) -> str:
        return f"{self.product_id}:{self.franchise_id}"


@dataclass(frozen=True)
class MonetaryDelta:
    """Income/expense pair for bank account and petty cash movements."""
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    def validated(self) -> "MonetaryDelta":
        income = to_amount(self.income, "income")
        expense = to_amount(self.expense, "expense")
        if income == 0 and expense == 0:
            raise InvalidDeltaError("Either income or expense must be greater than 0")
        return MonetaryDelta(income=income, expense=expense)

    @property
    def signed(self) -> Decimal:
        return self.income - self.expense


@dataclass(frozen=True)
class InventoryDelta:
    """Entry or exit of a positive number of units."""
    direction: InventoryMovementType
    quantity: int

    def validated(self) -> "InventoryDelta":
        try:
            direction = InventoryMovementType(self.direction)
        except ValueError as exc:
            raise InvalidDeltaError(f"Unknown movement direction {self.direction!r}", field="direction") from exc
        # bool is an int subclass
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise InvalidDeltaError("quantity must be an integer", field="quantity")
        if self.quantity <= 0:
            raise InvalidDeltaError("quantity must be greater than 0", field="quantity")
        return InventoryDelta(direction=direction, quantity=self.quantity)

    @property
    def signed(self) -> int:
        if self.direction == InventoryMovementType.EXIT:
            return -self.quantity
        return self.quantity


Delta = Union[MonetaryDelta, InventoryDelta]


@dataclass(frozen=True)
class MovementMetadata:
    """
    Descriptive fields stored with a movement.

    `movement_type` and `reference_number` are required for bank movements;
    `actor_id` is required for inventory movements. `occurred_at` defaults
    to the insertion time.
    """
    observation: str
    movement_type: Optional[BankMovementType] = None
    reference_number: Optional[str] = None
    actor_id: Optional[int] = None
    occurred_at: Optional[datetime] = field(default=None)

    def validate_for(self, kind: LedgerKind) -> None:
        observation = (self.observation or "").strip()
        if not observation:
            raise InvalidDeltaError("observation is required", field="observation")
        if len(observation) > OBSERVATION_MAX_LENGTH[kind]:
            raise InvalidDeltaError(
                f"observation exceeds {OBSERVATION_MAX_LENGTH[kind]} characters",
                field="observation",
            )

        if kind == LedgerKind.BANK_ACCOUNT:
            if self.movement_type is None:
                raise InvalidDeltaError("movement_type is required for bank movements", field="movement_type")
            try:
                BankMovementType(self.movement_type)
            except ValueError as exc:
                raise InvalidDeltaError(f"Unknown movement type {self.movement_type!r}", field="movement_type") from exc
            reference = (self.reference_number or "").strip()
            if not reference or len(reference) > REFERENCE_MAX_LENGTH:
                raise InvalidDeltaError(
                    f"reference_number must be 1-{REFERENCE_MAX_LENGTH} characters",
                    field="reference_number",
                )

        if kind == LedgerKind.INVENTORY and self.actor_id is None:
            raise InvalidDeltaError("actor_id is required for inventory movements", field="actor_id")
