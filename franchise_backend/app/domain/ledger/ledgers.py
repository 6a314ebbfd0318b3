"""
Per-kind description of the ledger store.

Each ledger kind pairs a balance-bearing entity table with its movement
log. The mutator, statement builder, listing and reconciliation all work
through this description instead of branching on the kind everywhere.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Tuple, Union

from sqlalchemy import and_

from franchise_backend.app.domain.ledger.deltas import StockKey
from franchise_backend.app.domain.ledger.errors import InvalidDeltaError
from franchise_backend.app.models.bank_account import BankAccount
from franchise_backend.app.models.bank_movement import BankMovement
from franchise_backend.app.models.cash_movement import CashMovement
from franchise_backend.app.models.inventory_movement import InventoryMovement
from franchise_backend.app.models.ledger_enums import InventoryMovementType, LedgerKind
from franchise_backend.app.models.petty_cash import PettyCash
from franchise_backend.app.models.product import ProductStock

EntityId = Union[int, StockKey]
Amount = Union[int, Decimal]


@dataclass(frozen=True)
class LedgerTables:
    """Entity table, movement table and the columns that tie them together."""
    kind: LedgerKind
    label: str
    entity: Any
    movement: Any
    balance_attr: str

    @property
    def balance_column(self):
        return getattr(self.entity, self.balance_attr)

    @property
    def movement_type_column(self):
        return getattr(self.movement, "movement_type", None)

    @property
    def entity_franchise_column(self):
        return self.entity.franchise_id

    @property
    def movement_franchise_column(self):
        """Franchise column reachable from the movement (may need a join)."""
        if self.kind == LedgerKind.INVENTORY:
            return self.movement.franchise_id
        return self.entity.franchise_id

    @property
    def needs_entity_join(self) -> bool:
        return self.kind != LedgerKind.INVENTORY

    def coerce_id(self, entity_id: EntityId) -> EntityId:
        """Normalized entity id; a key of the wrong shape raises InvalidDeltaError."""
        if self.kind == LedgerKind.INVENTORY:
            if not isinstance(entity_id, StockKey):
                raise InvalidDeltaError("inventory ledgers are keyed by StockKey", field="entity_id")
            return entity_id
        if isinstance(entity_id, StockKey):
            raise InvalidDeltaError(f"{self.label} ledgers are keyed by an integer id", field="entity_id")
        try:
            return int(entity_id)
        except (TypeError, ValueError) as exc:
            raise InvalidDeltaError(f"{self.label} id must be an integer", field="entity_id") from exc

    def check_movement_types(self, movement_types) -> None:
        if movement_types and self.movement_type_column is None:
            raise InvalidDeltaError(f"{self.label} movements have no movement type", field="movement_types")

    def entity_clause(self, entity_id: EntityId):
        if self.kind == LedgerKind.INVENTORY:
            return and_(
                ProductStock.product_id == entity_id.product_id,
                ProductStock.franchise_id == entity_id.franchise_id,
            )
        return self.entity.id == entity_id

    def movement_clause(self, entity_id: EntityId):
        if self.kind == LedgerKind.INVENTORY:
            return and_(
                InventoryMovement.product_id == entity_id.product_id,
                InventoryMovement.franchise_id == entity_id.franchise_id,
            )
        if self.kind == LedgerKind.BANK_ACCOUNT:
            return BankMovement.bank_account_id == entity_id
        return CashMovement.petty_cash_id == entity_id

    def join_condition(self):
        if self.kind == LedgerKind.BANK_ACCOUNT:
            return BankMovement.bank_account_id == BankAccount.id
        if self.kind == LedgerKind.PETTY_CASH:
            return CashMovement.petty_cash_id == PettyCash.id
        return and_(
            InventoryMovement.product_id == ProductStock.product_id,
            InventoryMovement.franchise_id == ProductStock.franchise_id,
        )

    def entity_ref(self, movement) -> EntityId:
        """Identity of the entity a stored movement belongs to."""
        if self.kind == LedgerKind.INVENTORY:
            return StockKey(movement.product_id, movement.franchise_id)
        if self.kind == LedgerKind.BANK_ACCOUNT:
            return movement.bank_account_id
        return movement.petty_cash_id

    def amounts(self, movement) -> Tuple[Amount, Amount]:
        """(income, expense) of a stored movement, from its own columns."""
        if self.kind == LedgerKind.INVENTORY:
            if movement.movement_type == InventoryMovementType.ENTRY:
                return movement.quantity, 0
            return 0, movement.quantity
        return Decimal(movement.income), Decimal(movement.expense)

    def zero(self):
        return 0 if self.kind == LedgerKind.INVENTORY else Decimal("0.00")

    def normalize(self, value) -> Optional[Any]:
        if value is None:
            return None
        if self.kind == LedgerKind.INVENTORY:
            return int(value)
        return Decimal(value).quantize(Decimal("0.01"))


LEDGERS = {
    LedgerKind.BANK_ACCOUNT: LedgerTables(
        kind=LedgerKind.BANK_ACCOUNT,
        label="Bank account",
        entity=BankAccount,
        movement=BankMovement,
        balance_attr="balance",
    ),
    LedgerKind.PETTY_CASH: LedgerTables(
        kind=LedgerKind.PETTY_CASH,
        label="Petty cash",
        entity=PettyCash,
        movement=CashMovement,
        balance_attr="balance",
    ),
    LedgerKind.INVENTORY: LedgerTables(
        kind=LedgerKind.INVENTORY,
        label="Product stock",
        entity=ProductStock,
        movement=InventoryMovement,
        balance_attr="current_stock",
    ),
}


def ledger_for(kind: LedgerKind) -> LedgerTables:
    return LEDGERS[LedgerKind(kind)]
