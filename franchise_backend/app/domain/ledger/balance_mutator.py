"""
Balance Mutator (Domain Logic).

The only writer of ledger balance columns. Each call validates a delta,
locks the target entity, shifts its balance with one relative statement,
appends the movement carrying the resulting `balance_after`, and commits.
Either all of that persists or none of it does.
"""

from datetime import datetime
from typing import Awaitable, Callable, Optional, Union

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from franchise_backend.app.core.timeutils import to_naive_utc, utcnow
from franchise_backend.app.domain.ledger.deltas import (
    Delta,
    InventoryDelta,
    MonetaryDelta,
    MovementMetadata,
    StockKey,
)
from franchise_backend.app.domain.ledger.errors import (
    InsufficientBalanceError,
    InvalidDeltaError,
    LedgerEntityNotFoundError,
    LedgerError,
    TransactionFailureError,
)
from franchise_backend.app.domain.ledger.ledgers import EntityId, LedgerTables, ledger_for
from franchise_backend.app.domain.ledger.queries import require_stock_owners
from franchise_backend.app.models.bank_movement import BankMovement
from franchise_backend.app.models.cash_movement import CashMovement
from franchise_backend.app.models.inventory_movement import InventoryMovement
from franchise_backend.app.models.ledger_enums import BankMovementType, LedgerKind
from franchise_backend.app.models.product import ProductStock

Movement = Union[BankMovement, CashMovement, InventoryMovement]
RecordedHook = Callable[[Movement], Awaitable[None]]


class BalanceMutator:

    @staticmethod
    def validate(ledger: LedgerTables, delta: Delta, metadata: MovementMetadata) -> Delta:
        """Reject malformed input before the store is touched."""
        if ledger.kind == LedgerKind.INVENTORY:
            if not isinstance(delta, InventoryDelta):
                raise InvalidDeltaError("Inventory movements take an InventoryDelta", field="delta")
        elif not isinstance(delta, MonetaryDelta):
            raise InvalidDeltaError(f"{ledger.label} movements take a MonetaryDelta", field="delta")

        delta = delta.validated()
        metadata.validate_for(ledger.kind)
        return delta

    @staticmethod
    async def ensure_stock_line(db: AsyncSession, key: StockKey) -> None:
        """
        Create a zero stock line for (product, franchise) if none exists.

        Missing product or franchise raises LedgerEntityNotFoundError.
        """
        await require_stock_owners(db, key)

        values = {"product_id": key.product_id, "franchise_id": key.franchise_id, "current_stock": 0}
        dialect = db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(ProductStock).values(**values).on_conflict_do_nothing()
        elif dialect == "sqlite":
            stmt = sqlite.insert(ProductStock).values(**values).on_conflict_do_nothing()
        else:
            existing = await db.execute(
                select(ProductStock.product_id).where(
                    ProductStock.product_id == key.product_id,
                    ProductStock.franchise_id == key.franchise_id,
                )
            )
            if existing.first() is not None:
                return
            stmt = ProductStock.__table__.insert().values(**values)
        await db.execute(stmt)

    @staticmethod
    async def lock_balance(db: AsyncSession, ledger: LedgerTables, entity_id: EntityId):
        """Locking read of the current balance; None when the entity is absent."""
        result = await db.execute(
            select(ledger.balance_column)
            .where(ledger.entity_clause(entity_id))
            .with_for_update()
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def shift_balance(db: AsyncSession, ledger: LedgerTables, entity_id: EntityId, signed_delta):
        """
        Apply `balance = balance + delta` and return the new balance.

        Stock updates carry a non-negativity guard: None means the guard
        rejected the change and nothing was written.
        """
        conditions = [ledger.entity_clause(entity_id)]
        if ledger.kind == LedgerKind.INVENTORY:
            conditions.append(ledger.balance_column + signed_delta >= 0)

        result = await db.execute(
            update(ledger.entity)
            .where(*conditions)
            .values({ledger.balance_attr: ledger.balance_column + signed_delta})
            .returning(ledger.balance_column)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def resolve_occurred_at(
        db: AsyncSession,
        ledger: LedgerTables,
        entity_id: EntityId,
        metadata: MovementMetadata,
    ) -> datetime:
        """
        Timestamp for the new movement, never earlier than the entity's newest one.

        Must run after `lock_balance` so no other writer can slip a movement
        in between. A client timestamp older than the newest movement raises
        InvalidDeltaError; the server default is clamped forward instead.
        """
        result = await db.execute(
            select(func.max(ledger.movement.occurred_at)).where(ledger.movement_clause(entity_id))
        )
        latest = result.scalar_one_or_none()

        if metadata.occurred_at is None:
            now = utcnow()
            return latest if latest is not None and latest > now else now

        occurred_at = to_naive_utc(metadata.occurred_at)
        if latest is not None and occurred_at < latest:
            raise InvalidDeltaError(
                f"occurred_at {occurred_at.isoformat()} precedes the latest movement ({latest.isoformat()})",
                field="occurred_at",
            )
        return occurred_at

    @staticmethod
    def build_movement(
        ledger: LedgerTables,
        entity_id: EntityId,
        delta: Delta,
        metadata: MovementMetadata,
        balance_after,
        occurred_at: datetime,
    ) -> Movement:
        observation = metadata.observation.strip()

        if ledger.kind == LedgerKind.INVENTORY:
            return InventoryMovement(
                movement_type=delta.direction,
                quantity=delta.quantity,
                balance_after=ledger.normalize(balance_after),
                occurred_at=occurred_at,
                observation=observation,
                product_id=entity_id.product_id,
                franchise_id=entity_id.franchise_id,
                user_id=metadata.actor_id,
            )

        if ledger.kind == LedgerKind.BANK_ACCOUNT:
            return BankMovement(
                occurred_at=occurred_at,
                reference_number=metadata.reference_number.strip(),
                movement_type=BankMovementType(metadata.movement_type),
                observation=observation,
                income=delta.income,
                expense=delta.expense,
                balance_after=ledger.normalize(balance_after),
                bank_account_id=entity_id,
            )

        return CashMovement(
            occurred_at=occurred_at,
            observation=observation,
            income=delta.income,
            expense=delta.expense,
            balance_after=ledger.normalize(balance_after),
            petty_cash_id=entity_id,
        )

    @staticmethod
    async def apply(
        db: AsyncSession,
        kind: LedgerKind,
        entity_id: EntityId,
        delta: Delta,
        metadata: MovementMetadata,
        on_recorded: Optional[RecordedHook] = None,
    ) -> Movement:
        """
        Record one movement and update the entity balance atomically.

        Flow:
        1. Validate delta and metadata (InvalidDeltaError, no store access)
        2. Create the stock line lazily (inventory only)
        3. Lock the entity row (LedgerEntityNotFoundError if absent)
        4. Resolve the timestamp against the newest movement (InvalidDeltaError if back-dated)
        5. Relative balance update (InsufficientBalanceError on a rejected exit)
        6. Insert the movement, run `on_recorded` in the same transaction, commit

        Args:
            db: Database session; this call commits or rolls it back
            kind: Ledger family of the target entity
            entity_id: Entity id, or StockKey for inventory
            delta: MonetaryDelta or InventoryDelta
            metadata: Descriptive movement fields
            on_recorded: Awaited with the flushed movement before commit; rows
                it adds commit or roll back together with the movement

        Returns:
            The persisted movement
        """
        ledger = ledger_for(kind)
        entity_id = ledger.coerce_id(entity_id)
        delta = BalanceMutator.validate(ledger, delta, metadata)

        try:
            if ledger.kind == LedgerKind.INVENTORY:
                await BalanceMutator.ensure_stock_line(db, entity_id)

            current = await BalanceMutator.lock_balance(db, ledger, entity_id)
            if current is None:
                raise LedgerEntityNotFoundError(ledger.label, entity_id)

            occurred_at = await BalanceMutator.resolve_occurred_at(db, ledger, entity_id, metadata)

            new_balance = await BalanceMutator.shift_balance(db, ledger, entity_id, delta.signed)
            if new_balance is None:
                raise InsufficientBalanceError(current_balance=int(current), requested=delta.quantity)

            movement = BalanceMutator.build_movement(ledger, entity_id, delta, metadata, new_balance, occurred_at)
            db.add(movement)
            await db.flush()
            if on_recorded is not None:
                await on_recorded(movement)
                await db.flush()
            await db.commit()
        except LedgerError:
            await db.rollback()
            raise
        except SQLAlchemyError as exc:
            await db.rollback()
            raise TransactionFailureError(f"{ledger.label} movement could not be committed", cause=exc) from exc

        return movement


async def apply_movement(
    db: AsyncSession,
    kind: LedgerKind,
    entity_id: EntityId,
    delta: Delta,
    metadata: MovementMetadata,
    on_recorded: Optional[RecordedHook] = None,
) -> Movement:
    return await BalanceMutator.apply(db, kind, entity_id, delta, metadata, on_recorded)


async def current_balance(db: AsyncSession, kind: LedgerKind, entity_id: EntityId) -> Optional[object]:
    """Committed balance of an entity, or None if it does not exist."""
    ledger = ledger_for(kind)
    result = await db.execute(
        select(ledger.balance_column).where(ledger.entity_clause(ledger.coerce_id(entity_id)))
    )
    return ledger.normalize(result.scalar_one_or_none())
