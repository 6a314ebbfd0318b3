"""
Read-side helpers for the ledger store: listings, single lookups and
stock levels. Nothing here writes.
"""

from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from franchise_backend.app.domain.ledger.deltas import StockKey
from franchise_backend.app.domain.ledger.errors import LedgerEntityNotFoundError
from franchise_backend.app.domain.ledger.filters import MovementFilter
from franchise_backend.app.domain.ledger.ledgers import EntityId, ledger_for
from franchise_backend.app.models.franchise import Franchise
from franchise_backend.app.models.ledger_enums import LedgerKind
from franchise_backend.app.models.product import Product, ProductStock


async def list_movements(
    db: AsyncSession,
    kind: LedgerKind,
    movement_filter: MovementFilter,
    limit: int = 10,
    offset: int = 0,
) -> List:
    """Movements matching the filter, newest first."""
    ledger = ledger_for(kind)
    stmt = (
        movement_filter.select(ledger)
        .order_by(ledger.movement.occurred_at.desc(), ledger.movement.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_movement(db: AsyncSession, kind: LedgerKind, movement_id: int) -> Tuple[object, int]:
    """Return (movement, owning franchise id)."""
    ledger = ledger_for(kind)
    result = await db.execute(
        select(ledger.movement, ledger.movement_franchise_column)
        .select_from(ledger.movement)
        .join(ledger.entity, ledger.join_condition())
        .where(ledger.movement.id == movement_id)
    )
    row = result.first()
    if row is None:
        raise LedgerEntityNotFoundError(f"{ledger.label} movement", movement_id)
    return row[0], row[1]


async def get_entity_franchise(db: AsyncSession, kind: LedgerKind, entity_id: EntityId) -> int:
    """
    Franchise that owns a ledger entity.

    Stock lines are created on first movement, so for inventory the owner is
    the franchise in the key once product and franchise are known to exist.
    """
    if LedgerKind(kind) == LedgerKind.INVENTORY:
        await require_stock_owners(db, entity_id)
        return entity_id.franchise_id

    ledger = ledger_for(kind)
    result = await db.execute(
        select(ledger.entity_franchise_column).where(ledger.entity_clause(ledger.coerce_id(entity_id)))
    )
    franchise_id = result.scalar_one_or_none()
    if franchise_id is None:
        raise LedgerEntityNotFoundError(ledger.label, entity_id)
    return franchise_id


async def get_stock_level(db: AsyncSession, key: StockKey) -> int:
    """Current stock of a product at a franchise; 0 when no line exists yet."""
    await require_stock_owners(db, key)
    result = await db.execute(
        select(ProductStock.current_stock).where(
            ProductStock.product_id == key.product_id,
            ProductStock.franchise_id == key.franchise_id,
        )
    )
    stock: Optional[int] = result.scalar_one_or_none()
    return int(stock or 0)


async def require_stock_owners(db: AsyncSession, key: StockKey) -> None:
    if await db.get(Product, key.product_id) is None:
        raise LedgerEntityNotFoundError("Product", key.product_id)
    if await db.get(Franchise, key.franchise_id) is None:
        raise LedgerEntityNotFoundError("Franchise", key.franchise_id)
