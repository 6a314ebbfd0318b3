"""
Inventory stock report over a set of franchises.

Lists every inventory movement matching a filter, named by product,
franchise and acting user, and totals entries against exits.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from franchise_backend.app.domain.ledger.filters import MovementFilter
from franchise_backend.app.domain.ledger.ledgers import ledger_for
from franchise_backend.app.models.franchise import Franchise
from franchise_backend.app.models.inventory_movement import InventoryMovement
from franchise_backend.app.models.ledger_enums import LedgerKind
from franchise_backend.app.models.product import Product
from franchise_backend.app.models.user import User
from franchise_backend.app.schemas.statements import (
    StockReport,
    StockReportFilters,
    StockReportLine,
    StockReportTotals,
)


def report_filters(movement_filter: MovementFilter) -> StockReportFilters:
    franchise_ids = set(movement_filter.franchise_ids)
    if movement_filter.franchise_id is not None:
        # A scoped caller only ever sees its own franchise
        franchise_ids = {movement_filter.franchise_id}
    date_range = movement_filter.date_range
    return StockReportFilters(
        start=date_range.start if date_range else None,
        end=date_range.end if date_range else None,
        franchise_ids=sorted(franchise_ids),
        movement_types=[getattr(t, "value", t) for t in movement_filter.movement_types],
    )


async def build_stock_report(db: AsyncSession, movement_filter: MovementFilter) -> StockReport:
    """
    Build the stock report for the movements matching `movement_filter`.

    Totals come from the listed rows only: entries and exits are summed by
    direction and `net_balance` is their difference.
    """
    ledger = ledger_for(LedgerKind.INVENTORY)
    ledger.check_movement_types(movement_filter.movement_types)

    stmt = (
        movement_filter.select(ledger)
        .add_columns(Product.name, Franchise.name, User.username)
        .outerjoin(Product, Product.id == InventoryMovement.product_id)
        .outerjoin(Franchise, Franchise.id == InventoryMovement.franchise_id)
        .outerjoin(User, User.id == InventoryMovement.user_id)
        .order_by(InventoryMovement.occurred_at.asc(), InventoryMovement.id.asc())
    )
    result = await db.execute(stmt)

    lines = []
    total_entries = 0
    total_exits = 0
    for movement, product_name, franchise_name, user_name in result.all():
        entries, exits = ledger.amounts(movement)
        total_entries += entries
        total_exits += exits
        lines.append(StockReportLine(
            movement_id=movement.id,
            occurred_at=movement.occurred_at,
            product_id=movement.product_id,
            product_name=product_name,
            franchise_id=movement.franchise_id,
            franchise_name=franchise_name,
            movement_type=movement.movement_type,
            quantity=movement.quantity,
            balance_after=movement.balance_after,
            observation=movement.observation,
            user_name=user_name,
        ))

    return StockReport(
        filters=report_filters(movement_filter),
        items=lines,
        totals=StockReportTotals(
            total_entries=total_entries,
            total_exits=total_exits,
            net_balance=total_entries - total_exits,
        ),
    )
