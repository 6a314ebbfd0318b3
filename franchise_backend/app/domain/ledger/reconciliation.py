"""
Ledger reconciliation.

The cached balance on each entity must equal the fold of its movement log
and the `balance_after` of its latest movement. `rebuild_balance` checks
that and, when asked, rewrites the cached value under a row lock.
"""

from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from franchise_backend.app.domain.ledger.errors import (
    LedgerEntityNotFoundError,
    LedgerError,
    TransactionFailureError,
)
from franchise_backend.app.domain.ledger.ledgers import EntityId, ledger_for
from franchise_backend.app.models.ledger_enums import LedgerKind


@dataclass
class ReconciliationResult:
    stored_balance: Any
    rebuilt_balance: Any
    last_balance_after: Optional[Any]
    movement_count: int
    is_consistent: bool
    repaired: bool = False


async def rebuild_balance(
    db: AsyncSession,
    kind: LedgerKind,
    entity_id: EntityId,
    apply: bool = False,
) -> ReconciliationResult:
    """
    Fold the full movement log of one entity in insertion order.

    With `apply=True` an inconsistent cached balance is overwritten with the
    folded value and committed; otherwise nothing is written.
    """
    ledger = ledger_for(kind)
    entity_id = ledger.coerce_id(entity_id)

    try:
        stmt = select(ledger.balance_column).where(ledger.entity_clause(entity_id))
        if apply:
            stmt = stmt.with_for_update()
        stored = (await db.execute(stmt)).scalar_one_or_none()
        if stored is None:
            raise LedgerEntityNotFoundError(ledger.label, entity_id)
        stored = ledger.normalize(stored)

        result = await db.execute(
            select(ledger.movement)
            .where(ledger.movement_clause(entity_id))
            .order_by(ledger.movement.id.asc())
        )
        movements = result.scalars().all()

        rebuilt = ledger.zero()
        for movement in movements:
            income, expense = ledger.amounts(movement)
            rebuilt = rebuilt + income - expense
        rebuilt = ledger.normalize(rebuilt)
        last_balance_after = ledger.normalize(movements[-1].balance_after) if movements else None

        is_consistent = stored == rebuilt and (last_balance_after is None or last_balance_after == rebuilt)
        repaired = False

        if apply and stored != rebuilt:
            await db.execute(
                update(ledger.entity)
                .where(ledger.entity_clause(entity_id))
                .values({ledger.balance_attr: rebuilt})
                .execution_options(synchronize_session=False)
            )
            repaired = True

        if apply:
            await db.commit()
    except LedgerError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        raise TransactionFailureError(f"{ledger.label} reconciliation failed", cause=exc) from exc

    return ReconciliationResult(
        stored_balance=stored,
        rebuilt_balance=rebuilt,
        last_balance_after=last_balance_after,
        movement_count=len(movements),
        is_consistent=is_consistent,
        repaired=repaired,
    )
