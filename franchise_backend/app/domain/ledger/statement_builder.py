"""
Statement Builder (Domain Logic).

Replays the stored movements of one entity inside a date window and
recomputes a running balance. Read-only: the same inputs over the same
committed data always produce the same statement.
"""

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from franchise_backend.app.domain.ledger.filters import DateRange, MovementFilter
from franchise_backend.app.domain.ledger.ledgers import EntityId, LedgerTables, ledger_for
from franchise_backend.app.models.bank_account import Bank, BankAccount
from franchise_backend.app.models.franchise import Franchise
from franchise_backend.app.models.ledger_enums import LedgerKind
from franchise_backend.app.models.petty_cash import PettyCash
from franchise_backend.app.models.product import Product
from franchise_backend.app.schemas.statements import (
    Statement,
    StatementEntity,
    StatementFilters,
    StatementLine,
    StatementTotals,
)


class StatementBuilder:

    @staticmethod
    async def describe_entity(db: AsyncSession, ledger: LedgerTables, entity_id: EntityId) -> Optional[StatementEntity]:
        """Statement header, or None when the entity does not exist."""
        if ledger.kind == LedgerKind.BANK_ACCOUNT:
            row = (await db.execute(
                select(BankAccount, Bank.name)
                .outerjoin(Bank, Bank.code == BankAccount.bank_code)
                .where(BankAccount.id == entity_id)
            )).first()
            if row is None:
                return None
            account, bank_name = row
            return StatementEntity(
                kind=ledger.kind,
                reference=str(account.id),
                franchise_id=account.franchise_id,
                name=account.account_number,
                currency=account.currency,
                bank_name=bank_name,
            )

        if ledger.kind == LedgerKind.PETTY_CASH:
            petty_cash = await db.get(PettyCash, entity_id)
            if petty_cash is None:
                return None
            return StatementEntity(
                kind=ledger.kind,
                reference=str(petty_cash.id),
                franchise_id=petty_cash.franchise_id,
                name=f"{petty_cash.code} {petty_cash.name}",
                currency=petty_cash.currency,
            )

        product = await db.get(Product, entity_id.product_id)
        franchise = await db.get(Franchise, entity_id.franchise_id)
        if product is None or franchise is None:
            return None
        return StatementEntity(
            kind=ledger.kind,
            reference=str(entity_id),
            franchise_id=franchise.id,
            name=product.name,
            franchise_name=franchise.name,
        )

    @staticmethod
    def fold(ledger: LedgerTables, movements: Iterable) -> tuple:
        """Running balance from zero over movements already in (occurred_at, id) order."""
        running = ledger.zero()
        total_income = ledger.zero()
        total_expense = ledger.zero()
        lines = []

        for movement in movements:
            income, expense = ledger.amounts(movement)
            running = running + income - expense
            total_income += income
            total_expense += expense
            movement_type = getattr(movement, "movement_type", None)
            lines.append(StatementLine(
                movement_id=movement.id,
                occurred_at=movement.occurred_at,
                movement_type=movement_type.value if movement_type is not None else None,
                reference_number=getattr(movement, "reference_number", None),
                observation=movement.observation,
                income=income,
                expense=expense,
                running_balance=running,
                balance_after=ledger.normalize(movement.balance_after),
            ))

        totals = StatementTotals(
            total_income=total_income,
            total_expense=total_expense,
            final_balance=running,
        )
        return lines, totals

    @staticmethod
    async def build(
        db: AsyncSession,
        kind: LedgerKind,
        entity_id: EntityId,
        date_range: DateRange,
        movement_types: Optional[Iterable] = None,
    ) -> Statement:
        """
        Build the statement of one entity.

        The accumulator starts at 0 at the window start. Income and expense
        come from the stored columns (quantities by direction for inventory).
        An unknown entity yields an empty statement with entity None.
        """
        ledger = ledger_for(kind)
        entity_id = ledger.coerce_id(entity_id)
        types = tuple(movement_types or ())
        ledger.check_movement_types(types)

        filters = StatementFilters(
            start=date_range.start,
            end=date_range.end,
            movement_types=[getattr(t, "value", t) for t in types],
        )

        entity = await StatementBuilder.describe_entity(db, ledger, entity_id)
        if entity is None:
            zero = ledger.zero()
            return Statement(
                entity=None,
                filters=filters,
                items=[],
                totals=StatementTotals(total_income=zero, total_expense=zero, final_balance=zero),
            )

        movement_filter = MovementFilter(entity_id=entity_id, date_range=date_range, movement_types=types)
        result = await db.execute(
            movement_filter.select(ledger)
            .order_by(ledger.movement.occurred_at.asc(), ledger.movement.id.asc())
        )
        lines, totals = StatementBuilder.fold(ledger, result.scalars().all())
        return Statement(entity=entity, filters=filters, items=lines, totals=totals)


async def build_statement(
    db: AsyncSession,
    kind: LedgerKind,
    entity_id: EntityId,
    date_range: DateRange,
    movement_types: Optional[Iterable] = None,
) -> Statement:
    return await StatementBuilder.build(db, kind, entity_id, date_range, movement_types)
