"""
Concurrency Tests.

Concurrent movements on one entity serialize on its row; no update is lost
and no exit can overdraw the stock.
"""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import select

from franchise_backend.app.domain.ledger.balance_mutator import apply_movement, current_balance
from franchise_backend.app.domain.ledger.deltas import InventoryDelta, MonetaryDelta, MovementMetadata, StockKey
from franchise_backend.app.domain.ledger.errors import InsufficientBalanceError
from franchise_backend.app.models.bank_movement import BankMovement
from franchise_backend.app.models.inventory_movement import InventoryMovement
from franchise_backend.app.models.ledger_enums import InventoryMovementType, LedgerKind

from conftest import bank_metadata, fund_account


async def apply_in_own_session(session_factory, kind, entity_id, delta, metadata):
    async with session_factory() as session:
        return await apply_movement(session, kind, entity_id, delta, metadata)


@pytest.mark.asyncio
async def test_concurrent_income_and_expense_lose_nothing(db_session, session_factory, world):
    account_id = world.north_account.id
    await fund_account(db_session, account_id, "100")

    for round_number in range(1, 6):
        await asyncio.gather(
            apply_in_own_session(
                session_factory, LedgerKind.BANK_ACCOUNT, account_id,
                MonetaryDelta(income=Decimal("10")), bank_metadata("Income"),
            ),
            apply_in_own_session(
                session_factory, LedgerKind.BANK_ACCOUNT, account_id,
                MonetaryDelta(expense=Decimal("5")), bank_metadata("Expense"),
            ),
        )

        async with session_factory() as fresh:
            balance = await current_balance(fresh, LedgerKind.BANK_ACCOUNT, account_id)
        assert balance == Decimal("100") + Decimal("5") * round_number


@pytest.mark.asyncio
async def test_concurrent_movements_chain_balance_after(db_session, session_factory, world):
    account_id = world.north_account.id
    amounts = [Decimal(n) for n in ("10", "20", "30", "40", "50")]

    await asyncio.gather(*[
        apply_in_own_session(
            session_factory, LedgerKind.BANK_ACCOUNT, account_id,
            MonetaryDelta(income=amount), bank_metadata(f"Deposit {amount}"),
        )
        for amount in amounts
    ])

    async with session_factory() as fresh:
        result = await fresh.execute(
            select(BankMovement).where(BankMovement.bank_account_id == account_id).order_by(BankMovement.id)
        )
        movements = result.scalars().all()
        stored = await current_balance(fresh, LedgerKind.BANK_ACCOUNT, account_id)

    running = Decimal("0")
    for movement in movements:
        running += movement.income - movement.expense
        assert movement.balance_after == running
    assert stored == running == sum(amounts)


@pytest.mark.asyncio
async def test_concurrent_exits_never_overdraw(db_session, session_factory, world):
    key = StockKey(world.product.id, world.north.id)
    await apply_movement(
        db_session, LedgerKind.INVENTORY, key,
        InventoryDelta(direction=InventoryMovementType.ENTRY, quantity=10),
        MovementMetadata(observation="Delivery", actor_id=world.superuser.id),
    )

    results = await asyncio.gather(*[
        apply_in_own_session(
            session_factory, LedgerKind.INVENTORY, key,
            InventoryDelta(direction=InventoryMovementType.EXIT, quantity=4),
            MovementMetadata(observation=f"Handout {n}", actor_id=world.north_coordinator.id),
        )
        for n in range(3)
    ], return_exceptions=True)

    succeeded = [r for r in results if isinstance(r, InventoryMovement)]
    rejected = [r for r in results if isinstance(r, InsufficientBalanceError)]
    assert len(succeeded) == 2
    assert len(rejected) == 1

    async with session_factory() as fresh:
        assert await current_balance(fresh, LedgerKind.INVENTORY, key) == 2


@pytest.mark.asyncio
async def test_movements_on_different_accounts_are_independent(db_session, session_factory, world):
    await asyncio.gather(
        apply_in_own_session(
            session_factory, LedgerKind.BANK_ACCOUNT, world.north_account.id,
            MonetaryDelta(income=Decimal("7")), bank_metadata(),
        ),
        apply_in_own_session(
            session_factory, LedgerKind.BANK_ACCOUNT, world.south_account.id,
            MonetaryDelta(income=Decimal("9")), bank_metadata(),
        ),
    )

    async with session_factory() as fresh:
        assert await current_balance(fresh, LedgerKind.BANK_ACCOUNT, world.north_account.id) == Decimal("7")
        assert await current_balance(fresh, LedgerKind.BANK_ACCOUNT, world.south_account.id) == Decimal("9")
