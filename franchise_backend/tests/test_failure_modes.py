"""
Failure Injection Tests.

A failure at any step of a movement leaves no trace: no movement row and
an unchanged balance.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from franchise_backend.app.domain.ledger.balance_mutator import BalanceMutator, apply_movement, current_balance
from franchise_backend.app.domain.ledger.deltas import InventoryDelta, MonetaryDelta, MovementMetadata, StockKey
from franchise_backend.app.domain.ledger.errors import TransactionFailureError
from franchise_backend.app.models.bank_movement import BankMovement
from franchise_backend.app.models.ledger_enums import BankMovementType, InventoryMovementType, LedgerKind

from conftest import bank_metadata, fund_account


async def bank_movement_count(db) -> int:
    return (await db.execute(select(func.count(BankMovement.id)))).scalar()


@pytest.mark.asyncio
async def test_failed_insert_rolls_back_balance(db_session, session_factory, world, mocker):
    account_id = world.north_account.id
    await fund_account(db_session, account_id, "100")

    # NOT NULL violation on flush, after the balance UPDATE already ran
    broken = BankMovement(
        occurred_at=None,
        reference_number=None,
        movement_type=BankMovementType.DEPOSIT,
        observation="broken",
        income=Decimal("25"),
        expense=Decimal("0"),
        balance_after=Decimal("125"),
        bank_account_id=account_id,
    )
    mocker.patch.object(BalanceMutator, "build_movement", return_value=broken)

    with pytest.raises(TransactionFailureError) as exc_info:
        await apply_movement(
            db_session, LedgerKind.BANK_ACCOUNT, account_id,
            MonetaryDelta(income=Decimal("25")), bank_metadata(),
        )

    assert isinstance(exc_info.value.__cause__, IntegrityError)

    async with session_factory() as fresh:
        assert await current_balance(fresh, LedgerKind.BANK_ACCOUNT, account_id) == Decimal("100")
        assert await bank_movement_count(fresh) == 1


@pytest.mark.asyncio
async def test_database_error_is_wrapped(db_session, session_factory, world, mocker):
    account_id = world.north_account.id
    await fund_account(db_session, account_id, "100")

    mocker.patch.object(
        BalanceMutator,
        "shift_balance",
        AsyncMock(side_effect=OperationalError("UPDATE bank_accounts", {}, Exception("database is locked"))),
    )

    with pytest.raises(TransactionFailureError) as exc_info:
        await apply_movement(
            db_session, LedgerKind.BANK_ACCOUNT, account_id,
            MonetaryDelta(expense=Decimal("10")), bank_metadata(),
        )

    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert exc_info.value.details == {"cause": "OperationalError"}

    async with session_factory() as fresh:
        assert await current_balance(fresh, LedgerKind.BANK_ACCOUNT, account_id) == Decimal("100")


@pytest.mark.asyncio
async def test_session_usable_after_failure(db_session, world, mocker):
    account_id = world.north_account.id
    patcher = mocker.patch.object(
        BalanceMutator,
        "shift_balance",
        AsyncMock(side_effect=OperationalError("UPDATE bank_accounts", {}, Exception("disk I/O error"))),
    )

    with pytest.raises(TransactionFailureError):
        await fund_account(db_session, account_id, "10")

    mocker.stop(patcher)
    movement = await fund_account(db_session, account_id, "10")

    assert movement.balance_after == Decimal("10")
    assert await bank_movement_count(db_session) == 1


@pytest.mark.asyncio
async def test_failed_inventory_entry_leaves_no_stock_line(db_session, session_factory, world, mocker):
    key = StockKey(world.product.id, world.north.id)
    mocker.patch.object(
        BalanceMutator,
        "shift_balance",
        AsyncMock(side_effect=OperationalError("UPDATE product_stock", {}, Exception("database is locked"))),
    )

    with pytest.raises(TransactionFailureError):
        await apply_movement(
            db_session, LedgerKind.INVENTORY, key,
            InventoryDelta(direction=InventoryMovementType.ENTRY, quantity=5),
            MovementMetadata(observation="Delivery", actor_id=world.superuser.id),
        )

    async with session_factory() as fresh:
        assert await current_balance(fresh, LedgerKind.INVENTORY, key) is None


@pytest.mark.asyncio
async def test_failing_recorded_hook_rolls_back_movement(db_session, session_factory, world):
    account_id = world.north_account.id
    hook = AsyncMock(side_effect=OperationalError("INSERT INTO audit_logs", {}, Exception("disk I/O error")))

    with pytest.raises(TransactionFailureError):
        await apply_movement(
            db_session, LedgerKind.BANK_ACCOUNT, account_id,
            MonetaryDelta(income=Decimal("10")), bank_metadata(),
            on_recorded=hook,
        )

    hook.assert_awaited_once()
    async with session_factory() as fresh:
        assert await current_balance(fresh, LedgerKind.BANK_ACCOUNT, account_id) == Decimal("0")
        assert await bank_movement_count(fresh) == 0
