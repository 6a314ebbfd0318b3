"""
Statement builder tests.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from franchise_backend.app.domain.ledger.balance_mutator import apply_movement
from franchise_backend.app.domain.ledger.deltas import InventoryDelta, MonetaryDelta, MovementMetadata, StockKey
from franchise_backend.app.domain.ledger.errors import InvalidDeltaError
from franchise_backend.app.domain.ledger.filters import DateRange
from franchise_backend.app.domain.ledger.statement_builder import build_statement
from franchise_backend.app.models.ledger_enums import BankMovementType, Currency, InventoryMovementType, LedgerKind

from conftest import bank_metadata

MARCH = DateRange.from_dates(date(2024, 3, 1), date(2024, 3, 31))


async def bank_move(db, account_id, occurred_at, income="0", expense="0", movement_type=BankMovementType.DEPOSIT):
    return await apply_movement(
        db,
        LedgerKind.BANK_ACCOUNT,
        account_id,
        MonetaryDelta(income=Decimal(income), expense=Decimal(expense)),
        bank_metadata(f"Move {occurred_at:%d}", movement_type=movement_type, occurred_at=occurred_at),
    )


@pytest.mark.asyncio
async def test_running_balance(db_session, world):
    account_id = world.north_account.id
    await bank_move(db_session, account_id, datetime(2024, 3, 1, 9), income="50")
    await bank_move(db_session, account_id, datetime(2024, 3, 2, 9), expense="20",
                    movement_type=BankMovementType.WITHDRAWAL)
    await bank_move(db_session, account_id, datetime(2024, 3, 3, 9), income="30")

    statement = await build_statement(db_session, LedgerKind.BANK_ACCOUNT, account_id, MARCH)

    assert [line.running_balance for line in statement.items] == [Decimal("50"), Decimal("30"), Decimal("60")]
    assert statement.totals.total_income == Decimal("80")
    assert statement.totals.total_expense == Decimal("20")
    assert statement.totals.final_balance == Decimal("60")
    assert statement.entity.name == world.north_account.account_number
    assert statement.entity.currency == Currency.VES
    assert statement.entity.bank_name == "Banco de Prueba"


@pytest.mark.asyncio
async def test_equal_timestamps_follow_insertion_order(db_session, world):
    account_id = world.north_account.id
    first = await bank_move(db_session, account_id, datetime(2024, 3, 10, 12), income="5")
    second = await bank_move(db_session, account_id, datetime(2024, 3, 10, 12), expense="7",
                             movement_type=BankMovementType.WITHDRAWAL)

    statement = await build_statement(db_session, LedgerKind.BANK_ACCOUNT, account_id, MARCH)

    assert [line.movement_id for line in statement.items] == [first.id, second.id]
    assert [line.running_balance for line in statement.items] == [Decimal("5"), Decimal("-2")]
    assert statement.items[-1].balance_after == statement.totals.final_balance


@pytest.mark.asyncio
async def test_window_restarts_at_zero(db_session, world):
    account_id = world.north_account.id
    await bank_move(db_session, account_id, datetime(2024, 2, 28, 9), income="1000")
    await bank_move(db_session, account_id, datetime(2024, 3, 5, 9), income="10")
    await bank_move(db_session, account_id, datetime(2024, 4, 1, 0, 0), income="99")

    statement = await build_statement(db_session, LedgerKind.BANK_ACCOUNT, account_id, MARCH)

    assert len(statement.items) == 1
    assert statement.items[0].running_balance == Decimal("10")
    # Stored balance_after still reflects the full history
    assert statement.items[0].balance_after == Decimal("1010")


@pytest.mark.asyncio
async def test_end_date_covers_whole_day(db_session, world):
    account_id = world.north_account.id
    await bank_move(db_session, account_id, datetime(2024, 3, 31, 23, 59, 30), income="3")

    statement = await build_statement(db_session, LedgerKind.BANK_ACCOUNT, account_id, MARCH)

    assert len(statement.items) == 1


@pytest.mark.asyncio
async def test_movement_type_filter(db_session, world):
    account_id = world.north_account.id
    await bank_move(db_session, account_id, datetime(2024, 3, 1, 9), income="50")
    await bank_move(db_session, account_id, datetime(2024, 3, 2, 9), expense="20",
                    movement_type=BankMovementType.WITHDRAWAL)

    statement = await build_statement(
        db_session, LedgerKind.BANK_ACCOUNT, account_id, MARCH, [BankMovementType.WITHDRAWAL]
    )

    assert len(statement.items) == 1
    assert statement.items[0].movement_type == BankMovementType.WITHDRAWAL.value
    assert statement.totals.final_balance == Decimal("-20")
    assert statement.filters.movement_types == ["Withdrawal"]


@pytest.mark.asyncio
async def test_stored_columns_decide_income(db_session, world):
    # A "Withdrawal" that actually carries income is still income
    account_id = world.north_account.id
    await bank_move(db_session, account_id, datetime(2024, 3, 1, 9), income="15",
                    movement_type=BankMovementType.WITHDRAWAL)

    statement = await build_statement(db_session, LedgerKind.BANK_ACCOUNT, account_id, MARCH)

    assert statement.totals.total_income == Decimal("15")
    assert statement.totals.total_expense == Decimal("0")


@pytest.mark.asyncio
async def test_unknown_entity_yields_empty_statement(db_session, world):
    statement = await build_statement(db_session, LedgerKind.BANK_ACCOUNT, 9999, MARCH)

    assert statement.entity is None
    assert statement.items == []
    assert statement.totals.final_balance == Decimal("0")
    assert statement.totals.total_income == Decimal("0")


@pytest.mark.asyncio
async def test_statement_is_reproducible(db_session, world):
    account_id = world.north_account.id
    await bank_move(db_session, account_id, datetime(2024, 3, 1, 9), income="50")
    await bank_move(db_session, account_id, datetime(2024, 3, 1, 9), expense="12.34",
                    movement_type=BankMovementType.CARD)

    first = await build_statement(db_session, LedgerKind.BANK_ACCOUNT, account_id, MARCH)
    second = await build_statement(db_session, LedgerKind.BANK_ACCOUNT, account_id, MARCH)

    assert first.model_dump() == second.model_dump()


@pytest.mark.asyncio
async def test_petty_cash_statement(db_session, world):
    for day, income, expense in [(1, "40", "0"), (2, "0", "15.50")]:
        await apply_movement(
            db_session, LedgerKind.PETTY_CASH, world.north_cash.id,
            MonetaryDelta(income=Decimal(income), expense=Decimal(expense)),
            MovementMetadata(observation="Box", occurred_at=datetime(2024, 3, day, 10)),
        )

    statement = await build_statement(db_session, LedgerKind.PETTY_CASH, world.north_cash.id, MARCH)

    assert [line.running_balance for line in statement.items] == [Decimal("40"), Decimal("24.50")]
    assert statement.entity.name == "CC-N-01 North box"
    assert statement.items[0].reference_number is None


@pytest.mark.asyncio
async def test_inventory_statement(db_session, world):
    key = StockKey(world.product.id, world.north.id)
    for day, direction, quantity in [
        (1, InventoryMovementType.ENTRY, 10),
        (2, InventoryMovementType.EXIT, 3),
        (3, InventoryMovementType.ENTRY, 4),
    ]:
        await apply_movement(
            db_session, LedgerKind.INVENTORY, key,
            InventoryDelta(direction=direction, quantity=quantity),
            MovementMetadata(observation="Count", actor_id=world.superuser.id,
                             occurred_at=datetime(2024, 3, day, 10)),
        )

    statement = await build_statement(db_session, LedgerKind.INVENTORY, key, MARCH)

    assert [line.running_balance for line in statement.items] == [10, 7, 11]
    assert statement.totals.total_income == 14
    assert statement.totals.total_expense == 3
    assert statement.totals.final_balance == 11
    assert statement.entity.name == "Rice 1kg"
    assert statement.entity.franchise_name == "Franchise North"

    exits = await build_statement(db_session, LedgerKind.INVENTORY, key, MARCH, [InventoryMovementType.EXIT])
    assert [line.running_balance for line in exits.items] == [-3]


@pytest.mark.asyncio
async def test_inventory_statement_for_unknown_product(db_session, world):
    statement = await build_statement(db_session, LedgerKind.INVENTORY, StockKey(9999, world.north.id), MARCH)

    assert statement.entity is None
    assert statement.totals.final_balance == 0


@pytest.mark.asyncio
async def test_misshaped_statement_requests_are_invalid_deltas(db_session, world):
    with pytest.raises(InvalidDeltaError) as exc_info:
        await build_statement(db_session, LedgerKind.BANK_ACCOUNT, StockKey(world.product.id, world.north.id), MARCH)
    assert exc_info.value.field == "entity_id"

    with pytest.raises(InvalidDeltaError) as exc_info:
        await build_statement(
            db_session, LedgerKind.PETTY_CASH, world.north_cash.id, MARCH, [BankMovementType.DEPOSIT]
        )
    assert exc_info.value.field == "movement_types"
