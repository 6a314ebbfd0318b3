"""
Centralized Test Configuration.

Every test gets its own file-backed SQLite database so that concurrent
sessions run on separate connections, as they would against PostgreSQL.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool

from franchise_backend.app.main import app
from franchise_backend.app.db.session import get_db, Base
from franchise_backend.app.core.jwt import create_access_token
from franchise_backend.app.domain.ledger.balance_mutator import apply_movement
from franchise_backend.app.domain.ledger.deltas import MonetaryDelta, MovementMetadata
from franchise_backend.app.models.bank_account import Bank, BankAccount
from franchise_backend.app.models.enums import UserRole
from franchise_backend.app.models.franchise import Franchise
from franchise_backend.app.models.ledger_enums import BankMovementType, Currency, LedgerKind
from franchise_backend.app.models.parties import AccountResponsible, Volunteer
from franchise_backend.app.models.petty_cash import PettyCash
from franchise_backend.app.models.product import Product
from franchise_backend.app.models.user import User


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        # Writers wait on each other instead of failing with "database is locked"
        connect_args={"timeout": 30},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """Async client for testing, bound to the per-test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def world(db_session):
    """
    Two franchises, each with a bank account, a petty cash box and users.

    Balances start at zero; tests fund them through the balance mutator.
    """
    north = Franchise(rif="J-30000001-0", name="Franchise North")
    south = Franchise(rif="J-30000002-0", name="Franchise South")
    db_session.add_all([north, south])
    await db_session.flush()

    holder = AccountResponsible(document_type="V", document_number="12345678", first_name="Ana", last_name="Rojas")
    keeper = Volunteer(first_name="Luis", last_name="Perez")
    bank = Bank(code="0102", name="Banco de Prueba")
    db_session.add_all([holder, keeper, bank])
    await db_session.flush()

    north_account = BankAccount(
        account_number="01020000000000000001", currency=Currency.VES,
        responsible_id=holder.id, bank_code=bank.code, franchise_id=north.id,
    )
    south_account = BankAccount(
        account_number="01020000000000000002", currency=Currency.USD,
        responsible_id=holder.id, bank_code=bank.code, franchise_id=south.id,
    )
    north_cash = PettyCash(code="CC-N-01", name="North box", currency=Currency.VES,
                           franchise_id=north.id, responsible_id=keeper.id)
    south_cash = PettyCash(code="CC-S-01", name="South box", currency=Currency.VES,
                           franchise_id=south.id, responsible_id=keeper.id)
    product = Product(name="Rice 1kg", description="Bag of rice")
    db_session.add_all([north_account, south_account, north_cash, south_cash, product])
    await db_session.flush()

    superuser = User(username="root", email="root@example.org", role=UserRole.SUPERUSER)
    north_coordinator = User(username="coord.north", role=UserRole.COORDINATOR, franchise_id=north.id)
    south_coordinator = User(username="coord.south", role=UserRole.COORDINATOR, franchise_id=south.id)
    committee = User(username="committee", role=UserRole.COMMITTEE, franchise_id=north.id)
    inactive = User(username="gone", role=UserRole.SUPERUSER, is_active=False)
    db_session.add_all([superuser, north_coordinator, south_coordinator, committee, inactive])
    await db_session.commit()

    return SimpleNamespace(
        north=north,
        south=south,
        bank=bank,
        north_account=north_account,
        south_account=south_account,
        north_cash=north_cash,
        south_cash=south_cash,
        product=product,
        superuser=superuser,
        north_coordinator=north_coordinator,
        south_coordinator=south_coordinator,
        committee=committee,
        inactive=inactive,
    )


def token_for(user: User) -> str:
    return create_access_token({
        "sub": user.username,
        "user_id": user.id,
        "role": user.role.value,
        "franchise_id": user.franchise_id,
    })


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


def bank_metadata(observation: str = "Deposit", **overrides) -> MovementMetadata:
    values = {
        "observation": observation,
        "movement_type": BankMovementType.DEPOSIT,
        "reference_number": "REF-0001",
        "actor_id": None,
    }
    values.update(overrides)
    return MovementMetadata(**values)


async def fund_account(db, account_id: int, amount: str):
    """Seed a bank account balance with an opening deposit."""
    return await apply_movement(
        db,
        LedgerKind.BANK_ACCOUNT,
        account_id,
        MonetaryDelta(income=Decimal(amount)),
        bank_metadata("Opening balance"),
    )
