"""Shared pytest fixtures and test configuration."""

from __future__ import annotations

from collections.abc import Callable, Generator
from decimal import Decimal
from typing import Any

import pytest
from fastapi.testclient import TestClient

from luckylottery.core.config import Settings
from luckylottery.core.constants import STATUS_COMPLETED, TX_DEPOSIT
from luckylottery.core.locks import LockRegistry
from luckylottery.services.accounts import AccountService
from luckylottery.services.admin import AdminService
from luckylottery.services.container import ServiceContainer
from luckylottery.services.draw_engine import DrawEngine
from luckylottery.services.ledger import LedgerService
from luckylottery.services.tickets import TicketService
from tests.factories.data_factories import build_user
from tests.factories.fakes import FakeDatabase


class MockCursor:
    """Mock Oracle cursor supporting context manager and common operations."""

    def __init__(self) -> None:
        self.description: list[tuple[str, ...]] | None = None
        self._rows: list[tuple[Any, ...]] = []
        self._execute_log: list[tuple[str, dict[str, Any] | None]] = []
        self.rowcount: int = 0

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> None:
        self._execute_log.append((sql, params))

    def fetchall(self) -> list[tuple[Any, ...]]:
        return self._rows

    def fetchone(self) -> tuple[Any, ...] | None:
        return self._rows[0] if self._rows else None

    def __enter__(self) -> MockCursor:
        return self

    def __exit__(self, *args: Any) -> None:
        pass


class MockConnection:
    """Mock Oracle connection supporting context manager."""

    def __init__(self) -> None:
        self._cursor = MockCursor()
        self.commits = 0
        self.rollbacks = 0
        self._closed = False

    def cursor(self) -> MockCursor:
        return self._cursor

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> MockConnection:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class MockPool:
    """Mock Oracle connection pool handing out one shared connection."""

    def __init__(self) -> None:
        self._connection = MockConnection()
        self.acquired = 0

    def acquire(self) -> MockConnection:
        self.acquired += 1
        self._connection._closed = False
        return self._connection

    def close(self, force: bool = False) -> None:
        pass


@pytest.fixture
def mock_pool() -> MockPool:
    return MockPool()


@pytest.fixture
def mock_connection(mock_pool: MockPool) -> MockConnection:
    return mock_pool._connection


@pytest.fixture
def mock_cursor(mock_connection: MockConnection) -> MockCursor:
    return mock_connection._cursor


def set_mock_query_result(
    cursor: MockCursor,
    columns: list[str],
    rows: list[tuple[Any, ...]],
) -> None:
    """Configure mock cursor to return specific query results."""
    cursor.description = [(col.upper(),) for col in columns]
    cursor._rows = rows
    cursor.rowcount = len(rows)


# ── Service wiring over the in-memory tables ─────────────────────────


@pytest.fixture
def db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def locks() -> LockRegistry:
    return LockRegistry()


@pytest.fixture
def ledger(db: FakeDatabase, locks: LockRegistry) -> LedgerService:
    return LedgerService(
        transaction_repo=db.transactions,
        user_repo=db.users,
        locks=locks,
        atomic=db.atomic,
    )


@pytest.fixture
def tickets(db: FakeDatabase, ledger: LedgerService) -> TicketService:
    return TicketService(ticket_repo=db.tickets, ledger=ledger, ticket_price=Decimal("10.00"))


@pytest.fixture
def engine(db: FakeDatabase, ledger: LedgerService, tickets: TicketService) -> DrawEngine:
    return DrawEngine(
        ticket_service=tickets,
        ledger=ledger,
        draw_result_repo=db.draw_results,
        winner_repo=db.winners,
    )


@pytest.fixture
def admin(db: FakeDatabase, ledger: LedgerService, engine: DrawEngine) -> AdminService:
    return AdminService(ledger=ledger, draw_engine=engine, user_repo=db.users)


@pytest.fixture
def accounts(db: FakeDatabase) -> AccountService:
    return AccountService(user_repo=db.users)


@pytest.fixture
def make_user(db: FakeDatabase, ledger: LedgerService) -> Callable[..., dict[str, Any]]:
    """Create a user; a positive ``balance`` is booked as a completed deposit."""

    def _make(balance: Decimal | int | str = 0, **overrides: Any) -> dict[str, Any]:
        user = build_user(**overrides)
        db.users.create(data={k: v for k, v in user.items() if k != "user_id"}, new_id=user["user_id"])
        amount = Decimal(balance)
        if amount > 0:
            ledger.record(
                user_id=user["user_id"],
                transaction_type=TX_DEPOSIT,
                amount=amount,
                status=STATUS_COMPLETED,
                description="Opening balance",
            )
        return db.users.find_by_id(user["user_id"])  # type: ignore[return-value]

    return _make


# ── App fixtures ─────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    return Settings(app_env="testing")


@pytest.fixture
def app(settings: Settings):  # type: ignore[no-untyped-def]
    """A FastAPI test app with no database; route tests patch the service factories."""
    from luckylottery.main import create_app

    return create_app(settings=settings)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:  # type: ignore[no-untyped-def]
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def services(
    settings: Settings,
    locks: LockRegistry,
    accounts: AccountService,
    ledger: LedgerService,
    tickets: TicketService,
    engine: DrawEngine,
    admin: AdminService,
) -> ServiceContainer:
    return ServiceContainer(
        settings=settings,
        locks=locks,
        accounts=accounts,
        ledger=ledger,
        tickets=tickets,
        draws=engine,
        admin=admin,
    )


@pytest.fixture
def live_client(app, services: ServiceContainer) -> Generator[TestClient, None, None]:  # type: ignore[no-untyped-def]
    """A client whose app runs the real services over the in-memory tables."""
    with TestClient(app) as test_client:
        app.state.services = services
        yield test_client


# ── Auth helpers for protected route tests ───────────────────────────


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Return Authorization headers with a valid admin JWT."""
    from luckylottery.core.security import create_access_token

    token = create_access_token(subject="test-admin", role="admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers() -> dict[str, str]:
    """Return Authorization headers with a valid user JWT."""
    from luckylottery.core.security import create_access_token

    token = create_access_token(subject="test-user", role="user")
    return {"Authorization": f"Bearer {token}"}

