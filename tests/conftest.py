"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Each test gets fresh tables and a session
that rolls back after the test.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from money_buddy.main import app
from money_buddy.models import Base
from money_buddy.models.base import get_db
from money_buddy.models.enums import AccountType
from money_buddy.schemas.account import AccountCreate
from money_buddy.services.account_service import AccountService


# SQLite for tests, no external database needed.
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class FakeClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def session_factory():
    """Open extra sessions on the test database, one per simulated client."""
    return TestSessionLocal


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 15, 12, 0, 0))


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    The get_db dependency is overridden so the app uses the
    test session instead of the real database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_account(db_session):
    """Factory fixture: create and commit an account."""
    def _make(
        owner="alice@example.com",
        balance="100.00",
        name="Primary Checking",
        account_type=AccountType.CHECKING,
    ):
        account = AccountService(db_session).create_account(AccountCreate(
            owner=owner,
            name=name,
            provider="Chase",
            account_type=account_type,
            balance=Decimal(balance),
        ))
        db_session.commit()
        return account
    return _make


@pytest.fixture
def create_account(client):
    """Factory fixture: register an account through the API."""
    def _create(owner="alice@example.com", balance="100.00", **extra):
        payload = {
            "owner": owner,
            "name": "Everyday",
            "provider": "Chase",
            "account_type": "CHECKING",
            "balance": balance,
        }
        payload.update(extra)
        response = client.post("/accounts", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _create
