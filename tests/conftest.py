"""Pytest fixtures for testing"""

import os

# Must be set before transfer_gateway.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("NOTIFICATION_BACKOFF_BASE", "0")

import pytest
from typing import Callable, Generator
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from transfer_gateway.api.dependencies import get_scheduler
from transfer_gateway.api.main import create_app
from transfer_gateway.infrastructure.database.models import Account, Base
from transfer_gateway.infrastructure.database.repositories import AccountRepository
from transfer_gateway.infrastructure.database.session import enforce_sqlite_foreign_keys, get_db
from transfer_gateway.services.scheduler import RecurringTransferScheduler


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
enforce_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db: Session) -> Callable[[], Session]:
    """Session factory sharing the test database, for code that opens its own sessions"""
    return TestingSessionLocal


@pytest.fixture
def notifier() -> AsyncMock:
    """Stand-in for the notification client"""
    mock = AsyncMock()
    mock.notify.return_value = True
    return mock


@pytest.fixture
def scheduler(session_factory, notifier) -> RecurringTransferScheduler:
    return RecurringTransferScheduler(session_factory=session_factory, notifier=notifier)


@pytest.fixture
def client(db: Session, scheduler: RecurringTransferScheduler) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    return TestClient(app)


@pytest.fixture
def make_account(db: Session) -> Callable[..., Account]:
    """Factory for committed accounts"""

    def _make(account_number: str, full_name: str, balance_cents: int, email: str | None = None) -> Account:
        account = AccountRepository(db).create(
            account_number=account_number,
            full_name=full_name,
            email=email or f"{account_number}@example.com",
            balance_cents=balance_cents,
        )
        db.commit()
        return account

    return _make


@pytest.fixture
def alice(make_account) -> Account:
    return make_account("PL10000000000000000000000001", "Alice Nowak", 50_000, "alice@example.com")


@pytest.fixture
def bob(make_account) -> Account:
    return make_account("PL10000000000000000000000002", "Bob Kowalski", 5_000, "bob@example.com")
