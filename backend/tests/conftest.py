"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from api.dependencies import get_transaction_cache
from services.transaction_cache import TransactionListCache
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import (  # noqa: F401
    account_fee,
    other_user,
    second_account,
    stock_account,
    user,
)


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="transaction_cache")
def transaction_cache_fixture() -> TransactionListCache:
    """A fresh listing cache per test."""
    return TransactionListCache(ttl_seconds=300, max_entries=100)


@pytest.fixture(name="client")
def client_fixture(db, transaction_cache):
    """Create a test client with the test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_transaction_cache] = lambda: transaction_cache
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(user) -> dict:
    """Identity header for the default test user."""
    return {"X-User-Id": user.id}
