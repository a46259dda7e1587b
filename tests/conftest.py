"""
Pytest configuration and fixtures for testing.

Provides:
- An in-memory SQLite database, recreated for every test
- Entity repositories bound to one transaction
- A FastAPI TestClient with the TTLock service swapped for a fake

Usage:
    pytest tests/ -v
"""

import os

# must be set before lockmaster.config is imported
os.environ["DB_URL"] = "sqlite://"
os.environ["PORTAL_TIMEZONE"] = "UTC"
for _key in ("TTLOCK_CLIENT_ID", "TTLOCK_CLIENT_SECRET", "TTLOCK_USERNAME", "TTLOCK_PASSWORD"):
    os.environ[_key] = ""

import pytest
from fastapi.testclient import TestClient

from lockmaster.api.dependencies import get_sync_service
from lockmaster.database import db_manager
from lockmaster.main import app
from lockmaster.services.entity_client import Entities
from lockmaster.services.sync_service import TTLockSyncService
from tests.factories import FakeTTLockClient


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def database():
    """Fresh schema per test on the shared in-memory engine."""
    db_manager.drop_all()
    db_manager.create_all()
    yield db_manager
    db_manager.drop_all()


@pytest.fixture
def entities(database):
    with database.get_connection() as conn:
        yield Entities(conn)


# ============================================================================
# TTLock Fixtures
# ============================================================================

@pytest.fixture
def fake_ttlock():
    return FakeTTLockClient()


@pytest.fixture
def sync_service(database, fake_ttlock):
    def factory(overrides=None):
        return fake_ttlock

    return TTLockSyncService(client_factory=factory, connection_factory=database.get_connection)


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def client(database, sync_service):
    app.dependency_overrides[get_sync_service] = lambda: sync_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
