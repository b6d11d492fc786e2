"""
Shared fixtures.

The database is a throwaway SQLite file; Redis is patched out so the auth
cache runs degraded and every tenant is resolved from the database.
"""

import os
import tempfile
import uuid
from unittest.mock import AsyncMock, patch

# Must be set before hostnote.config is imported
_DB_DIR = tempfile.mkdtemp(prefix="hostnote-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/hostnote.db"
os.environ["APP_ENV"] = "development"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from hostnote.api.middleware.auth import hash_api_key
from hostnote.infra.database import async_session_factory, engine
from hostnote.models.database import Base, Patron, Staff, Tenant, TenantStatus

TENANT_A_KEY = "hn_test_tenant_a_key_0000000000"
TENANT_B_KEY = "hn_test_tenant_b_key_0000000000"
SUSPENDED_KEY = "hn_test_suspended_key_000000000"

TENANT_A_ID = uuid.UUID("00000000-0000-0000-0000-00000000000a")
TENANT_B_ID = uuid.UUID("00000000-0000-0000-0000-00000000000b")
SUSPENDED_ID = uuid.UUID("00000000-0000-0000-0000-00000000000c")


@pytest_asyncio.fixture
async def tables():
    """Fresh schema per test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def seeded(tables):
    """
    Two tenants with their own patrons and staff.

    Tenant A: patrons 7, 8 (and deleted 10), staff 3, 4
    Tenant B: patron 9, staff 99
    """
    async with async_session_factory() as db:
        db.add_all([
            Tenant(id=TENANT_A_ID, name="Club A", slug="club-a",
                   api_key_hash=hash_api_key(TENANT_A_KEY), status=TenantStatus.ACTIVE),
            Tenant(id=TENANT_B_ID, name="Club B", slug="club-b",
                   api_key_hash=hash_api_key(TENANT_B_KEY), status=TenantStatus.ACTIVE),
            Tenant(id=SUSPENDED_ID, name="Club C", slug="club-c",
                   api_key_hash=hash_api_key(SUSPENDED_KEY), status=TenantStatus.SUSPENDED),
        ])
        await db.flush()
        db.add_all([
            Patron(id=7, tenant_id=TENANT_A_ID, name="Yui", photo_url="https://img/yui.png"),
            Patron(id=8, tenant_id=TENANT_A_ID, name="Mio"),
            Patron(id=10, tenant_id=TENANT_A_ID, name="Gone", is_deleted=True),
            Patron(id=9, tenant_id=TENANT_B_ID, name="Other"),
            Staff(id=3, tenant_id=TENANT_A_ID, name="Ren"),
            Staff(id=4, tenant_id=TENANT_A_ID, name="Kai"),
            Staff(id=99, tenant_id=TENANT_B_ID, name="Foreign"),
        ])
        await db.commit()
    yield


@pytest_asyncio.fixture
async def db(seeded):
    """Session for direct store tests."""
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def no_redis():
    with patch(
        "hostnote.infra.redis.RedisClient.get_client",
        new=AsyncMock(return_value=None),
    ):
        yield


@pytest_asyncio.fixture
async def client(seeded, no_redis):
    """HTTP client authenticated as tenant A."""
    from hostnote.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-API-Key": TENANT_A_KEY},
    ) as http:
        yield http
