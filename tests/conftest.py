"""
Shared test configuration and fixtures for Authini tests.

Database-backed tests run against a real PostgreSQL server. Every test gets its own
throw-away database with the full schema, so tests never see each other's rows and
concurrent redemption runs with real row locking. When the server cannot be reached
those tests are skipped.
"""

import os
import uuid
import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from authini.model.base import Base
import authini.model.client  # noqa: F401
import authini.model.link  # noqa: F401
import authini.model.person  # noqa: F401
import authini.model.session  # noqa: F401


TEST_DB_HOST = os.getenv("TEST_DB_HOST", "postgres")
TEST_DB_PORT = os.getenv("TEST_DB_PORT", "5432")
TEST_DB_USER = os.getenv("TEST_DB_USER", "postgres")
TEST_DB_PASSWORD = os.getenv("TEST_DB_PASSWORD", "password")


def database_url(name: str) -> str:
    return (
        f"postgresql+asyncpg://{TEST_DB_USER}:{TEST_DB_PASSWORD}@"
        f"{TEST_DB_HOST}:{TEST_DB_PORT}/{name}"
    )


_postgres_available = None


async def postgres_available() -> bool:
    """Check once per test run whether the server answers."""
    global _postgres_available
    if _postgres_available is None:
        check = create_async_engine(database_url("postgres"))
        try:
            async with check.connect() as conn:
                await conn.execute(text("SELECT 1"))
            _postgres_available = True
        except Exception:
            _postgres_available = False
        finally:
            await check.dispose()
    return _postgres_available


async def run_admin_statement(statement: str) -> None:
    admin = create_async_engine(database_url("postgres"), isolation_level="AUTOCOMMIT")
    try:
        async with admin.connect() as conn:
            await conn.execute(text(statement))
    finally:
        await admin.dispose()


@pytest_asyncio.fixture
async def engine():
    """Engine bound to a fresh database holding the full schema."""
    if not await postgres_available():
        pytest.skip("PostgreSQL database not available for testing")

    name = f"authini_test_{uuid.uuid4().hex[:8]}"
    await run_admin_statement(f"CREATE DATABASE {name}")

    engine = create_async_engine(database_url(name))
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield engine
    finally:
        await engine.dispose()
        await run_admin_statement(f"DROP DATABASE IF EXISTS {name}")


@pytest.fixture
def session_maker(engine):
    """Session factory configured the way the application builds it."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def make_client():
    """Serve an aiohttp application on a local port and return a test client for it."""
    clients = []

    async def go(app):
        client = TestClient(TestServer(app))
        await client.start_server()
        clients.append(client)
        return client

    yield go

    for client in clients:
        await client.close()
