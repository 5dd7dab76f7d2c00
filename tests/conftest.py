"""
Pytest configuration for TaskNest backend tests.

Environment defaults are set before any ``tasknest`` import so the settings
object can be built without a .env file.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from typing import AsyncGenerator

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tasknest.models import Base
from tests.fakes import (
    FakeOrganizationRepository,
    FakeStore,
    FakeTaskRepository,
    FakeUserRepository,
)


# ---------------------------------------------------------------------------
# In-memory fakes
# ---------------------------------------------------------------------------

@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def task_repo(store: FakeStore) -> FakeTaskRepository:
    return FakeTaskRepository(store)


@pytest.fixture
def org_repo(store: FakeStore) -> FakeOrganizationRepository:
    return FakeOrganizationRepository(store)


@pytest.fixture
def user_repo(store: FakeStore) -> FakeUserRepository:
    return FakeUserRepository(store)


# ---------------------------------------------------------------------------
# SQLite database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
