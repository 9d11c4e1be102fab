"""Service test fixtures — async DB, recording asset store, coordinator, and test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - db_manager replaced by a manager bound to the test engine (coordinator and health use it)
    - The asset store is a recording fake (student_factory.FakeAssetStore) with injectable failures
    - The default avatar is hosted by the fake store, so default-avatar protection is exercised

Design Decisions:
    - SQLite in-memory: fast, no external dependency, enforces the unique indexes the
      coordinator relies on
    - Assertions read through fresh sessions from the factory, never through the coordinator
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_asset_store, get_coordinator
from app.db.base import Base
from app.infrastructure.database import DatabaseSessionManager
import app.infrastructure.database as db_module
from app.main import app
from app.services.student_coordinator import StudentCoordinator
from student_factory import DEFAULT_AVATAR, FakeAssetStore, student_payload


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def test_manager(test_engine, test_session_factory):
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = test_session_factory
    return manager


@pytest.fixture
def assets():
    return FakeAssetStore()


@pytest.fixture
def coordinator(test_manager, assets):
    return StudentCoordinator(
        test_manager, assets, default_avatar_url=DEFAULT_AVATAR, max_avatar_bytes=1024,
    )


@pytest.fixture
async def seed_student(coordinator):
    """A committed student with the default avatar."""
    return await coordinator.create_student(student_payload())


@pytest.fixture
async def client(test_manager, assets, coordinator):
    """FastAPI test client wired to the test database and the fake asset store."""
    app.dependency_overrides[get_asset_store] = lambda: assets
    app.dependency_overrides[get_coordinator] = lambda: coordinator

    original_manager = db_module.db_manager
    db_module.db_manager = test_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
