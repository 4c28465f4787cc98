"""Service test fixtures — async DB, scripted invoker, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched for the SSE route, which opens its own session
    - get_agent_invoker overridden: no test ever reaches a real provider

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for gateway and route
      tests (PostgreSQL-specific features not exercised here)
    - db_manager patched via __new__: avoids building a second engine
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from verdict_engine.api.routes.verdicts import get_agent_invoker
from verdict_engine.config import Settings
from verdict_engine.db.base import Base
from verdict_engine.infrastructure.database import get_db, DatabaseSessionManager
import verdict_engine.infrastructure.database as db_module
import verdict_engine.models  # noqa: F401
from verdict_engine.main import app
from tests.services.fake_invoker import CATALOG_SYMBOLS, ScriptedInvoker, golden_script


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
def test_settings():
    return Settings(
        anthropic_api_key="sk-ant-test-fake-key",
        database_url="sqlite+aiosqlite:///:memory:",
        debate_pacing_seconds=0,
    )


@pytest.fixture
def golden_invoker():
    return ScriptedInvoker(golden_script(CATALOG_SYMBOLS))


@pytest.fixture
async def client(test_engine, test_session_factory, golden_invoker):
    """FastAPI test client with DB and invoker dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_agent_invoker] = lambda: golden_invoker

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
