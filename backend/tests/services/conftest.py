"""Service test fixtures — async DB, frozen clock, users and an authenticated client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db and get_clock dependencies are overridden for the test client
    - db_manager is patched so the readiness probe sees the test engine
    - Tokens (identity_tokens.py) are real HS256 JWTs signed with the test secret

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for service tests
      (uniqueness constraints and window functions behave as on PostgreSQL here)
    - StaticPool: every session shares the single in-memory connection
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.pool import StaticPool

import parley.infrastructure.database as db_module
import parley.models  # noqa: F401  (registers every table on Base.metadata)
from parley.api.dependencies import get_clock
from parley.db.base import Base
from parley.infrastructure.database import DatabaseSessionManager, get_db
from parley.main import app
from parley.models.user import User


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
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
def make_user(test_db, clock):
    """Insert a profile directly. Returns the persisted User."""
    async def _make(name: str, external_id: str | None = None, **fields) -> User:
        now = clock.now_ms()
        user = User(
            external_id=external_id or f"auth|{name.lower()}",
            name=name,
            created_at=fields.pop("created_at", now),
            updated_at=fields.pop("updated_at", now),
            last_seen_at=fields.pop("last_seen_at", now),
            **fields,
        )
        test_db.add(user)
        await test_db.commit()
        return user
    return _make


@pytest.fixture
async def client(test_engine, test_session_factory, clock):
    """FastAPI test client with DB and clock dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

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
