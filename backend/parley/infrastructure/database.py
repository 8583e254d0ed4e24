"""Database Session Manager — one async engine per process, one session per unit of work.

Invariants:
    - A session that leaves its context through an exception is rolled back
    - SQLAlchemy failures escaping a session are re-raised as ParleyError:
      IntegrityError → ConflictError, anything else → DatabaseError
    - ParleyError raised inside a session passes through untouched

Design Decisions:
    - Pool sizing only applies to server databases; SQLite URLs (dev, tests)
      get the dialect's default pool
    - expire_on_commit=False: services read ids and columns after commit
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)

from parley.config import Settings
from parley.core.errors import (
    ConflictError, DatabaseError, ErrorContext, ParleyError,
)

logger = logging.getLogger(__name__)


def _engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict:
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


def translate_db_error(exc: SQLAlchemyError) -> ParleyError:
    """Map a driver-level failure onto the Parley error taxonomy."""
    if isinstance(exc, IntegrityError):
        return ConflictError(
            "A concurrent change violated a uniqueness rule; retry",
            ErrorContext(debug_info={"constraint": str(exc.orig)}),
        )
    if isinstance(exc, OperationalError):
        return DatabaseError("database unreachable or timed out", "execute")
    return DatabaseError(type(exc).__name__, "query")


class DatabaseSessionManager:
    """Owns the engine and hands out sessions that roll back on failure."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.engine: AsyncEngine = create_async_engine(
            database_url, **_engine_options(database_url, pool_size, max_overflow),
        )
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseSessionManager":
        return cls(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            error = translate_db_error(e)
            logger.error(
                f"Session aborted: {error.message}",
                extra={"error_code": error.code},
            )
            raise error from e
        except BaseException:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """True if a trivial round trip succeeds (readiness probe)."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


# Set by init_db() from the app lifespan
db_manager: DatabaseSessionManager | None = None


def init_db(settings: Settings) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager.from_settings(settings)
    return db_manager


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency — one session per request."""
    if db_manager is None:
        raise DatabaseError("session manager not initialised", "connect")
    async with db_manager.session() as session:
        yield session
