"""Database Session Manager — async connection pool, transaction scope, and error mapping.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - transaction() commits on clean exit and rolls back on ANY exception, including
      application errors raised by the caller inside the block
    - SQLAlchemy exceptions are mapped: IntegrityError -> ConflictError, write conflicts and
      lock contention -> TransientWriteError, everything else -> DatabaseError
    - AppError raised inside a scope passes through unchanged

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
      (no global import side effects)
    - expire_on_commit=False: prevents lazy-load issues in async context
    - Transient classification by SQLSTATE (40001 serialization, 40P01 deadlock) and by
      SQLite's "database is locked" so tests exercise the same path
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import text

from app.core.errors import ConflictError, DatabaseError, TransientWriteError

logger = logging.getLogger(__name__)

_TRANSIENT_SQLSTATES = frozenset({"40001", "40P01", "55P03"})
_TRANSIENT_MARKERS = ("database is locked", "could not serialize", "deadlock detected")


def is_transient(exc: DBAPIError) -> bool:
    """True for write conflicts that a fresh attempt of the same transaction may survive."""
    if exc.connection_invalidated:
        return True
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _TRANSIENT_SQLSTATES:
        return True
    text_ = str(orig).lower()
    return any(marker in text_ for marker in _TRANSIENT_MARKERS)


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.engine = create_async_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except IntegrityError as e:
            await session.rollback()
            logger.warning(f"DB integrity error: {e}")
            raise ConflictError("Integrity constraint violated") from e
        except (OperationalError, DBAPIError) as e:
            await session.rollback()
            if is_transient(e):
                logger.warning(f"DB transient write conflict: {e}")
                raise TransientWriteError(str(e.orig)) from e
            logger.error(f"DB driver error: {e}")
            raise DatabaseError("Connection or driver error", "execute") from e
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise DatabaseError("Database operation failed", "unknown") from e
        finally:
            await session.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Session with an open transaction: commit on exit, rollback on any exception."""
        async with self.session() as session:
            async with session.begin():
                yield session

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


def get_manager() -> DatabaseSessionManager:
    if not db_manager:
        raise RuntimeError("Database not initialized")
    return db_manager
