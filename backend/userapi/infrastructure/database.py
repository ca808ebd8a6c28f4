"""Database Session Manager: one async engine per process, sessions that never leak driver errors.

Invariants:
    - A failing session is rolled back and closed before the error leaves it
    - Driver and SQLAlchemy failures leave as StoreError tagged with the
      operation that failed; the driver text goes to the logs only
    - Text the driver cannot encode is a store failure too, not a crash

Design Decisions:
    - Constructed in the FastAPI lifespan and kept on app.state; no module-level singleton
    - expire_on_commit=False: rows stay readable after the session closes
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from userapi.core.errors import StoreError

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError are DBAPIErrors.
_FAILED_OPERATION: tuple[tuple[type[Exception], str], ...] = (
    (IntegrityError, "commit"),
    (OperationalError, "execute"),
    (DBAPIError, "query"),
    (SQLAlchemyError, "unknown"),
    (UnicodeEncodeError, "encode"),
)
_STORE_FAILURES = tuple(exc_type for exc_type, _ in _FAILED_OPERATION)


def failed_operation(exc: Exception) -> str:
    """Name the store operation an exception belongs to."""
    for exc_type, operation in _FAILED_OPERATION:
        if isinstance(exc, exc_type):
            return operation
    return "unknown"


class DatabaseSessionManager:
    """Owns the engine; hands out sessions that translate failures to StoreError."""

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
        session = self._session_factory()
        try:
            yield session
        except _STORE_FAILURES as e:
            await session.rollback()
            operation = failed_operation(e)
            logger.error(
                f"Store {operation} failed: {type(e).__name__}: {e}",
                extra={"operation": operation},
            )
            raise StoreError(str(e), operation) from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Run SELECT 1; used by the startup ping and the readiness probe."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.engine.dispose()
