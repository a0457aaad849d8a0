"""Database connection, session and transaction management."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.core.config import settings
from app.core.errors import ConflictError, StoreError, ValidationError
from app.db.models import Base

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATE for unique_violation on PostgreSQL
UNIQUE_VIOLATION = "23505"


def normalize_database_url(url: str) -> str:
    """Select the async driver for plain postgresql:// and sqlite:// URLs."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


database_url = normalize_database_url(settings.database_url)

# SQL echo goes through logging, see setup_logging
engine = create_async_engine(database_url, pool_pre_ping=True)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def init_db() -> None:
    """Initialize database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def reset_db(session: AsyncSession) -> None:
    """Delete every row from every table. Keeps the schema."""
    logger.info("Resetting database: deleting all rows...")
    async with atomic(session, settings.db_timeout_seconds):
        # Children first so foreign keys hold on every backend
        for table in reversed(Base.metadata.sorted_tables):
            await session.execute(table.delete())
    logger.info("Database reset complete: all tables are now empty")


async def get_db() -> AsyncIterator[AsyncSession]:
    """Dependency for getting database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def is_unique_violation(error: IntegrityError) -> bool:
    """True when the driver reports a duplicate value for a unique column."""
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION
    # sqlite3 only reports the message, e.g. "UNIQUE constraint failed: ingredients.name"
    return "unique constraint" in str(orig).lower()


async def bounded(awaitable: Awaitable[T], timeout: Optional[float]) -> T:
    """Await a store call, failing with StoreError once ``timeout`` seconds pass."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.error(f"Database call exceeded {timeout}s timeout")
        raise StoreError("Database operation timed out") from e


@asynccontextmanager
async def atomic(session: AsyncSession, timeout: Optional[float]) -> AsyncIterator[AsyncSession]:
    """Run a block of writes as one transaction.

    Commits when the block finishes, rolls back on any exception. SQLAlchemy
    failures are re-raised as ConflictError (duplicate unique values),
    ValidationError (NOT NULL, foreign key and check violations) or StoreError;
    domain errors raised inside the block pass through unchanged.
    """
    try:
        yield session
        await bounded(session.commit(), timeout)
    except IntegrityError as e:
        await session.rollback()
        logger.warning(f"Transaction rolled back on integrity error: {e.orig}")
        if is_unique_violation(e):
            raise ConflictError("Record conflicts with existing data") from e
        raise ValidationError("Record is missing a required value or references a missing record") from e
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Transaction rolled back: {type(e).__name__}: {e}", exc_info=True)
        raise StoreError() from e
    except BaseException:
        await session.rollback()
        raise
