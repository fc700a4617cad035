"""
Async engine, session factory and the transactional scope used by services.

TRANSACTION MODEL
=================
Every mutating service operation runs inside `atomic(db)`:
  - commit once the whole operation succeeded
  - roll back everything on any failure, so partial application is never
    observable to another caller
  - IntegrityError (a unique/check constraint fired, usually a lost race)
    surfaces as ConflictError; any other SQLAlchemyError as StoreError

Both PostgreSQL (asyncpg) and SQLite (aiosqlite) are supported. The only
dialect-specific SQL is INSERT ... ON CONFLICT, built by `dialect_insert`.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import ConflictError, StoreError
from ticket_manager.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """Run a block as one transaction: commit on success, full rollback on failure."""
    try:
        yield db
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("transaction_conflict", error=str(e.orig))
        raise ConflictError("Conflicting concurrent write, nothing was applied") from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("transaction_failed", error=str(e))
        raise StoreError("Storage failure, nothing was applied") from e
    except BaseException:
        await db.rollback()
        raise


def dialect_name(db: AsyncSession) -> str:
    return db.get_bind().dialect.name


def dialect_insert(db: AsyncSession, model):
    """INSERT for `model` supporting on_conflict_do_nothing()/on_conflict_do_update() on this dialect."""
    name = dialect_name(db)
    if name == "postgresql":
        return postgresql.insert(model)
    if name == "sqlite":
        return sqlite.insert(model)
    raise StoreError(f"Unsupported database dialect: {name}")
