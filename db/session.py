"""
db/session.py — Database Connection & Session Management
=========================================================
Async SQLAlchemy engine for the audit trail archive.
Called by main.py on startup via init_db().

Routes use get_db() as a FastAPI dependency to get a DB session.
"""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from config import settings
import logging

logger = logging.getLogger("medledger.db")

# Convert standard postgres:// URL to async postgresql+asyncpg://
DATABASE_URL = settings.DATABASE_URL.replace(
    "postgresql://", "postgresql+asyncpg://"
)

# SQLite pools don't take sizing arguments
_pool_options = {} if DATABASE_URL.startswith("sqlite") else {
    "pool_size": settings.DB_POOL_SIZE,
    "max_overflow": settings.DB_MAX_OVERFLOW,
}

engine = create_async_engine(
    DATABASE_URL,
    echo=settings.DEBUG,   # logs all SQL in debug mode
    **_pool_options,
)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class all database models inherit from."""
    pass


async def init_db(bind=None):
    """Create all tables on startup if they don't exist."""
    from db.models import AuditEventRecord  # noqa — import triggers table registration
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created / verified.")


async def get_db():
    """
    FastAPI dependency — yields a DB session per request.

    Usage in any route:
        async def my_endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
