"""Database configuration and session management.

This module provides:
- Async SQLAlchemy engine (asyncpg in production, aiosqlite in tests)
- Session factory used by the repositories
- FastAPI dependency for request-scoped sessions
- Database initialization and reset utilities
"""

import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from autotranslate.config.settings import settings

logger = logging.getLogger(__name__)

DB_POOL_SIZE = 10
DB_POOL_MAX_OVERFLOW = 20

DATABASE_URL = settings.database_url

# SQLite (tests, local runs) does not take pool sizing arguments
_pool_args = {}
if not DATABASE_URL.startswith("sqlite"):
    _pool_args = {
        "pool_pre_ping": True,
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_POOL_MAX_OVERFLOW,
    }

# Create async engine
engine = create_async_engine(
    DATABASE_URL,
    echo=settings.DEBUG,
    future=True,
    **_pool_args
)

# Create async session factory
AsyncSessionLocal = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Base class for models
Base = declarative_base()


async def init_db():
    """Initialize database by creating all tables.

    Safe to call multiple times (idempotent operation).
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized successfully")
