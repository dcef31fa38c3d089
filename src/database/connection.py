"""
Database connection management using SQLAlchemy with async support.

PostgreSQL (asyncpg) is used when DB_HOST is configured, otherwise an
embedded SQLite file (aiosqlite).
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from shared.utils.config import Settings, get_settings
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

# Base class for all models
Base = declarative_base()

# Process-wide engine
_engine: AsyncEngine | None = None


def get_database_url(settings: Optional[Settings] = None) -> str:
    """
    Get the database URL for async connections.

    Returns:
        Database URL with asyncpg or aiosqlite driver
    """
    db_url = (settings or get_settings()).DATABASE_URL
    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif db_url.startswith("sqlite://"):
        db_url = db_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return db_url


def create_engine(db_url: str, settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Create an async engine for a database URL.

    Pool settings apply to server databases only. SQLite engines get their
    parent directory created and foreign key enforcement switched on for
    every connection.

    Args:
        db_url: Async SQLAlchemy URL
        settings: Settings providing pool configuration

    Returns:
        AsyncEngine instance
    """
    settings = settings or get_settings()
    url = make_url(db_url)

    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Creating database engine: sqlite ({url.database})")
        engine = create_async_engine(
            db_url,
            echo=settings.DATABASE_ECHO,
            connect_args={"check_same_thread": False},
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    logger.info(f"Creating database engine: {url.host}:{url.port}/{url.database}")  # Log without credentials
    return create_async_engine(
        db_url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=settings.DATABASE_POOL_PRE_PING,
        pool_recycle=settings.DATABASE_POOL_RECYCLE,
        echo=settings.DATABASE_ECHO,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_engine() -> AsyncEngine:
    """
    Get or create the process-wide async database engine.

    Returns:
        AsyncEngine instance
    """
    global _engine

    if _engine is None:
        settings = get_settings()
        _engine = create_engine(get_database_url(settings), settings)

    return _engine


@asynccontextmanager
async def session_scope(
    session_maker: async_sessionmaker[AsyncSession]
) -> AsyncGenerator[AsyncSession, None]:
    """
    Open a session that commits on success and rolls back on error.

    Yields:
        AsyncSession instance

    Example:
        async with session_scope(session_maker) as session:
            result = await session.execute(query)
    """
    session = session_maker()

    try:
        yield session
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Database session error: {e}")
        raise
    finally:
        await session.close()


async def create_tables(engine: Optional[AsyncEngine] = None):
    """
    Create the table metadata tables.
    Used for testing or initial setup.
    In production, use Alembic migrations instead.
    """
    from src.database import models  # noqa: F401  (registers models on Base)

    engine = engine or get_engine()

    logger.info("Creating database tables...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created successfully")


async def check_connection(engine: Optional[AsyncEngine] = None) -> bool:
    """
    Check if database connection is working.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        engine = engine or get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection check: SUCCESS")
        return True
    except Exception as e:
        logger.error(f"Database connection check: FAILED - {e}")
        return False
