"""Database connection and session management.

This module provides async SQLAlchemy setup for SQLite (dev) and PostgreSQL
(prod). Engines are created from explicit settings and owned by the
application, not held in module globals.

Examples:
    >>> from blogstore.database import create_engine_from_settings, init_db
    >>> engine = create_engine_from_settings(settings)
    >>> await init_db(engine)  # Create tables
    >>> factory = create_session_factory(engine)
    >>> async with session_scope(factory) as session:
    ...     result = await session.execute(select(BlogPost))

Tests:
    - tests/unit/test_repository.py
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from blogstore.config import Settings
from blogstore.models import Base

logger = logging.getLogger(__name__)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the async database engine.

    Returns:
        AsyncEngine: SQLAlchemy async engine.

    Note:
        For SQLite, enables WAL mode and a busy timeout so concurrent
        writers wait instead of failing.
        For PostgreSQL, configures connection pooling.
    """
    if settings.is_sqlite:
        engine = create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            connect_args={"check_same_thread": False},
        )

        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

    else:
        engine = create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
        )

    logger.info(f"Database engine created: {settings.DATABASE_URL.split('@')[-1]}")
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session as an async context manager.

    Yields:
        AsyncSession: Database session.

    Note:
        Session is automatically committed on success, rolled back on error.
    """
    session = factory()

    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables. Called once at application startup."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created")


async def drop_db(engine: AsyncEngine) -> None:
    """Drop all database tables.

    Warning:
        This is destructive! Only use in testing or development.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    logger.warning("Database tables dropped")


async def check_db_connection(engine: AsyncEngine) -> bool:
    """Check if database is accessible.

    Returns:
        bool: True if database is healthy.
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
