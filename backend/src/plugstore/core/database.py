"""
Database connection and session management for the Plugstore backend.

This module provides database connection management, session handling,
and utilities for database operations.
"""

import os
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .config import get_settings_instance
from .exceptions import DatabaseConnectionError, DatabaseSessionError
from .logging import get_logger

logger = get_logger(__name__)

# Create declarative base
Base = declarative_base()

# Global async engine and session factory - lazy initialization
_async_engine: AsyncEngine | None = None
_AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


def get_database_url() -> str:
    env_url = os.getenv("PLUGSTORE_DATABASE_URL")
    if env_url:
        return env_url
    try:
        return get_settings_instance().database_url
    except Exception:
        logger.error("Could not determine database URL from environment or settings", exc_info=True)
        raise DatabaseConnectionError(
            "Could not determine database URL. Please set PLUGSTORE_DATABASE_URL."
        )


def _describe_url(database_url: str) -> str:
    """Return host/database part of a URL without credentials."""
    if "@" in database_url:
        return database_url.split("@", 1)[1].split("?")[0]
    return database_url.split("://", 1)[0]


def get_async_engine() -> AsyncEngine:
    global _async_engine  # noqa: PLW0603
    if _async_engine is None:
        try:
            database_url = get_database_url()
            settings = get_settings_instance()
            logger.debug(f"Database configuration: {_describe_url(database_url)}")

            engine_kwargs: dict = {"pool_pre_ping": True, "echo": False}
            # SQLite (local tooling) uses a static pool without sizing options
            if not database_url.startswith("sqlite"):
                engine_kwargs.update(
                    pool_size=settings.database_pool_size,
                    max_overflow=settings.database_max_overflow,
                    pool_timeout=settings.database_pool_timeout,
                    pool_recycle=settings.database_pool_recycle,
                )
            _async_engine = create_async_engine(database_url, **engine_kwargs)
        except Exception as e:
            logger.error(f"Failed to create async database engine: {e}")
            raise DatabaseConnectionError(f"engine creation: {e}")
    return _async_engine


def get_async_session_local() -> async_sessionmaker[AsyncSession]:
    global _AsyncSessionLocal  # noqa: PLW0603
    if _AsyncSessionLocal is None:
        try:
            _AsyncSessionLocal = async_sessionmaker(
                bind=get_async_engine(),
                expire_on_commit=False,
                autoflush=False,
                class_=AsyncSession,
            )
        except DatabaseConnectionError:
            raise
        except Exception as e:
            logger.error(f"Failed to create async session factory: {e}")
            raise DatabaseSessionError(f"session factory creation: {e}")
    return _AsyncSessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    session_local = get_async_session_local()
    async with session_local() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            logger.error(f"Database session error: {e}")
            await session.rollback()
            raise DatabaseSessionError(f"session operation: {e}")


async def init_db() -> None:
    """Create any missing tables. Migrations remain the source of truth in production."""
    try:
        from ..models.registry import register_all_models

        register_all_models()
        engine = get_async_engine()
        logger.debug(f"Initializing database tables: {_describe_url(get_database_url())}")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise DatabaseSessionError(f"database initialization: {e}")


async def close_db() -> None:
    global _async_engine, _AsyncSessionLocal  # noqa: PLW0603
    if _async_engine is None:
        return
    try:
        await _async_engine.dispose()
        logger.debug("Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database connections: {e}")
    finally:
        _async_engine = None
        _AsyncSessionLocal = None


async def check_db_connection() -> bool:
    """Check if database connection is working."""
    try:
        engine = get_async_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
