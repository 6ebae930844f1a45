"""
Shared pytest fixtures and path setup for unit tests.
"""

import os
import sys
from pathlib import Path

# Set required environment variables BEFORE any plugstore imports to prevent
# Pydantic Settings validation errors. These are test-only defaults.
os.environ.setdefault("PLUGSTORE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PLUGSTORE_LOG_TO_FILE", "false")
os.environ.setdefault("PLUGSTORE_LOG_LEVEL", "WARNING")
os.environ.setdefault("PLUGSTORE_MASTER_API_KEY", "test-master-key")
os.environ.setdefault("PLUGSTORE_BCRYPT_ROUNDS", "4")
os.environ.setdefault("PLUGSTORE_SESSION_COOKIE_SECURE", "false")

# Add backend/src to sys.path so plugstore.* imports work when running pytest from repo root.
PROJECT_SRC = Path(__file__).resolve().parents[2]
if str(PROJECT_SRC) not in sys.path:
    sys.path.insert(0, str(PROJECT_SRC))

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from plugstore.core.database import Base
from plugstore.models.plugin import Plugin
from plugstore.models.registry import register_all_models
from plugstore.models.user import User
from plugstore.services.user_service import hash_password


@pytest.fixture
async def db_engine():
    """In-memory SQLite engine with foreign keys enforced, schema created."""
    register_all_models()
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    session_local = async_sessionmaker(db_engine, expire_on_commit=False, autoflush=False)
    async with session_local() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    """Factory inserting a user row; returns the User."""

    async def _make(username: str = "alice01", email: str | None = None, password: str = "password123") -> User:
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hash_password(password, rounds=4),
            title="New User",
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_plugin(db_session):
    """Factory inserting a bare plugin row (no edges); returns the Plugin."""

    async def _make(name: str, author_id: str = "author-1", tags: list[str] | None = None) -> Plugin:
        plugin = Plugin(
            name=name,
            description=None,
            license="MIT",
            target_platform=["Extera"],
            tags=tags or [],
            author_id=author_id,
            releases=[],
        )
        db_session.add(plugin)
        await db_session.commit()
        return plugin

    return _make


@pytest.fixture
def accept_all_authors():
    validator = MagicMock()
    validator.validate_user = AsyncMock(return_value=True)
    return validator
