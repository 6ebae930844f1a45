"""Cookie session service.

A session is a random opaque id stored in ``active_sessions`` with an
expiry. The id travels in an HttpOnly cookie; nothing else about the user is
kept client-side.
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import AuthenticationError, NotFoundError
from ..core.logging import get_logger
from ..models.session import ActiveSession
from ..models.user import User
from .user_service import verify_password

# bcrypt hash of a random string; keeps unknown-user logins as slow as real ones
_DUMMY_HASH = "$2b$12$C6UzMDM.H6dfI/f/IKcEeO5fpJqWcXzqk5ExrC0v7ZT3K.3A8C5qe"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class SessionService:
    def __init__(self, db: AsyncSession, ttl_seconds: int, logger: logging.Logger | None = None) -> None:
        self.db = db
        self.ttl = timedelta(seconds=ttl_seconds)
        self.logger = logger or get_logger(__name__)

    async def create_session(self, username: str, password: str) -> tuple[ActiveSession, User]:
        """Check credentials and issue a new session.

        Raises:
            AuthenticationError: unknown username or wrong password

        """
        result = await self.db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()

        password_ok = verify_password(password, user.password_hash if user else _DUMMY_HASH)
        if user is None or not password_ok:
            self.logger.warning("Login failed", extra={"username": username})
            raise AuthenticationError("Invalid username or password")

        now = datetime.now(UTC)
        session = ActiveSession(
            session_id=secrets.token_urlsafe(32),
            user_id=user.id,
            created_at=now,
            expires_at=now + self.ttl,
        )
        self.db.add(session)
        await self.db.commit()
        self.logger.info("Session created", extra={"user_id": user.id})
        return session, user

    async def validate_session(self, session_id: str | None) -> User:
        """Return the session's user, or raise if the session is unknown or expired."""
        if not session_id:
            raise AuthenticationError("Not logged in")

        session = await self.db.get(ActiveSession, session_id)
        if session is None:
            raise AuthenticationError("Session not found")

        if _as_utc(session.expires_at) <= datetime.now(UTC):
            await self.db.delete(session)
            await self.db.commit()
            raise AuthenticationError("Session expired")

        user = await self.db.get(User, session.user_id)
        if user is None:
            raise AuthenticationError("Session user no longer exists")
        return user

    async def expire_session(self, session_id: str | None) -> None:
        """Delete the session. Raises NotFoundError if it does not exist."""
        if not session_id:
            raise NotFoundError("Session not found")
        result = await self.db.execute(delete(ActiveSession).where(ActiveSession.session_id == session_id))
        if result.rowcount == 0:
            raise NotFoundError("Session not found")
        await self.db.commit()
        self.logger.info("Session expired")
