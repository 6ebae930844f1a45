"""Login session model backing the session cookie."""

from sqlalchemy import TIMESTAMP, Column, ForeignKey, String
from sqlalchemy.orm import relationship

from ..core.database import Base
from .base import utcnow


class ActiveSession(Base):
    """One row per issued session id; deleted on logout."""

    __tablename__ = "active_sessions"

    session_id = Column(String(64), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False)

    user = relationship("User", back_populates="sessions")

    def __repr__(self):
        return f"<ActiveSession(user_id='{self.user_id}', expires_at='{self.expires_at}')>"
