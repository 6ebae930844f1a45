"""
Base model class for the Plugstore backend.

This module provides the base model class with common functionality
for all database models.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import TIMESTAMP, Column, String
from sqlalchemy.exc import MissingGreenlet

# Import Base from the database module to avoid duplicate declarations
from ..core.database import Base


def utcnow() -> datetime:
    return datetime.now(UTC)


class TimestampMixin:
    """Mixin for adding timestamp columns to models."""

    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class UUIDMixin:
    """Mixin for adding UUID primary key to models."""

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))


class BaseModel(Base, TimestampMixin, UUIDMixin):
    """Base model class with common functionality."""

    __abstract__ = True

    def to_dict(self) -> dict:
        """Convert model to dictionary."""
        result = {}
        for attr in self.__mapper__.column_attrs:
            try:
                result[attr.key] = getattr(self, attr.key)
            except MissingGreenlet:
                # Deferred field touched outside the async context
                result[attr.key] = None
        return result

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"
