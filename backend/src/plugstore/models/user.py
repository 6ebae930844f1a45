"""User account model."""

from sqlalchemy import JSON, Boolean, Column, String
from sqlalchemy.orm import relationship

from .base import BaseModel

USERNAME_MIN_LENGTH = 5
USERNAME_MAX_LENGTH = 15
EMAIL_MIN_LENGTH = 5
EMAIL_MAX_LENGTH = 40
TITLE_MAX_LENGTH = 50
BIO_MAX_LENGTH = 150
DEFAULT_TITLE = "New User"


class User(BaseModel):
    """Registered store user. Authors plugins and stars them."""

    __tablename__ = "users"

    username = Column(String(USERNAME_MAX_LENGTH), unique=True, nullable=False, index=True)
    email = Column(String(EMAIL_MAX_LENGTH), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False, default=DEFAULT_TITLE)
    bio = Column(String(BIO_MAX_LENGTH), nullable=True)
    profile_picture = Column(String, nullable=True)
    is_supporter = Column(Boolean, nullable=False, default=False)
    preferences = Column(JSON, nullable=True)

    sessions = relationship("ActiveSession", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    stars = relationship("PluginStar", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<User(username='{self.username}')>"
