"""
Database models for the Plugstore backend.

This package contains SQLAlchemy models for all database tables
used by the store.
"""

from .base import Base, BaseModel
from .plugin import Plugin, PluginDependency
from .release import Release
from .session import ActiveSession
from .star import PluginStar
from .user import User

__all__ = [
    "ActiveSession",
    "Base",
    "BaseModel",
    "Plugin",
    "PluginDependency",
    "PluginStar",
    "Release",
    "User",
]
