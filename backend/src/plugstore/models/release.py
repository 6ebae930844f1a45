"""Plugin release model."""

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .base import BaseModel

VERSION_MIN_LENGTH = 3
VERSION_MAX_LENGTH = 9
RELEASE_NOTES_MAX_LENGTH = 100


class Release(BaseModel):
    """A versioned, downloadable build of a plugin."""

    __tablename__ = "releases"

    plugin_id = Column(String(36), ForeignKey("plugins.id", ondelete="CASCADE"), nullable=False, index=True)
    version = Column(String(VERSION_MAX_LENGTH), nullable=False)
    release_notes = Column(String(RELEASE_NOTES_MAX_LENGTH), nullable=True)
    file_reference = Column(String, nullable=True)
    release_hash = Column(String(64), nullable=True)
    downloads = Column(Integer, nullable=False, default=0)

    plugin = relationship("Plugin", back_populates="releases")

    def __repr__(self):
        return f"<Release(plugin_id='{self.plugin_id}', version='{self.version}')>"
