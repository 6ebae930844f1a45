"""Plugin star (user bookmark) model."""

from sqlalchemy import Column, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel


class PluginStar(BaseModel):
    """A user starring a plugin. created_at is the starred-at time."""

    __tablename__ = "plugin_stars"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plugin_id = Column(String(36), ForeignKey("plugins.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="stars")

    __table_args__ = (UniqueConstraint("user_id", "plugin_id", name="uq_plugin_star_user_plugin"),)
