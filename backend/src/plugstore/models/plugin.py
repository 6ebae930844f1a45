"""Plugin and plugin dependency models.

Dependency edges point from the dependent plugin to the plugin it depends on.
The edge set must stay acyclic; services/dependency_graph.py enforces that
before any edge is inserted.
"""

from sqlalchemy import JSON, Boolean, Column, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel

NAME_MIN_LENGTH = 5
NAME_MAX_LENGTH = 15
DESCRIPTION_MAX_LENGTH = 300

VALID_LICENSES = ["MIT", "Apache-2.0", "GPL-3.0", "BSD-3-Clause", "ISC", "Custom"]
VALID_PLATFORMS = ["Extera", "AltUI"]
ALL_TAGS = [
    "Utility",
    "Fun",
    "Interface",
    "Media",
    "Productivity",
    "Social",
    "Customization",
    "Developer",
    "Library",
]


class Plugin(BaseModel):
    """A plugin listed in the store."""

    __tablename__ = "plugins"

    name = Column(String(NAME_MAX_LENGTH), unique=True, nullable=False, index=True)
    description = Column(String(DESCRIPTION_MAX_LENGTH), nullable=True)
    license = Column(String(20), nullable=False)
    target_platform = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    # Not a foreign key: authors may live in the remote user service
    author_id = Column(String(36), nullable=False, index=True)
    fork_origin_id = Column(String(36), ForeignKey("plugins.id", ondelete="SET NULL"), nullable=True, index=True)

    releases = relationship(
        "Release",
        back_populates="plugin",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="Release.created_at.desc()",
    )

    def __repr__(self):
        return f"<Plugin(name='{self.name}')>"


class PluginDependency(BaseModel):
    """Directed edge: dependent_plugin_id depends on dependency_plugin_id."""

    __tablename__ = "plugin_dependencies"

    dependent_plugin_id = Column(
        String(36), ForeignKey("plugins.id", ondelete="CASCADE"), nullable=False, index=True
    )
    dependency_plugin_id = Column(
        String(36), ForeignKey("plugins.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version = Column(String(20), nullable=True)
    is_optional = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("dependent_plugin_id", "dependency_plugin_id", name="uq_plugin_dependency_pair"),
    )

    def __repr__(self):
        return f"<PluginDependency({self.dependent_plugin_id} -> {self.dependency_plugin_id})>"
