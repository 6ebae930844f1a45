"""
Pydantic schemas for plugins and their dependency edges.

Field rules (name length, license, platforms, tags) are enforced by
PluginService so that each violation maps to its own error code; the
schemas only describe shape.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .release import ReleaseResponse


class DependencySpec(BaseModel):
    """A dependency requested at creation time."""

    plugin_id: str = Field(..., description="ID of the plugin depended upon")
    version: str | None = Field(None, max_length=20)
    is_optional: bool = False


class PluginCreate(BaseModel):
    """Body for creating a plugin."""

    name: str
    description: str | None = None
    license: str
    target_platform: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    fork_origin_id: str | None = None
    dependencies: list[DependencySpec] = Field(default_factory=list)
    # Only honoured on admin requests; session requests use the logged-in user
    author_id: str | None = None

    @field_validator("dependencies", mode="before")
    @classmethod
    def accept_bare_ids(cls, v: Any) -> Any:
        """Allow ``["id1", "id2"]`` as shorthand for dependency specs."""
        if isinstance(v, list):
            return [{"plugin_id": item} if isinstance(item, str) else item for item in v]
        return v


class PluginUpdate(BaseModel):
    """Scalar fields that can change after creation."""

    name: str | None = None
    description: str | None = None
    tags: list[str] | None = None


class PluginSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None


class DependencySummary(BaseModel):
    plugin_id: str
    name: str
    version: str | None = None
    is_optional: bool = False


class PluginResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    license: str
    target_platform: list[str]
    tags: list[str]
    author_id: str
    fork_origin_id: str | None = None
    created_at: datetime
    updated_at: datetime
    releases: list[ReleaseResponse] = Field(default_factory=list)


class PluginDetail(PluginResponse):
    """Plugin with its fork origin and direct dependencies resolved."""

    fork_origin: PluginSummary | None = None
    dependencies: list[DependencySummary] = Field(default_factory=list)


class PluginName(BaseModel):
    id: str
    name: str


class PluginCounts(BaseModel):
    plugins: int
    releases: int


class DependencyCreate(BaseModel):
    dependency_plugin_id: str
    version: str | None = Field(None, max_length=20)
    is_optional: bool = False


class DependencyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    dependent_plugin_id: str
    dependency_plugin_id: str
    version: str | None = None
    is_optional: bool = False
    created_at: datetime
