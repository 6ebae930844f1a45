"""Pydantic schemas for plugin stars."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from .plugin import PluginResponse


class StarResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    plugin_id: str
    created_at: datetime


class StarToggleResponse(BaseModel):
    starred: bool


class StarCountResponse(BaseModel):
    plugin_id: str
    stars_count: int


class StarredPlugin(PluginResponse):
    """Starred plugin with only its latest release attached."""

    starred_at: datetime


class StarredUser(BaseModel):
    user_id: str
    starred_at: datetime
