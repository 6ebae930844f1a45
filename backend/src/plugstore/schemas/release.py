"""Pydantic schemas for plugin releases."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ReleaseCreate(BaseModel):
    """Body for publishing a release. Lengths are checked by ReleaseService."""

    version: str = Field(..., description="Release number, 3-9 characters")
    release_notes: str | None = Field(None, description="Up to 100 characters")
    file_reference: str | None = None
    release_hash: str | None = Field(None, description="SHA-256 of the release file")


class ReleaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    plugin_id: str
    version: str
    release_notes: str | None = None
    file_reference: str | None = None
    release_hash: str | None = None
    downloads: int = 0
    created_at: datetime


class ReleaseFileResponse(BaseModel):
    """Result of storing an uploaded release file."""

    plugin_id: str
    release_id: str
    filename: str
    file_path: str
    size: int
    sha256: str


class PluginFilesResponse(BaseModel):
    plugin_id: str
    files: list[str]
