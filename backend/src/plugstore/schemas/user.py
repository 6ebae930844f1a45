"""Pydantic schemas for user accounts."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    """Registration body. Username/email rules are enforced by UserService."""

    username: str
    email: str
    password: str = Field(..., min_length=8, max_length=128)
    profile_picture: str | None = None


class UserResponse(BaseModel):
    """Public view of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    title: str
    bio: str | None = None
    profile_picture: str | None = None
    is_supporter: bool = False
    created_at: datetime


class UserPrivateResponse(UserResponse):
    """View of a user returned to the user themselves or to admins."""

    email: str
    preferences: dict[str, Any] | None = None
    updated_at: datetime


class UsernameUpdate(BaseModel):
    new_username: str


class TitleUpdate(BaseModel):
    new_title: str


class BioUpdate(BaseModel):
    new_bio: str | None = None


class SupporterUpdate(BaseModel):
    status: bool


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=128)


class PreferencesUpdate(BaseModel):
    preferences: dict[str, Any]


class ProfileUpdate(BaseModel):
    username: str | None = None
    title: str | None = None
    bio: str | None = None
    profile_picture: str | None = None
    preferences: dict[str, Any] | None = None
