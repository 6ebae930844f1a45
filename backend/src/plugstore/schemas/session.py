"""Pydantic schemas for login sessions."""

from datetime import datetime

from pydantic import BaseModel

from .user import UserPrivateResponse


class LoginRequest(BaseModel):
    username: str
    password: str


class SessionResponse(BaseModel):
    user: UserPrivateResponse
    expires_at: datetime
