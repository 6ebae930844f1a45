"""Author validation: local users table or a remote user service.

PluginService only needs ``validate_user(author_id) -> bool``. When
PLUGSTORE_USER_SERVICE_URL is set, users are looked up over HTTP; otherwise
the local ``users`` table is used.
"""

import logging
from typing import Any, Protocol

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..models.user import User


class AuthorValidator(Protocol):
    async def validate_user(self, author_id: str) -> bool: ...


class LocalUserValidator:
    """Checks authors against the local users table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def validate_user(self, author_id: str) -> bool:
        if not author_id:
            return False
        return await self.db.get(User, author_id) is not None


class UserServiceClient:
    """Client for the remote user service.

    Lookups never raise: a 404 means "no such user" and transport,
    server or decode errors are logged and reported the same way, so callers can
    surface INVALID_AUTHOR instead of a 500.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient,
        logger: logging.Logger | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.logger = logger or get_logger(__name__)

    async def get_user(self, user_id: str) -> dict[str, Any] | None:
        try:
            response = await self.client.get(f"{self.base_url}/users/{user_id}")
            if response.status_code == 404:
                self.logger.warning("User not found", extra={"user_id": user_id})
                return None
            response.raise_for_status()
            self.logger.debug("User fetched", extra={"user_id": user_id})
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error("Failed to fetch user", extra={"user_id": user_id, "error": str(e)})
            return None

    async def get_users_by_ids(self, user_ids: list[str]) -> list[dict[str, Any]]:
        if not user_ids:
            return []
        try:
            response = await self.client.post(f"{self.base_url}/users/batch", json={"ids": user_ids})
            response.raise_for_status()
            users = response.json()
            self.logger.debug("Users batch fetched", extra={"count": len(users)})
            return users
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error("Failed to fetch users batch", extra={"user_ids": user_ids, "error": str(e)})
            return []

    async def get_user_by_username(self, username: str) -> dict[str, Any] | None:
        try:
            response = await self.client.get(f"{self.base_url}/users/by-username/{username}")
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error("Failed to fetch user by username", extra={"username": username, "error": str(e)})
            return None

    async def search_users(self, query: str, limit: int = 10) -> list[dict[str, Any]]:
        try:
            response = await self.client.get(
                f"{self.base_url}/users/search", params={"q": query, "limit": limit}
            )
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error("Failed to search users", extra={"query": query, "error": str(e)})
            return []

    async def validate_user(self, author_id: str) -> bool:
        if not author_id:
            return False
        return await self.get_user(author_id) is not None
