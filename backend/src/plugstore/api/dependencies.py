"""
FastAPI dependencies for the Plugstore backend.

Database sessions, service construction, session-cookie authentication and
the master API key guard.
"""

import secrets
from collections.abc import AsyncGenerator
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings, get_settings_instance
from ..core.database import get_db as core_get_db
from ..core.exceptions import AuthenticationError, AuthorizationError, ConfigurationError
from ..core.http_client import get_http_client
from ..core.logging import get_logger
from ..models.user import User
from ..services.dispatch_service import OperationDispatcher
from ..services.plugin_service import PluginService
from ..services.release_file_storage import ReleaseFileStorage
from ..services.release_service import ReleaseService
from ..services.session_service import SessionService
from ..services.star_service import StarService
from ..services.user_client import AuthorValidator, LocalUserValidator, UserServiceClient
from ..services.user_service import UserService

logger = get_logger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency."""
    async for session in core_get_db():
        yield session


def get_settings() -> Settings:
    return get_settings_instance()


def get_storage(settings: Settings = Depends(get_settings)) -> ReleaseFileStorage:
    return ReleaseFileStorage(settings.storage_root, settings.max_upload_size, logger=get_logger("storage"))


async def get_author_validator(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthorValidator:
    if settings.user_service_url:
        client = await get_http_client()
        return UserServiceClient(settings.user_service_url, client, logger=get_logger("user_client"))
    return LocalUserValidator(db)


def get_plugin_service(
    db: AsyncSession = Depends(get_db),
    author_validator: AuthorValidator = Depends(get_author_validator),
    storage: ReleaseFileStorage = Depends(get_storage),
) -> PluginService:
    return PluginService(db, author_validator, storage=storage, logger=get_logger("plugin_service"))


def get_release_service(
    db: AsyncSession = Depends(get_db),
    storage: ReleaseFileStorage = Depends(get_storage),
) -> ReleaseService:
    return ReleaseService(db, storage=storage, logger=get_logger("release_service"))


def get_user_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UserService:
    return UserService(db, bcrypt_rounds=settings.bcrypt_rounds, logger=get_logger("user_service"))


def get_star_service(db: AsyncSession = Depends(get_db)) -> StarService:
    return StarService(db, logger=get_logger("star_service"))


def get_session_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> SessionService:
    return SessionService(db, settings.session_ttl_seconds, logger=get_logger("session_service"))


def get_dispatcher(
    plugins: PluginService = Depends(get_plugin_service),
    releases: ReleaseService = Depends(get_release_service),
    users: UserService = Depends(get_user_service),
) -> OperationDispatcher:
    return OperationDispatcher(plugins, releases, users)


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip()
    return None


def _is_master_key(request: Request, settings: Settings) -> bool:
    token = _bearer_token(request)
    if token is None:
        return False
    if not settings.master_api_key:
        raise ConfigurationError("Master API key is not configured")
    return secrets.compare_digest(token, settings.master_api_key)


async def require_session(
    request: Request,
    sessions: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
) -> User:
    """Resolve the logged-in user from the session cookie."""
    user = await sessions.validate_session(request.cookies.get(settings.session_cookie_name))
    request.state.user_id = user.id
    return user


async def require_master_key(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """Allow only requests carrying ``Authorization: Bearer <master key>``."""
    if _bearer_token(request) is None:
        raise AuthenticationError("Master API key required")
    if not _is_master_key(request, settings):
        raise AuthorizationError("Invalid master API key")


@dataclass
class Caller:
    """Who is making a write request: a logged-in user, the master key, or both."""

    user: User | None
    is_master: bool = False

    def ensure_can_modify(self, author_id: str) -> None:
        if self.is_master:
            return
        if self.user is None or self.user.id != author_id:
            raise AuthorizationError("Only the plugin author can modify this plugin")


async def require_caller(
    request: Request,
    sessions: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
) -> Caller:
    """Accept either the master key or a valid session cookie."""
    if _bearer_token(request) is not None:
        if not _is_master_key(request, settings):
            raise AuthorizationError("Invalid master API key")
        return Caller(user=None, is_master=True)
    user = await sessions.validate_session(request.cookies.get(settings.session_cookie_name))
    request.state.user_id = user.id
    return Caller(user=user)
