"""Read-only operation dispatch.

Every OperationKind is bound to exactly one handler at import time; a kind
without a handler fails the import rather than a request.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from ..schemas.dispatch import (
    OperationKind,
    PluginsGetRequest,
    PluginsLatestReleaseRequest,
    PluginsReleasesRequest,
    ReleasesGetRequest,
    UsersByUsernameRequest,
    UsersGetRequest,
)
from ..schemas.release import ReleaseResponse
from ..schemas.user import UserResponse
from .plugin_service import PluginService
from .release_service import ReleaseService
from .user_service import UserService

Handler = Callable[["OperationDispatcher", Any], Awaitable[Any]]

_HANDLERS: dict[OperationKind, Handler] = {}


def handles(kind: OperationKind) -> Callable[[Handler], Handler]:
    def register(func: Handler) -> Handler:
        if kind in _HANDLERS:
            raise RuntimeError(f"Operation {kind.value} already has a handler")
        _HANDLERS[kind] = func
        return func

    return register


class OperationDispatcher:
    def __init__(self, plugins: PluginService, releases: ReleaseService, users: UserService) -> None:
        self.plugins = plugins
        self.releases = releases
        self.users = users

    async def dispatch(self, request: Any) -> Any:
        handler = _HANDLERS[OperationKind(request.op)]
        return await handler(self, request)

    @handles(OperationKind.PLUGINS_ALL)
    async def _plugins_all(self, request) -> Any:
        return await self.plugins.list_plugins()

    @handles(OperationKind.PLUGINS_NAMES)
    async def _plugins_names(self, request) -> Any:
        return await self.plugins.list_plugin_names()

    @handles(OperationKind.PLUGINS_GET)
    async def _plugins_get(self, request: PluginsGetRequest) -> Any:
        return await self.plugins.get_plugin(request.plugin_id)

    @handles(OperationKind.PLUGINS_RELEASES)
    async def _plugins_releases(self, request: PluginsReleasesRequest) -> Any:
        releases = await self.releases.list_releases(request.plugin_id)
        return [ReleaseResponse.model_validate(r) for r in releases]

    @handles(OperationKind.PLUGINS_LATEST_RELEASE)
    async def _plugins_latest_release(self, request: PluginsLatestReleaseRequest) -> Any:
        return ReleaseResponse.model_validate(await self.releases.get_latest_release(request.plugin_id))

    @handles(OperationKind.PLUGINS_COUNT)
    async def _plugins_count(self, request) -> Any:
        return await self.plugins.count_stuff()

    @handles(OperationKind.RELEASES_GET)
    async def _releases_get(self, request: ReleasesGetRequest) -> Any:
        return ReleaseResponse.model_validate(await self.releases.get_release(request.release_id))

    @handles(OperationKind.USERS_GET)
    async def _users_get(self, request: UsersGetRequest) -> Any:
        return UserResponse.model_validate(await self.users.get_user_by_id(request.user_id))

    @handles(OperationKind.USERS_BY_USERNAME)
    async def _users_by_username(self, request: UsersByUsernameRequest) -> Any:
        return UserResponse.model_validate(await self.users.get_user_by_username(request.username))


_unbound = set(OperationKind) - set(_HANDLERS)
if _unbound:
    raise RuntimeError(f"Operations without a handler: {sorted(k.value for k in _unbound)}")
