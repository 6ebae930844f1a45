"""Plugin API endpoints.

Reads are public. Writes need a session cookie (author only) or the master
API key. Errors are PlugstoreExceptions rendered by the app-level handler.
"""

from fastapi import APIRouter, Depends, Query, status

from ..core.exceptions import AuthorizationError, SelfDependencyError
from ..core.logging import get_logger
from ..core.response import PlugstoreResponse
from ..schemas.plugin import DependencyCreate, PluginCreate, PluginUpdate
from ..schemas.release import ReleaseCreate, ReleaseResponse
from ..schemas.star import StarToggleResponse
from ..services.plugin_service import PluginService
from ..services.release_service import ReleaseService
from ..services.star_service import StarService
from .dependencies import (
    Caller,
    get_plugin_service,
    get_release_service,
    get_star_service,
    require_caller,
    require_session,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/plugins", tags=["plugins"])


@router.get("", summary="List plugins", description="All plugins, newest first, with their releases.")
async def list_plugins(service: PluginService = Depends(get_plugin_service)):
    return PlugstoreResponse.success(await service.list_plugins())


@router.get("/names", summary="List plugin names")
async def list_plugin_names(service: PluginService = Depends(get_plugin_service)):
    return PlugstoreResponse.success(await service.list_plugin_names())


@router.get("/count", summary="Count plugins and releases")
async def count_plugins(service: PluginService = Depends(get_plugin_service)):
    return PlugstoreResponse.success(await service.count_stuff())


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a plugin")
async def create_plugin(
    data: PluginCreate,
    caller: Caller = Depends(require_caller),
    service: PluginService = Depends(get_plugin_service),
):
    """Create a plugin with optional fork origin and dependencies.

    Session callers always author their own plugins; master-key callers must
    name the author in the body.
    """
    if caller.is_master:
        if not data.author_id:
            raise AuthorizationError("author_id is required when creating with the master key")
        author_id = data.author_id
    else:
        author_id = caller.user.id
    plugin = await service.create_plugin(data, author_id)
    return PlugstoreResponse.created(plugin)


@router.get("/{plugin_id}", summary="Get a plugin")
async def get_plugin(plugin_id: str, service: PluginService = Depends(get_plugin_service)):
    return PlugstoreResponse.success(await service.get_plugin(plugin_id))


@router.patch("/{plugin_id}", summary="Update plugin name, description or tags")
async def update_plugin(
    plugin_id: str,
    data: PluginUpdate,
    caller: Caller = Depends(require_caller),
    service: PluginService = Depends(get_plugin_service),
):
    plugin = await service.get_plugin(plugin_id)
    caller.ensure_can_modify(plugin.author_id)
    return PlugstoreResponse.success(await service.update_plugin(plugin_id, data))


@router.delete("/{plugin_id}", summary="Delete a plugin")
async def delete_plugin(
    plugin_id: str,
    caller: Caller = Depends(require_caller),
    service: PluginService = Depends(get_plugin_service),
):
    plugin = await service.get_plugin(plugin_id)
    caller.ensure_can_modify(plugin.author_id)
    await service.delete_plugin(plugin_id)
    return PlugstoreResponse.no_content()


# Dependencies
@router.get("/{plugin_id}/dependencies", summary="Plugins this plugin depends on")
async def list_dependencies(plugin_id: str, service: PluginService = Depends(get_plugin_service)):
    return PlugstoreResponse.success(await service.list_dependencies(plugin_id))


@router.get("/{plugin_id}/dependents", summary="Plugins that depend on this plugin")
async def list_dependents(plugin_id: str, service: PluginService = Depends(get_plugin_service)):
    return PlugstoreResponse.success(await service.list_dependents(plugin_id))


@router.post("/{plugin_id}/dependencies", status_code=status.HTTP_201_CREATED, summary="Add a dependency")
async def add_dependency(
    plugin_id: str,
    data: DependencyCreate,
    caller: Caller = Depends(require_caller),
    service: PluginService = Depends(get_plugin_service),
):
    # Self check precedes the ownership lookup
    if plugin_id == data.dependency_plugin_id:
        raise SelfDependencyError(plugin_id)
    if not caller.is_master:
        plugin = await service.get_plugin(plugin_id)
        caller.ensure_can_modify(plugin.author_id)
    edge = await service.add_dependency(plugin_id, data.dependency_plugin_id, data.version, data.is_optional)
    return PlugstoreResponse.created(edge)


@router.delete("/{plugin_id}/dependencies/{dependency_id}", summary="Remove a dependency")
async def remove_dependency(
    plugin_id: str,
    dependency_id: str,
    caller: Caller = Depends(require_caller),
    service: PluginService = Depends(get_plugin_service),
):
    plugin = await service.get_plugin(plugin_id)
    caller.ensure_can_modify(plugin.author_id)
    await service.remove_dependency(plugin_id, dependency_id)
    return PlugstoreResponse.no_content()


# Releases
@router.get("/{plugin_id}/releases", summary="List releases of a plugin")
async def list_releases(plugin_id: str, service: ReleaseService = Depends(get_release_service)):
    releases = await service.list_releases(plugin_id)
    return PlugstoreResponse.success([ReleaseResponse.model_validate(r) for r in releases])


@router.get("/{plugin_id}/releases/latest", summary="Latest release of a plugin")
async def latest_release(plugin_id: str, service: ReleaseService = Depends(get_release_service)):
    return PlugstoreResponse.success(ReleaseResponse.model_validate(await service.get_latest_release(plugin_id)))


@router.post("/{plugin_id}/releases", status_code=status.HTTP_201_CREATED, summary="Publish a release")
async def create_release(
    plugin_id: str,
    data: ReleaseCreate,
    caller: Caller = Depends(require_caller),
    plugins: PluginService = Depends(get_plugin_service),
    releases: ReleaseService = Depends(get_release_service),
):
    plugin = await plugins.get_plugin(plugin_id)
    caller.ensure_can_modify(plugin.author_id)
    release = await releases.create_release(plugin_id, data)
    return PlugstoreResponse.created(ReleaseResponse.model_validate(release))


# Stars
@router.get("/{plugin_id}/stars", summary="Star count for a plugin")
async def stars_count(plugin_id: str, stars: StarService = Depends(get_star_service)):
    return PlugstoreResponse.success(await stars.get_stars_count(plugin_id))


@router.get("/{plugin_id}/stargazers", summary="Users who most recently starred a plugin")
async def stargazers(
    plugin_id: str,
    limit: int = Query(10, ge=1, le=100),
    stars: StarService = Depends(get_star_service),
):
    return PlugstoreResponse.success(await stars.get_starred_users(plugin_id, limit))


@router.get("/{plugin_id}/star", summary="Whether the current user starred a plugin")
async def check_star(plugin_id: str, user=Depends(require_session), stars: StarService = Depends(get_star_service)):
    return PlugstoreResponse.success(StarToggleResponse(starred=await stars.check_user_starred(user.id, plugin_id)))


@router.post("/{plugin_id}/star", status_code=status.HTTP_201_CREATED, summary="Star a plugin")
async def add_star(plugin_id: str, user=Depends(require_session), stars: StarService = Depends(get_star_service)):
    return PlugstoreResponse.created(await stars.add_star(user.id, plugin_id))


@router.delete("/{plugin_id}/star", summary="Remove a star")
async def remove_star(plugin_id: str, user=Depends(require_session), stars: StarService = Depends(get_star_service)):
    await stars.remove_star(user.id, plugin_id)
    return PlugstoreResponse.no_content()


@router.post("/{plugin_id}/star/toggle", summary="Toggle a star")
async def toggle_star(plugin_id: str, user=Depends(require_session), stars: StarService = Depends(get_star_service)):
    return PlugstoreResponse.success(StarToggleResponse(starred=await stars.toggle_star(user.id, plugin_id)))
