"""Release API endpoints addressed by release id."""

from fastapi import APIRouter, Depends

from ..core.response import PlugstoreResponse
from ..schemas.release import ReleaseResponse
from ..services.plugin_service import PluginService
from ..services.release_service import ReleaseService
from .dependencies import Caller, get_plugin_service, get_release_service, require_caller

router = APIRouter(prefix="/releases", tags=["releases"])


@router.get("/{release_id}", summary="Get a release")
async def get_release(release_id: str, service: ReleaseService = Depends(get_release_service)):
    return PlugstoreResponse.success(ReleaseResponse.model_validate(await service.get_release(release_id)))


@router.delete("/{release_id}", summary="Delete a release and its files")
async def delete_release(
    release_id: str,
    caller: Caller = Depends(require_caller),
    releases: ReleaseService = Depends(get_release_service),
    plugins: PluginService = Depends(get_plugin_service),
):
    release = await releases.get_release(release_id)
    plugin = await plugins.get_plugin(release.plugin_id)
    caller.ensure_can_modify(plugin.author_id)
    await releases.delete_release(release_id)
    return PlugstoreResponse.no_content()
