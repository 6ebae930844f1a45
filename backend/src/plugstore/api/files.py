"""Release file upload and download endpoints."""

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse
from starlette.concurrency import run_in_threadpool

from ..core.exceptions import FileNotFoundInStorageError, InvalidReleaseError
from ..core.response import PlugstoreResponse
from ..schemas.release import PluginFilesResponse, ReleaseFileResponse
from ..services.plugin_service import PluginService
from ..services.release_file_storage import ReleaseFileStorage
from ..services.release_service import ReleaseService
from .dependencies import (
    Caller,
    get_plugin_service,
    get_release_service,
    get_storage,
    require_caller,
    require_master_key,
)

router = APIRouter(prefix="/files", tags=["files"])


@router.post("/{plugin_id}/{release_id}", status_code=status.HTTP_201_CREATED, summary="Upload a release file")
async def upload_release_file(
    plugin_id: str,
    release_id: str,
    file: UploadFile = File(...),
    caller: Caller = Depends(require_caller),
    plugins: PluginService = Depends(get_plugin_service),
    releases: ReleaseService = Depends(get_release_service),
    storage: ReleaseFileStorage = Depends(get_storage),
):
    """Store the file under the release and record its path and SHA-256."""
    plugin = await plugins.get_plugin(plugin_id)
    caller.ensure_can_modify(plugin.author_id)
    release = await releases.get_release(release_id)
    if release.plugin_id != plugin_id:
        raise InvalidReleaseError("release does not belong to plugin", {"release_id": release_id})

    # Read one byte past the cap so oversize uploads are detected without buffering them whole
    content = await file.read(storage.max_size + 1)
    stored = await run_in_threadpool(storage.save_file, plugin_id, release_id, file.filename, content)
    reference = f"{plugin_id}/{release_id}/{stored.path.name}"
    await releases.update_file(release_id, reference, stored.sha256)

    return PlugstoreResponse.created(
        ReleaseFileResponse(
            plugin_id=plugin_id,
            release_id=release_id,
            filename=stored.path.name,
            file_path=reference,
            size=stored.size,
            sha256=stored.sha256,
        )
    )


@router.get("/{plugin_id}", summary="List stored files of a plugin")
async def list_plugin_files(plugin_id: str, storage: ReleaseFileStorage = Depends(get_storage)):
    files = await run_in_threadpool(storage.list_plugin_files, plugin_id)
    return PlugstoreResponse.success(PluginFilesResponse(plugin_id=plugin_id, files=files))


@router.get("/{plugin_id}/{release_id}/{filename}", summary="Download a release file")
async def download_release_file(
    plugin_id: str,
    release_id: str,
    filename: str,
    storage: ReleaseFileStorage = Depends(get_storage),
    releases: ReleaseService = Depends(get_release_service),
):
    path = storage.get_file_path(plugin_id, release_id, filename)
    await releases.record_download(release_id)
    return FileResponse(path, filename=filename, media_type="application/octet-stream")


@router.delete(
    "/{plugin_id}/{release_id}",
    dependencies=[Depends(require_master_key)],
    summary="Delete one release's files",
)
async def delete_release_files(plugin_id: str, release_id: str, storage: ReleaseFileStorage = Depends(get_storage)):
    if not await run_in_threadpool(storage.delete_release_files, plugin_id, release_id):
        raise FileNotFoundInStorageError(f"{plugin_id}/{release_id}")
    return PlugstoreResponse.no_content()


@router.delete("/{plugin_id}", dependencies=[Depends(require_master_key)], summary="Delete all files of a plugin")
async def delete_plugin_files(plugin_id: str, storage: ReleaseFileStorage = Depends(get_storage)):
    if not await run_in_threadpool(storage.delete_plugin_files, plugin_id):
        raise FileNotFoundInStorageError(plugin_id)
    return PlugstoreResponse.no_content()
