"""Release service: versioned builds attached to a plugin."""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InternalError, InvalidReleaseError, PluginNotFoundError, ReleaseNotFoundError
from ..core.logging import get_logger
from ..models.plugin import Plugin
from ..models.release import RELEASE_NOTES_MAX_LENGTH, VERSION_MAX_LENGTH, VERSION_MIN_LENGTH, Release
from ..schemas.release import ReleaseCreate
from .release_file_storage import ReleaseFileStorage


def validate_release_fields(data: ReleaseCreate) -> None:
    if not (VERSION_MIN_LENGTH <= len(data.version) <= VERSION_MAX_LENGTH):
        raise InvalidReleaseError(
            f"version must be {VERSION_MIN_LENGTH}-{VERSION_MAX_LENGTH} characters",
            {"field": "version", "value": data.version},
        )
    if data.release_notes is not None and len(data.release_notes) > RELEASE_NOTES_MAX_LENGTH:
        raise InvalidReleaseError(
            f"release notes must be up to {RELEASE_NOTES_MAX_LENGTH} characters",
            {"field": "release_notes", "length": len(data.release_notes)},
        )


class ReleaseService:
    def __init__(
        self,
        db: AsyncSession,
        storage: ReleaseFileStorage | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.db = db
        self.storage = storage
        self.logger = logger or get_logger(__name__)

    async def create_release(self, plugin_id: str, data: ReleaseCreate) -> Release:
        validate_release_fields(data)
        if await self.db.get(Plugin, plugin_id) is None:
            raise PluginNotFoundError(plugin_id)

        release = Release(
            plugin_id=plugin_id,
            version=data.version,
            release_notes=data.release_notes,
            file_reference=data.file_reference,
            release_hash=data.release_hash,
            downloads=0,
        )
        self.db.add(release)
        await self._commit("create_release")
        self.logger.info(
            "Release created", extra={"plugin_id": plugin_id, "release_id": release.id, "version": data.version}
        )
        return release

    async def get_release(self, release_id: str) -> Release:
        release = await self.db.get(Release, release_id)
        if release is None:
            raise ReleaseNotFoundError(release_id)
        return release

    async def list_releases(self, plugin_id: str) -> list[Release]:
        """Releases of a plugin, newest first."""
        if await self.db.get(Plugin, plugin_id) is None:
            raise PluginNotFoundError(plugin_id)
        result = await self.db.execute(
            select(Release).where(Release.plugin_id == plugin_id).order_by(Release.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_latest_release(self, plugin_id: str) -> Release:
        if await self.db.get(Plugin, plugin_id) is None:
            raise PluginNotFoundError(plugin_id)
        result = await self.db.execute(
            select(Release).where(Release.plugin_id == plugin_id).order_by(Release.created_at.desc()).limit(1)
        )
        release = result.scalar_one_or_none()
        if release is None:
            raise ReleaseNotFoundError(f"latest:{plugin_id}")
        return release

    async def update_file(self, release_id: str, file_reference: str, release_hash: str) -> Release:
        """Point a release at its stored artifact."""
        release = await self.get_release(release_id)
        release.file_reference = file_reference
        release.release_hash = release_hash
        await self._commit("update_release_file")
        return release

    async def delete_release(self, release_id: str) -> None:
        """Delete a release row and its stored files."""
        release = await self.get_release(release_id)
        plugin_id = release.plugin_id
        await self.db.delete(release)
        await self._commit("delete_release")
        if self.storage is not None:
            self.storage.delete_release_files(plugin_id, release_id)
        self.logger.info("Release deleted", extra={"plugin_id": plugin_id, "release_id": release_id})

    async def record_download(self, release_id: str) -> int:
        """Increment the download counter atomically; return the new count."""
        await self.get_release(release_id)
        await self.db.execute(
            update(Release).where(Release.id == release_id).values(downloads=Release.downloads + 1)
        )
        await self._commit("record_download")
        downloads = await self.db.scalar(select(Release.downloads).where(Release.id == release_id))
        return downloads or 0

    async def _commit(self, operation: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error(f"Release store failure during {operation}", extra={"error": str(e)})
            raise InternalError(operation, str(e)) from e
