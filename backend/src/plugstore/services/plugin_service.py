"""Plugin service for the Plugstore backend.

Owns plugin creation, updates, deletion and every write to the dependency
edge table. Creation validates all fields and references before touching the
database, then inserts the plugin row and its edges in a single transaction.
"""

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import (
    CircularDependencyError,
    DependencyEdgeNotFoundError,
    DependencyNotFoundError,
    DuplicateDependencyError,
    DuplicateNameError,
    ForkNotFoundError,
    InternalError,
    InvalidAuthorError,
    PluginNotFoundError,
    PlugstoreException,
    SelfDependencyError,
)
from ..core.logging import get_logger
from ..models.plugin import Plugin
from ..models.release import Release
from ..models.star import PluginStar
from ..schemas.plugin import (
    DependencyResponse,
    DependencySpec,
    DependencySummary,
    PluginCounts,
    PluginCreate,
    PluginDetail,
    PluginName,
    PluginResponse,
    PluginSummary,
    PluginUpdate,
)
from .dependency_graph import DependencyStore, find_first_cycle, would_create_cycle
from .plugin_validation import validate_description, validate_name, validate_plugin_fields, validate_tags
from .release_file_storage import ReleaseFileStorage
from .user_client import AuthorValidator


class PluginService:
    """Service for managing plugins and their dependency graph."""

    def __init__(
        self,
        db: AsyncSession,
        author_validator: AuthorValidator,
        storage: ReleaseFileStorage | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.db = db
        self.author_validator = author_validator
        self.storage = storage
        self.logger = logger or get_logger(__name__)
        self.edges = DependencyStore(db)

    async def create_plugin(self, data: PluginCreate, author_id: str) -> PluginDetail:
        """Validate and persist a plugin together with its dependency edges.

        Every check that does not need a write runs first. The plugin row and
        all edges are then written in one transaction; a cycle on any
        candidate rolls back the whole thing.

        Raises:
            InvalidNameError, InvalidDescriptionError, InvalidLicenseError,
            InvalidPlatformError, InvalidTagsError: field validation failed
            InvalidAuthorError: author does not resolve
            ForkNotFoundError: fork origin does not exist
            DependencyNotFoundError: one or more dependency ids do not exist
            CircularDependencyError: a candidate already reaches the new plugin
            DuplicateNameError: plugin name already taken
            InternalError: unexpected store failure

        """
        platforms, tags = validate_plugin_fields(
            data.name, data.description, data.license, data.target_platform, data.tags
        )

        if not await self.author_validator.validate_user(author_id):
            raise InvalidAuthorError(author_id)

        fork_origin: Plugin | None = None
        if data.fork_origin_id:
            fork_origin = await self.db.get(Plugin, data.fork_origin_id)
            if fork_origin is None:
                raise ForkNotFoundError(data.fork_origin_id)
            # Copy, not a live reference; explicit tags win
            if not tags and fork_origin.tags:
                tags = list(fork_origin.tags)

        candidates = self._dedupe_dependencies(data.dependencies)
        await self._ensure_plugins_exist([c.plugin_id for c in candidates])

        plugin = Plugin(
            name=data.name,
            description=data.description,
            license=data.license,
            target_platform=platforms,
            tags=tags,
            author_id=author_id,
            fork_origin_id=fork_origin.id if fork_origin else None,
            releases=[],
        )

        try:
            self.db.add(plugin)
            await self.db.flush()

            for candidate in candidates:
                if candidate.plugin_id == plugin.id:
                    raise SelfDependencyError(plugin.id)
            offending = await find_first_cycle(
                self.edges.edges_from, plugin.id, [c.plugin_id for c in candidates]
            )
            if offending is not None:
                raise CircularDependencyError(plugin.id, offending)

            for candidate in candidates:
                self.edges.add_edge(plugin.id, candidate.plugin_id, candidate.version, candidate.is_optional)
            await self.db.flush()

            await self.db.commit()
        except PlugstoreException:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            if await self._name_taken(data.name):
                self.logger.warning("Plugin name conflict", extra={"plugin_name": data.name})
                raise DuplicateNameError(data.name) from e
            self.logger.error("Failed to create plugin", extra={"plugin_name": data.name, "error": str(e)})
            raise InternalError("create_plugin", str(e)) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error("Failed to create plugin", extra={"plugin_name": data.name, "error": str(e)})
            raise InternalError("create_plugin", str(e)) from e

        self.logger.info(
            "Plugin created",
            extra={
                "plugin_id": plugin.id,
                "plugin_name": plugin.name,
                "author_id": author_id,
                "dependency_count": len(candidates),
                "fork_origin_id": plugin.fork_origin_id,
            },
        )
        return await self._build_detail(plugin, fork_origin)

    async def add_dependency(
        self,
        plugin_id: str,
        dependency_plugin_id: str,
        version: str | None = None,
        is_optional: bool = False,
    ) -> DependencyResponse:
        """Add a single ``plugin_id -> dependency_plugin_id`` edge.

        Both plugin rows are locked before the cycle check so that two
        concurrent inserts over the same pair serialize.
        """
        if plugin_id == dependency_plugin_id:
            raise SelfDependencyError(plugin_id)

        try:
            existing = await self.edges.lock_plugins([plugin_id, dependency_plugin_id])
            if plugin_id not in existing:
                raise PluginNotFoundError(plugin_id)
            if dependency_plugin_id not in existing:
                raise DependencyNotFoundError([dependency_plugin_id])

            if await self.edges.get_edge(plugin_id, dependency_plugin_id) is not None:
                raise DuplicateDependencyError(plugin_id, dependency_plugin_id)

            if await would_create_cycle(self.edges.edges_from, plugin_id, dependency_plugin_id):
                raise CircularDependencyError(plugin_id, dependency_plugin_id)

            edge = self.edges.add_edge(plugin_id, dependency_plugin_id, version, is_optional)
            await self.db.commit()
        except PlugstoreException:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            # Lost a race with an identical insert
            await self.db.rollback()
            raise DuplicateDependencyError(plugin_id, dependency_plugin_id) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error(
                "Failed to add dependency",
                extra={"plugin_id": plugin_id, "dependency_id": dependency_plugin_id, "error": str(e)},
            )
            raise InternalError("add_dependency", str(e)) from e

        self.logger.info("Dependency added", extra={"plugin_id": plugin_id, "dependency_id": dependency_plugin_id})
        return DependencyResponse.model_validate(edge)

    async def remove_dependency(self, plugin_id: str, dependency_plugin_id: str) -> None:
        edge = await self.edges.get_edge(plugin_id, dependency_plugin_id)
        if edge is None:
            raise DependencyEdgeNotFoundError(plugin_id, dependency_plugin_id)
        try:
            await self.db.delete(edge)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error("Failed to remove dependency", extra={"plugin_id": plugin_id, "error": str(e)})
            raise InternalError("remove_dependency", str(e)) from e
        self.logger.info("Dependency removed", extra={"plugin_id": plugin_id, "dependency_id": dependency_plugin_id})

    async def list_dependencies(self, plugin_id: str) -> list[DependencySummary]:
        await self._get_plugin_or_raise(plugin_id)
        return [
            DependencySummary(plugin_id=p.id, name=p.name, version=e.version, is_optional=e.is_optional)
            for e, p in await self.edges.dependencies_of(plugin_id)
        ]

    async def list_dependents(self, plugin_id: str) -> list[DependencySummary]:
        await self._get_plugin_or_raise(plugin_id)
        return [
            DependencySummary(plugin_id=p.id, name=p.name, version=e.version, is_optional=e.is_optional)
            for e, p in await self.edges.dependents_of(plugin_id)
        ]

    async def update_plugin(self, plugin_id: str, data: PluginUpdate) -> PluginDetail:
        """Update name, description and/or tags. Never touches dependency edges."""
        plugin = await self._get_plugin_or_raise(plugin_id)

        if data.name is not None:
            plugin.name = validate_name(data.name)
        if data.description is not None:
            plugin.description = validate_description(data.description)
        if data.tags is not None:
            plugin.tags = validate_tags(data.tags)

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if await self._name_taken(data.name, exclude_id=plugin_id):
                raise DuplicateNameError(data.name) from e
            self.logger.error("Failed to update plugin", extra={"plugin_id": plugin_id, "error": str(e)})
            raise InternalError("update_plugin", str(e)) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error("Failed to update plugin", extra={"plugin_id": plugin_id, "error": str(e)})
            raise InternalError("update_plugin", str(e)) from e

        self.logger.info("Plugin updated", extra={"plugin_id": plugin_id})
        return await self.get_plugin(plugin_id)

    async def delete_plugin(self, plugin_id: str) -> None:
        """Delete a plugin with its releases, edges, stars and stored files."""
        plugin = await self._get_plugin_or_raise(plugin_id)
        try:
            await self.edges.remove_edges_touching(plugin_id)
            await self.db.execute(delete(PluginStar).where(PluginStar.plugin_id == plugin_id))
            await self.db.execute(
                update(Plugin).where(Plugin.fork_origin_id == plugin_id).values(fork_origin_id=None)
            )
            await self.db.delete(plugin)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error("Failed to delete plugin", extra={"plugin_id": plugin_id, "error": str(e)})
            raise InternalError("delete_plugin", str(e)) from e

        if self.storage is not None:
            self.storage.delete_plugin_files(plugin_id)
        self.logger.info("Plugin deleted", extra={"plugin_id": plugin_id})

    async def get_plugin(self, plugin_id: str) -> PluginDetail:
        plugin = await self._get_plugin_or_raise(plugin_id)
        fork_origin = await self.db.get(Plugin, plugin.fork_origin_id) if plugin.fork_origin_id else None
        return await self._build_detail(plugin, fork_origin)

    async def list_plugins(self) -> list[PluginResponse]:
        """All plugins, newest first, each with its releases."""
        result = await self.db.execute(select(Plugin).order_by(Plugin.created_at.desc()))
        return [PluginResponse.model_validate(p) for p in result.scalars().all()]

    async def list_plugin_names(self) -> list[PluginName]:
        result = await self.db.execute(select(Plugin.id, Plugin.name).order_by(Plugin.name.asc()))
        return [PluginName(id=row.id, name=row.name) for row in result.all()]

    async def count_stuff(self) -> PluginCounts:
        plugins = await self.db.scalar(select(func.count()).select_from(Plugin))
        releases = await self.db.scalar(select(func.count()).select_from(Release))
        return PluginCounts(plugins=plugins or 0, releases=releases or 0)

    async def _get_plugin_or_raise(self, plugin_id: str) -> Plugin:
        plugin = await self.db.get(Plugin, plugin_id)
        if plugin is None:
            raise PluginNotFoundError(plugin_id)
        return plugin

    async def _ensure_plugins_exist(self, plugin_ids: list[str]) -> None:
        if not plugin_ids:
            return
        result = await self.db.execute(select(Plugin.id).where(Plugin.id.in_(plugin_ids)))
        found = set(result.scalars().all())
        missing = [pid for pid in plugin_ids if pid not in found]
        if missing:
            raise DependencyNotFoundError(missing)

    async def _name_taken(self, name: str | None, exclude_id: str | None = None) -> bool:
        """Tell a name-uniqueness violation apart from other constraint failures."""
        if name is None:
            return False
        query = select(Plugin.id).where(Plugin.name == name)
        if exclude_id is not None:
            query = query.where(Plugin.id != exclude_id)
        return await self.db.scalar(query.limit(1)) is not None

    @staticmethod
    def _dedupe_dependencies(dependencies: list[DependencySpec]) -> list[DependencySpec]:
        seen: dict[str, DependencySpec] = {}
        for dep in dependencies:
            seen.setdefault(dep.plugin_id, dep)
        return list(seen.values())

    async def _build_detail(self, plugin: Plugin, fork_origin: Plugin | None) -> PluginDetail:
        dependencies = [
            DependencySummary(plugin_id=p.id, name=p.name, version=e.version, is_optional=e.is_optional)
            for e, p in await self.edges.dependencies_of(plugin.id)
        ]
        base = PluginResponse.model_validate(plugin)
        return PluginDetail(
            **base.model_dump(),
            fork_origin=PluginSummary.model_validate(fork_origin) if fork_origin else None,
            dependencies=dependencies,
        )
