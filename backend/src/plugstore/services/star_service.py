"""Plugin star (bookmark) service."""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import AlreadyStarredError, InternalError, NotStarredError, PluginNotFoundError
from ..core.logging import get_logger
from ..models.plugin import Plugin
from ..models.star import PluginStar
from ..schemas.plugin import PluginResponse
from ..schemas.star import StarCountResponse, StarredPlugin, StarredUser, StarResponse


class StarService:
    def __init__(self, db: AsyncSession, logger: logging.Logger | None = None) -> None:
        self.db = db
        self.logger = logger or get_logger(__name__)

    async def add_star(self, user_id: str, plugin_id: str) -> StarResponse:
        await self._ensure_plugin(plugin_id)
        if await self._get_star(user_id, plugin_id) is not None:
            raise AlreadyStarredError(user_id, plugin_id)

        star = PluginStar(user_id=user_id, plugin_id=plugin_id)
        self.db.add(star)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise AlreadyStarredError(user_id, plugin_id) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error("Error adding plugin star", extra={"user_id": user_id, "error": str(e)})
            raise InternalError("add_star", str(e)) from e

        self.logger.info("Plugin star added", extra={"user_id": user_id, "plugin_id": plugin_id})
        return StarResponse.model_validate(star)

    async def remove_star(self, user_id: str, plugin_id: str) -> None:
        star = await self._get_star(user_id, plugin_id)
        if star is None:
            raise NotStarredError(user_id, plugin_id)
        await self.db.delete(star)
        await self.db.commit()
        self.logger.info("Plugin star removed", extra={"user_id": user_id, "plugin_id": plugin_id})

    async def toggle_star(self, user_id: str, plugin_id: str) -> bool:
        """Star if not starred, otherwise unstar. Returns the new state."""
        if await self._get_star(user_id, plugin_id) is not None:
            await self.remove_star(user_id, plugin_id)
            return False
        await self.add_star(user_id, plugin_id)
        return True

    async def get_user_stars(self, user_id: str) -> list[StarredPlugin]:
        """Plugins starred by the user, most recent star first, with their latest release."""
        result = await self.db.execute(
            select(PluginStar, Plugin)
            .join(Plugin, Plugin.id == PluginStar.plugin_id)
            .where(PluginStar.user_id == user_id)
            .order_by(PluginStar.created_at.desc())
        )
        starred = []
        for star, plugin in result.all():
            data = PluginResponse.model_validate(plugin).model_dump()
            data["releases"] = data["releases"][:1]
            starred.append(StarredPlugin(**data, starred_at=star.created_at))
        self.logger.debug("User stars fetched", extra={"user_id": user_id, "count": len(starred)})
        return starred

    async def get_stars_count(self, plugin_id: str) -> StarCountResponse:
        count = await self.db.scalar(
            select(func.count()).select_from(PluginStar).where(PluginStar.plugin_id == plugin_id)
        )
        return StarCountResponse(plugin_id=plugin_id, stars_count=count or 0)

    async def check_user_starred(self, user_id: str, plugin_id: str) -> bool:
        return await self._get_star(user_id, plugin_id) is not None

    async def get_starred_users(self, plugin_id: str, limit: int = 10) -> list[StarredUser]:
        result = await self.db.execute(
            select(PluginStar.user_id, PluginStar.created_at)
            .where(PluginStar.plugin_id == plugin_id)
            .order_by(PluginStar.created_at.desc())
            .limit(limit)
        )
        return [StarredUser(user_id=row.user_id, starred_at=row.created_at) for row in result.all()]

    async def _get_star(self, user_id: str, plugin_id: str) -> PluginStar | None:
        result = await self.db.execute(
            select(PluginStar).where(PluginStar.user_id == user_id, PluginStar.plugin_id == plugin_id)
        )
        return result.scalar_one_or_none()

    async def _ensure_plugin(self, plugin_id: str) -> None:
        if await self.db.get(Plugin, plugin_id) is None:
            raise PluginNotFoundError(plugin_id)
