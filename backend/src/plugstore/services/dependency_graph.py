"""Plugin dependency graph: edge store and cycle checking.

Edges are stored as ``dependent -> dependency``. Adding ``X -> Y`` is only
allowed when X is not already reachable from Y; otherwise the new edge would
close a cycle.
"""

from collections.abc import Awaitable, Callable, Iterable, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.plugin import Plugin, PluginDependency

EdgeLookup = Callable[[str], Awaitable[Iterable[str]]]


async def would_create_cycle(edges_from: EdgeLookup, new_node_id: str, candidate_dependency_id: str) -> bool:
    """Return True if ``new_node_id`` is reachable from ``candidate_dependency_id``.

    Iterative depth-first walk over committed edges. The visited set bounds
    the work and keeps malformed (already cyclic) data from looping forever.
    Self-dependency is a separate, earlier check and is not handled here.
    """
    visited: set[str] = set()
    stack = [candidate_dependency_id]
    while stack:
        node = stack.pop()
        if node == new_node_id:
            return True
        if node in visited:
            continue
        visited.add(node)
        for next_node in await edges_from(node):
            if next_node not in visited:
                stack.append(next_node)
    return False


async def find_first_cycle(edges_from: EdgeLookup, new_node_id: str, candidates: Sequence[str]) -> str | None:
    """Return the first candidate that would close a cycle, or None."""
    for candidate in candidates:
        if await would_create_cycle(edges_from, new_node_id, candidate):
            return candidate
    return None


class DependencyStore:
    """Edge table access scoped to the caller's session/transaction."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def edges_from(self, node_id: str) -> list[str]:
        result = await self.db.execute(
            select(PluginDependency.dependency_plugin_id).where(PluginDependency.dependent_plugin_id == node_id)
        )
        return list(result.scalars().all())

    async def get_edge(self, dependent_id: str, dependency_id: str) -> PluginDependency | None:
        result = await self.db.execute(
            select(PluginDependency).where(
                PluginDependency.dependent_plugin_id == dependent_id,
                PluginDependency.dependency_plugin_id == dependency_id,
            )
        )
        return result.scalar_one_or_none()

    async def lock_plugins(self, plugin_ids: Sequence[str]) -> set[str]:
        """SELECT ... FOR UPDATE the given plugin rows; return the ids that exist."""
        result = await self.db.execute(select(Plugin.id).where(Plugin.id.in_(plugin_ids)).with_for_update())
        return set(result.scalars().all())

    def add_edge(
        self,
        dependent_id: str,
        dependency_id: str,
        version: str | None = None,
        is_optional: bool = False,
    ) -> PluginDependency:
        edge = PluginDependency(
            dependent_plugin_id=dependent_id,
            dependency_plugin_id=dependency_id,
            version=version,
            is_optional=is_optional,
        )
        self.db.add(edge)
        return edge

    async def remove_edges_touching(self, plugin_id: str) -> None:
        await self.db.execute(
            delete(PluginDependency).where(
                (PluginDependency.dependent_plugin_id == plugin_id)
                | (PluginDependency.dependency_plugin_id == plugin_id)
            )
        )

    async def dependencies_of(self, plugin_id: str) -> list[tuple[PluginDependency, Plugin]]:
        result = await self.db.execute(
            select(PluginDependency, Plugin)
            .join(Plugin, Plugin.id == PluginDependency.dependency_plugin_id)
            .where(PluginDependency.dependent_plugin_id == plugin_id)
            .order_by(Plugin.name)
        )
        return [(edge, plugin) for edge, plugin in result.all()]

    async def dependents_of(self, plugin_id: str) -> list[tuple[PluginDependency, Plugin]]:
        result = await self.db.execute(
            select(PluginDependency, Plugin)
            .join(Plugin, Plugin.id == PluginDependency.dependent_plugin_id)
            .where(PluginDependency.dependency_plugin_id == plugin_id)
            .order_by(Plugin.name)
        )
        return [(edge, plugin) for edge, plugin in result.all()]
