"""Unit tests for PluginService: creation, dependency edges, updates and deletion."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from plugstore.core.exceptions import (
    CircularDependencyError,
    DependencyEdgeNotFoundError,
    DependencyNotFoundError,
    DuplicateDependencyError,
    DuplicateNameError,
    ForkNotFoundError,
    InternalError,
    InvalidAuthorError,
    InvalidDescriptionError,
    InvalidLicenseError,
    InvalidNameError,
    InvalidPlatformError,
    InvalidTagsError,
    PluginNotFoundError,
    SelfDependencyError,
)
from plugstore.models.plugin import Plugin, PluginDependency
from plugstore.models.release import Release
from plugstore.models.star import PluginStar
from plugstore.schemas.plugin import PluginCreate, PluginUpdate
from plugstore.services.plugin_service import PluginService


def _create(**overrides) -> PluginCreate:
    fields = {
        "name": "MyPlugin",
        "description": "Does things",
        "license": "MIT",
        "target_platform": ["Extera"],
        "tags": ["Utility"],
    }
    fields.update(overrides)
    return PluginCreate(**fields)


async def _count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


@pytest.fixture
def service(db_session, accept_all_authors):
    return PluginService(db_session, accept_all_authors)


class TestCreateValidation:
    """Field checks run before any write and each maps to its own error."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["abcd", "a" * 16])
    async def test_name_length_out_of_range(self, service, db_session, name):
        with pytest.raises(InvalidNameError):
            await service.create_plugin(_create(name=name), "author-1")
        assert await _count(db_session, Plugin) == 0

    @pytest.mark.asyncio
    async def test_name_boundaries_accepted(self, service):
        await service.create_plugin(_create(name="abcde"), "author-1")
        await service.create_plugin(_create(name="a" * 15), "author-1")

    @pytest.mark.asyncio
    async def test_description_too_long(self, service):
        with pytest.raises(InvalidDescriptionError):
            await service.create_plugin(_create(description="x" * 301), "author-1")

    @pytest.mark.asyncio
    async def test_unknown_license(self, service):
        with pytest.raises(InvalidLicenseError) as exc_info:
            await service.create_plugin(_create(license="WTFPL"), "author-1")
        assert "MIT" in exc_info.value.details["valid_licenses"]

    @pytest.mark.asyncio
    async def test_empty_platforms_rejected(self, service):
        with pytest.raises(InvalidPlatformError):
            await service.create_plugin(_create(target_platform=[]), "author-1")

    @pytest.mark.asyncio
    async def test_unknown_platform_rejected(self, service):
        with pytest.raises(InvalidPlatformError):
            await service.create_plugin(_create(target_platform=["Extera", "Windows"]), "author-1")

    @pytest.mark.asyncio
    async def test_unknown_tags_are_reported(self, service):
        with pytest.raises(InvalidTagsError) as exc_info:
            await service.create_plugin(_create(tags=["Utility", "Bogus"]), "author-1")
        assert exc_info.value.details["invalid_tags"] == ["Bogus"]

    @pytest.mark.asyncio
    async def test_duplicate_tags_and_platforms_collapsed(self, service):
        plugin = await service.create_plugin(
            _create(tags=["Fun", "Fun", "Media"], target_platform=["AltUI", "AltUI"]), "author-1"
        )
        assert plugin.tags == ["Fun", "Media"]
        assert plugin.target_platform == ["AltUI"]

    @pytest.mark.asyncio
    async def test_unknown_author(self, db_session):
        validator = MagicMock()
        validator.validate_user = AsyncMock(return_value=False)
        service = PluginService(db_session, validator)

        with pytest.raises(InvalidAuthorError):
            await service.create_plugin(_create(), "ghost")
        validator.validate_user.assert_awaited_once_with("ghost")
        assert await _count(db_session, Plugin) == 0

    @pytest.mark.asyncio
    async def test_validation_runs_before_author_lookup(self, db_session):
        validator = MagicMock()
        validator.validate_user = AsyncMock(return_value=True)
        service = PluginService(db_session, validator)

        with pytest.raises(InvalidNameError):
            await service.create_plugin(_create(name="x"), "author-1")
        validator.validate_user.assert_not_awaited()


class TestCreateReferences:
    @pytest.mark.asyncio
    async def test_missing_fork_origin(self, service):
        with pytest.raises(ForkNotFoundError):
            await service.create_plugin(_create(fork_origin_id="nope"), "author-1")

    @pytest.mark.asyncio
    async def test_fork_inherits_tags_when_none_given(self, service, make_plugin):
        origin = await make_plugin("Original", tags=["Social", "Fun"])

        fork = await service.create_plugin(_create(name="ForkOne", tags=[], fork_origin_id=origin.id), "author-2")

        assert fork.tags == ["Social", "Fun"]
        assert fork.fork_origin_id == origin.id
        assert fork.fork_origin.name == "Original"

    @pytest.mark.asyncio
    async def test_fork_keeps_explicit_tags(self, service, make_plugin):
        origin = await make_plugin("Original", tags=["Social"])

        fork = await service.create_plugin(
            _create(name="ForkTwo", tags=["Developer"], fork_origin_id=origin.id), "author-2"
        )

        assert fork.tags == ["Developer"]

    @pytest.mark.asyncio
    async def test_fork_tags_are_a_copy(self, service, make_plugin, db_session):
        origin = await make_plugin("Original", tags=["Social"])
        origin_id = origin.id

        fork = await service.create_plugin(_create(name="ForkThree", tags=[], fork_origin_id=origin_id), "a")
        await service.update_plugin(fork.id, PluginUpdate(tags=["Media"]))

        assert (await service.get_plugin(origin_id)).tags == ["Social"]

    @pytest.mark.asyncio
    async def test_missing_dependencies_listed(self, service, make_plugin, db_session):
        dep = await make_plugin("Existing")

        with pytest.raises(DependencyNotFoundError) as exc_info:
            await service.create_plugin(_create(dependencies=[dep.id, "gone-1", "gone-2"]), "author-1")

        assert exc_info.value.details["missing_ids"] == ["gone-1", "gone-2"]
        assert await _count(db_session, Plugin) == 1

    @pytest.mark.asyncio
    async def test_dependencies_deduplicated(self, service, make_plugin, db_session):
        dep = await make_plugin("Existing")

        plugin = await service.create_plugin(_create(dependencies=[dep.id, dep.id]), "author-1")

        assert [d.plugin_id for d in plugin.dependencies] == [dep.id]
        assert await _count(db_session, PluginDependency) == 1

    @pytest.mark.asyncio
    async def test_dependency_specs_keep_version_and_optional(self, service, make_plugin):
        dep = await make_plugin("Existing")

        plugin = await service.create_plugin(
            _create(dependencies=[{"plugin_id": dep.id, "version": "2.1", "is_optional": True}]), "author-1"
        )

        assert plugin.dependencies[0].version == "2.1"
        assert plugin.dependencies[0].is_optional is True

    @pytest.mark.asyncio
    async def test_duplicate_name(self, service, make_plugin):
        await make_plugin("MyPlugin")

        with pytest.raises(DuplicateNameError):
            await service.create_plugin(_create(name="MyPlugin"), "author-1")


class TestCreateAtomicity:
    @pytest.mark.asyncio
    async def test_cycle_on_later_candidate_rolls_back_everything(self, service, make_plugin, db_session):
        """A cycle on the second candidate leaves neither the plugin nor the first edge behind."""
        first = await make_plugin("FirstDep")
        second = await make_plugin("SecondDep")
        second_id = second.id
        dependency_ids = [first.id, second_id]

        with patch(
            "plugstore.services.dependency_graph.would_create_cycle",
            AsyncMock(side_effect=[False, True]),
        ):
            with pytest.raises(CircularDependencyError) as exc_info:
                await service.create_plugin(_create(dependencies=dependency_ids), "author-1")

        assert exc_info.value.details["dependency_id"] == second_id
        assert await _count(db_session, Plugin) == 2
        assert await _count(db_session, PluginDependency) == 0

    @pytest.mark.asyncio
    async def test_success_writes_plugin_and_all_edges(self, service, make_plugin, db_session):
        first = await make_plugin("FirstDep")
        second = await make_plugin("SecondDep")

        plugin = await service.create_plugin(_create(dependencies=[first.id, second.id]), "author-1")

        assert sorted(d.name for d in plugin.dependencies) == ["FirstDep", "SecondDep"]
        assert await _count(db_session, PluginDependency) == 2
        assert plugin.releases == []

    @pytest.mark.asyncio
    async def test_dependency_deleted_after_lookup_is_internal_error(self, service, db_session):
        """A foreign-key failure at flush time is not reported as a name conflict."""
        with patch.object(service, "_ensure_plugins_exist", AsyncMock()):
            with pytest.raises(InternalError) as exc_info:
                await service.create_plugin(_create(dependencies=["gone-id"]), "author-1")

        assert exc_info.value.error_code == "INTERNAL_ERROR"
        assert await _count(db_session, Plugin) == 0
        assert await _count(db_session, PluginDependency) == 0


class TestAddDependency:
    @pytest.mark.asyncio
    async def test_self_dependency(self, service, make_plugin):
        a = await make_plugin("alpha")
        with pytest.raises(SelfDependencyError):
            await service.add_dependency(a.id, a.id)

    @pytest.mark.asyncio
    async def test_missing_plugin(self, service, make_plugin):
        b = await make_plugin("bravo")
        with pytest.raises(PluginNotFoundError):
            await service.add_dependency("missing", b.id)

    @pytest.mark.asyncio
    async def test_missing_dependency(self, service, make_plugin):
        a = await make_plugin("alpha")
        with pytest.raises(DependencyNotFoundError):
            await service.add_dependency(a.id, "missing")

    @pytest.mark.asyncio
    async def test_duplicate_edge(self, service, make_plugin):
        a = await make_plugin("alpha")
        b = await make_plugin("bravo")
        a_id, b_id = a.id, b.id
        await service.add_dependency(a_id, b_id)

        with pytest.raises(DuplicateDependencyError):
            await service.add_dependency(a_id, b_id)

    @pytest.mark.asyncio
    async def test_reverse_of_existing_edge_is_circular(self, service, make_plugin):
        """P2 depends on P1, so P1 may not depend on P2."""
        p1 = await make_plugin("PluginOne")
        p2 = await make_plugin("PluginTwo")
        p1_id, p2_id = p1.id, p2.id
        await service.add_dependency(p2_id, p1_id)

        with pytest.raises(CircularDependencyError):
            await service.add_dependency(p1_id, p2_id)

    @pytest.mark.asyncio
    async def test_transitive_cycle_rejected(self, service, make_plugin, db_session):
        a = await make_plugin("alpha")
        b = await make_plugin("bravo")
        c = await make_plugin("charlie")
        a_id, b_id, c_id = a.id, b.id, c.id
        await service.add_dependency(a_id, b_id)
        await service.add_dependency(b_id, c_id)

        with pytest.raises(CircularDependencyError):
            await service.add_dependency(c_id, a_id)
        assert await _count(db_session, PluginDependency) == 2

    @pytest.mark.asyncio
    async def test_graph_stays_acyclic_over_many_inserts(self, service, make_plugin):
        """Every accepted edge keeps the graph a DAG."""
        names = ["nodeA", "nodeB", "nodeC", "nodeD", "nodeE"]
        ids = [(await make_plugin(n)).id for n in names]
        accepted: dict[str, list[str]] = {i: [] for i in ids}

        for src in ids:
            for dst in ids:
                if src == dst:
                    continue
                try:
                    await service.add_dependency(src, dst)
                    accepted[src].append(dst)
                except (CircularDependencyError, DuplicateDependencyError):
                    pass

        def reaches(start: str, target: str) -> bool:
            stack, seen = list(accepted[start]), set()
            while stack:
                node = stack.pop()
                if node == target:
                    return True
                if node not in seen:
                    seen.add(node)
                    stack.extend(accepted[node])
            return False

        assert not any(reaches(n, n) for n in ids)
        assert sum(len(v) for v in accepted.values()) == len(ids) * (len(ids) - 1) // 2

    @pytest.mark.asyncio
    async def test_returns_edge(self, service, make_plugin):
        a = await make_plugin("alpha")
        b = await make_plugin("bravo")

        edge = await service.add_dependency(a.id, b.id, version="1.2", is_optional=True)

        assert edge.dependent_plugin_id == a.id
        assert edge.dependency_plugin_id == b.id
        assert edge.version == "1.2"
        assert edge.is_optional is True


class TestRemoveAndListDependencies:
    @pytest.mark.asyncio
    async def test_remove_missing_edge(self, service, make_plugin):
        a = await make_plugin("alpha")
        with pytest.raises(DependencyEdgeNotFoundError):
            await service.remove_dependency(a.id, "other")

    @pytest.mark.asyncio
    async def test_list_and_remove(self, service, make_plugin):
        a = await make_plugin("alpha")
        b = await make_plugin("bravo")
        a_id, b_id = a.id, b.id
        await service.add_dependency(a_id, b_id)

        assert [d.plugin_id for d in await service.list_dependencies(a_id)] == [b_id]
        assert [d.plugin_id for d in await service.list_dependents(b_id)] == [a_id]

        await service.remove_dependency(a_id, b_id)
        assert await service.list_dependencies(a_id) == []

    @pytest.mark.asyncio
    async def test_list_for_missing_plugin(self, service):
        with pytest.raises(PluginNotFoundError):
            await service.list_dependencies("missing")


class TestUpdatePlugin:
    @pytest.mark.asyncio
    async def test_updates_scalar_fields_only(self, service, make_plugin, db_session):
        a = await make_plugin("alpha")
        b = await make_plugin("bravo")
        a_id, b_id = a.id, b.id
        await service.add_dependency(a_id, b_id)

        updated = await service.update_plugin(a_id, PluginUpdate(name="alpha2", description="new", tags=["Fun"]))

        assert updated.name == "alpha2"
        assert updated.description == "new"
        assert updated.tags == ["Fun"]
        assert [d.plugin_id for d in updated.dependencies] == [b_id]

    @pytest.mark.asyncio
    async def test_invalid_name(self, service, make_plugin):
        a = await make_plugin("alpha")
        with pytest.raises(InvalidNameError):
            await service.update_plugin(a.id, PluginUpdate(name="no"))

    @pytest.mark.asyncio
    async def test_name_conflict(self, service, make_plugin):
        a = await make_plugin("alpha")
        await make_plugin("bravo")
        with pytest.raises(DuplicateNameError):
            await service.update_plugin(a.id, PluginUpdate(name="bravo"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("update", [PluginUpdate(description="x"), PluginUpdate(name="charlie")])
    async def test_other_constraint_failure_is_internal_error(self, service, make_plugin, db_session, update):
        a = await make_plugin("alpha")
        failure = IntegrityError("UPDATE plugins", {}, Exception("FOREIGN KEY constraint failed"))

        with patch.object(db_session, "commit", AsyncMock(side_effect=failure)):
            with pytest.raises(InternalError):
                await service.update_plugin(a.id, update)

    @pytest.mark.asyncio
    async def test_missing_plugin(self, service):
        with pytest.raises(PluginNotFoundError):
            await service.update_plugin("missing", PluginUpdate(description="x"))


class TestDeletePlugin:
    @pytest.mark.asyncio
    async def test_delete_cascades(self, db_session, accept_all_authors, make_plugin, make_user):
        storage = MagicMock()
        service = PluginService(db_session, accept_all_authors, storage=storage)
        user = await make_user()
        a = await make_plugin("alpha")
        b = await make_plugin("bravo")
        fork = await make_plugin("forked")
        a_id, b_id, fork_id = a.id, b.id, fork.id
        fork.fork_origin_id = a_id
        db_session.add(Release(plugin_id=a_id, version="1.0.0", downloads=0))
        db_session.add(PluginStar(user_id=user.id, plugin_id=a_id))
        await db_session.commit()
        await service.add_dependency(b_id, a_id)

        await service.delete_plugin(a_id)

        assert await db_session.get(Plugin, a_id) is None
        assert await _count(db_session, Release) == 0
        assert await _count(db_session, PluginStar) == 0
        assert await _count(db_session, PluginDependency) == 0
        fork_origin = await db_session.scalar(select(Plugin.fork_origin_id).where(Plugin.id == fork_id))
        assert fork_origin is None
        storage.delete_plugin_files.assert_called_once_with(a_id)

    @pytest.mark.asyncio
    async def test_delete_missing(self, service):
        with pytest.raises(PluginNotFoundError):
            await service.delete_plugin("missing")


class TestReads:
    @pytest.mark.asyncio
    async def test_names_alphabetical(self, service, make_plugin):
        await make_plugin("zulu1")
        await make_plugin("alpha")

        names = await service.list_plugin_names()

        assert [n.name for n in names] == ["alpha", "zulu1"]

    @pytest.mark.asyncio
    async def test_counts(self, service, make_plugin, db_session):
        a = await make_plugin("alpha")
        await make_plugin("bravo")
        db_session.add(Release(plugin_id=a.id, version="1.0", downloads=0))
        await db_session.commit()

        counts = await service.count_stuff()

        assert counts.plugins == 2
        assert counts.releases == 1

    @pytest.mark.asyncio
    async def test_list_plugins(self, service, make_plugin):
        await make_plugin("alpha")
        await make_plugin("bravo")

        plugins = await service.list_plugins()

        assert {p.name for p in plugins} == {"alpha", "bravo"}

    @pytest.mark.asyncio
    async def test_get_missing(self, service):
        with pytest.raises(PluginNotFoundError):
            await service.get_plugin("missing")
