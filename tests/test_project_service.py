"""Tests for project read, list, sync and delete operations."""

import pytest

from cutroom.exceptions import ForbiddenError, ProjectNotFoundError
from cutroom.schemas.project import Project
from cutroom.services.project_service import ProjectService, merge_submission


@pytest.fixture
def service(store):
    return ProjectService(store)


class TestGetProject:
    @pytest.mark.asyncio
    async def test_owner_reads_project(self, service, store, alice, project_factory):
        await store.upsert(project_factory(owner_id=alice.id))

        project = await service.get_project("p1", alice)

        assert project.id == "p1"

    @pytest.mark.asyncio
    async def test_stranger_is_forbidden(self, service, store, bob, project_factory):
        await store.upsert(project_factory())

        with pytest.raises(ForbiddenError):
            await service.get_project("p1", bob)

    @pytest.mark.asyncio
    async def test_missing_project_is_not_found(self, service, alice):
        with pytest.raises(ProjectNotFoundError):
            await service.get_project("nope", alice)


class TestUpsertProjects:
    @pytest.mark.asyncio
    async def test_new_project_is_owned_by_caller(self, service, store, bob, project_factory):
        submitted = project_factory("new", owner_id="someone-else@example.com")

        result = await service.upsert_projects(bob, [submitted])

        assert result.written == ["new"]
        assert (await store.get("new")).owner_id == bob.id

    @pytest.mark.asyncio
    async def test_projects_without_write_access_are_skipped(
        self, service, store, bob, project_factory
    ):
        await store.upsert(project_factory("theirs", name="Original"))

        result = await service.upsert_projects(
            bob,
            [project_factory("theirs", name="Defaced"), project_factory("mine")],
        )

        assert result.skipped == ["theirs"]
        assert result.written == ["mine"]
        assert (await store.get("theirs")).model_extra["name"] == "Original"

    @pytest.mark.asyncio
    async def test_member_sync_cannot_remove_team_members(
        self, service, store, bob, project_factory
    ):
        await store.upsert(
            project_factory(
                team=[{"id": bob.id, "name": "Bob"}, {"id": "carol@example.com", "name": "Carol"}]
            )
        )

        await service.upsert_projects(
            bob, [project_factory(team=[{"id": bob.id, "name": "Bob"}], name="Renamed")]
        )

        stored = await store.get("p1")
        assert [m.id for m in stored.team] == [bob.id, "carol@example.com"]
        assert stored.model_extra["name"] == "Renamed"

    @pytest.mark.asyncio
    async def test_member_cannot_take_ownership(self, service, store, bob, project_factory):
        await store.upsert(project_factory(team=[{"id": bob.id, "name": "Bob"}]))

        await service.upsert_projects(
            bob, [project_factory(owner_id=bob.id, team=[{"id": bob.id}])]
        )

        assert (await store.get("p1")).owner_id == "alice@example.com"

    @pytest.mark.asyncio
    async def test_owner_may_hand_over_ownership(self, service, store, alice, project_factory):
        await store.upsert(project_factory(owner_id=alice.id))

        await service.upsert_projects(alice, [project_factory(owner_id="bob@example.com")])

        assert (await store.get("p1")).owner_id == "bob@example.com"

    @pytest.mark.asyncio
    async def test_client_timestamps_are_ignored(self, service, store, alice):
        submitted = Project.model_validate(
            {"id": "p1", "ownerId": alice.id, "createdAt": 1700000000000, "updatedAt": "Just now"}
        )

        await service.upsert_projects(alice, [submitted])

        stored = await store.get("p1")
        assert stored.created_at.year >= 2025


class TestMergeSubmission:
    def test_new_members_are_appended(self, alice, project_factory):
        stored = project_factory(team=[{"id": "a@x.com"}])
        submitted = project_factory(team=[{"id": "b@x.com"}])

        merged = merge_submission(stored, submitted, alice)

        assert [m.id for m in merged.team] == ["a@x.com", "b@x.com"]


class TestListAndDelete:
    @pytest.mark.asyncio
    async def test_list_is_scoped_to_caller(self, service, store, guest, project_factory):
        await store.upsert(project_factory("p1", team=[{"id": guest.id}]))
        await store.upsert(project_factory("p2"))

        projects = await service.list_projects(guest)

        assert [p.id for p in projects] == ["p1"]

    @pytest.mark.asyncio
    async def test_owner_deletes_member_cannot(
        self, service, store, alice, bob, project_factory
    ):
        await store.upsert(project_factory(team=[{"id": bob.id}]))

        assert await service.delete_project("p1", bob) is False
        assert await service.delete_project("p1", alice) is True
        assert await store.get("p1") is None
