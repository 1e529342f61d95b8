"""Caller-facing project operations: read, list, sync and delete."""

import logging

from cutroom.exceptions import ProjectNotFoundError
from cutroom.schemas.identity import Identity
from cutroom.schemas.project import Project, SyncResult
from cutroom.services.access import AccessLevel, can_access, is_owner, require_access
from cutroom.services.project_store import ProjectStore

logger = logging.getLogger(__name__)


def merge_submission(stored: Project, submitted: Project, identity: Identity) -> Project:
    """Merge a synced document onto the stored one.

    Assets and metadata come from the submission. Team membership never
    shrinks: stored members stay in place, new submitted members are
    appended. Only the current owner may hand ownership to someone else.
    """
    merged = submitted.model_copy(deep=True)
    merged.team = list(stored.team)
    for member in submitted.team:
        if stored.member_index(member.id) is None:
            merged.team.append(member)

    if not is_owner(identity, stored) or not submitted.owner_id:
        merged.owner_id = stored.owner_id
    merged.created_at = stored.created_at
    merged.updated_at = stored.updated_at
    return merged


class ProjectService:
    def __init__(self, store: ProjectStore) -> None:
        self.store = store

    async def get_project(self, project_id: str, identity: Identity) -> Project:
        project = await self.store.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        require_access(identity, project, AccessLevel.READ)
        return project

    async def list_projects(self, identity: Identity) -> list[Project]:
        return await self.store.list_for(identity.id)

    async def upsert_projects(self, identity: Identity, projects: list[Project]) -> SyncResult:
        """Write each submitted project the identity may write; skip the rest.

        New project ids are created with the identity as owner. Skipped
        projects do not fail the batch.
        """
        result = SyncResult()
        for submitted in projects:
            stored = await self.store.get(submitted.id)
            if stored is None:
                project = submitted.model_copy(update={"owner_id": identity.id})
            elif can_access(identity, stored) == AccessLevel.WRITE:
                project = merge_submission(stored, submitted, identity)
            else:
                logger.info(f"Sync by {identity.id} skipped project {submitted.id}: no access")
                result.skipped.append(submitted.id)
                continue

            await self.store.upsert(project)
            result.written.append(submitted.id)
        return result

    async def delete_project(self, project_id: str, identity: Identity) -> bool:
        deleted = await self.store.delete(project_id, identity.id)
        if deleted:
            logger.info(f"User {identity.id} deleted project {project_id}")
        return deleted
