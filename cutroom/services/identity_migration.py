"""Guest-to-account identity migration.

When a guest signs in with a real account, every reference to the guest id
(ownership, team membership, comment authorship) is rewritten to the new
identity across the whole store. Each document is read and written on its
own; a failure part way through leaves earlier documents migrated and is
reported with the partial count. Re-running after success changes nothing.
"""

import logging

from cutroom.exceptions import (
    CutroomError,
    ForbiddenError,
    InvalidFieldValueError,
    MigrationIncompleteError,
    MissingRequiredFieldError,
)
from cutroom.schemas.identity import Identity, MigrationResult
from cutroom.schemas.project import Project
from cutroom.services.project_store import ProjectStore

logger = logging.getLogger(__name__)


def migrate_team(project: Project, guest_id: str, identity: Identity) -> bool:
    guest_index = project.member_index(guest_id)
    if guest_index is None:
        return False

    if project.member_index(identity.id) is not None:
        # The account is already a member; drop the guest entry instead of duplicating
        del project.team[guest_index]
    else:
        project.team[guest_index] = identity.to_member()
    return True


def migrate_authorship(project: Project, guest_id: str, identity: Identity) -> bool:
    touched = False
    for comment in project.iter_comments():
        if comment.user_id == guest_id:
            comment.user_id = identity.id
            comment.author_name = identity.display_name
            touched = True
    return touched


def migrate_ownership(project: Project, guest_id: str, identity: Identity) -> bool:
    if project.owner_id != guest_id:
        return False
    project.owner_id = identity.id
    return True


def migrate_project(project: Project, guest_id: str, identity: Identity) -> bool:
    """Rewrite guest references in one document. True if anything changed."""
    owner_touched = migrate_ownership(project, guest_id, identity)
    team_touched = migrate_team(project, guest_id, identity)
    comments_touched = migrate_authorship(project, guest_id, identity)
    return owner_touched or team_touched or comments_touched


class IdentityMigrationService:
    def __init__(self, store: ProjectStore, guest_id_prefix: str = "guest-") -> None:
        self.store = store
        self.guest_id_prefix = guest_id_prefix

    async def migrate(self, guest_id: str | None, identity: Identity) -> MigrationResult:
        if not guest_id:
            raise MissingRequiredFieldError("guest_id")
        if identity.id == guest_id:
            return MigrationResult(migrated_count=0, identity=identity)

        if not guest_id.startswith(self.guest_id_prefix):
            raise InvalidFieldValueError(field="guest_id", value=guest_id)
        if not identity.verified:
            raise ForbiddenError("Only a verified account can take over guest data")

        logger.info(f"Migrating guest [{guest_id}] to account [{identity.id}]")

        projects = await self.store.list_all()
        migrated_count = 0
        for project in projects:
            if not migrate_project(project, guest_id, identity):
                continue
            try:
                await self.store.upsert(project)
            except CutroomError as e:
                logger.error(
                    f"Migration of guest [{guest_id}] stopped at project {project.id} "
                    f"after {migrated_count} project(s): {e}"
                )
                raise MigrationIncompleteError(migrated_count, project_id=project.id) from e
            migrated_count += 1

        logger.info(f"Migration complete. Updated {migrated_count} projects.")
        return MigrationResult(migrated_count=migrated_count, identity=identity)
