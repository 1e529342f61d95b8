"""Collaborative mutation engine.

Team joins and comment actions all follow the same protocol: load the
document, authorize, mutate it in memory, persist the whole document. A
rejected mutation never writes. Two writers that loaded the same revision
race, and the later persist wins.
"""

import logging
import uuid
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from cutroom.exceptions import (
    AssetNotFoundError,
    InvalidFieldValueError,
    MissingRequiredFieldError,
    ProjectNotFoundError,
    UnknownCommentActionError,
    VersionLockedError,
    VersionNotFoundError,
)
from cutroom.schemas.identity import Identity
from cutroom.schemas.project import (
    Comment,
    CommentAction,
    CommentActionResult,
    CommentCreate,
    CommentPatch,
    CommentRef,
    Project,
    Version,
)
from cutroom.services.access import AccessLevel, require_access, require_comment_author_or_verified
from cutroom.services.project_store import ProjectStore, utcnow

logger = logging.getLogger(__name__)

_PAYLOAD_MODELS = {
    CommentAction.CREATE: CommentCreate,
    CommentAction.UPDATE: CommentPatch,
    CommentAction.DELETE: CommentRef,
}


def _parse_action(action: str | None) -> CommentAction:
    if not action:
        raise MissingRequiredFieldError("action")
    try:
        return CommentAction(action)
    except ValueError:
        raise UnknownCommentActionError(action)


def _parse_payload(action: CommentAction, payload: Any) -> CommentCreate | CommentPatch | CommentRef:
    if not isinstance(payload, dict):
        raise InvalidFieldValueError("payload must be an object", field="payload")
    try:
        return _PAYLOAD_MODELS[action].model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(x) for x in first.get("loc", ())) or "payload"
        if first.get("type") == "missing":
            raise MissingRequiredFieldError(f"payload.{field}")
        raise InvalidFieldValueError(
            f"Invalid payload.{field}: {first.get('msg', 'invalid value')}",
            field=f"payload.{field}",
        )


class CollaborationService:
    def __init__(self, store: ProjectStore) -> None:
        self.store = store

    async def _load(self, project_id: str) -> Project:
        project = await self.store.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def join(self, project_id: str, identity: Identity) -> Project:
        """Add the identity to the project's team.

        Open to anyone who knows the project id (invite-by-link), so the
        access guard is not consulted. Joining twice is a no-op.
        """
        if not project_id:
            raise MissingRequiredFieldError("project_id")
        project = await self._load(project_id)

        if project.member_index(identity.id) is not None:
            return project

        project.team.append(identity.to_member())
        saved = await self.store.upsert(project)
        logger.info(f"User {identity.display_name} ({identity.id}) joined project {project_id}")
        return saved

    async def mutate_comment(
        self,
        project_id: str | None,
        asset_id: str | None,
        version_id: str | None,
        action: str | None,
        payload: Any,
        identity: Identity,
    ) -> CommentActionResult:
        for name, value in (
            ("project_id", project_id),
            ("asset_id", asset_id),
            ("version_id", version_id),
        ):
            if not value:
                raise MissingRequiredFieldError(name)
        parsed_action = _parse_action(action)
        parsed_payload = _parse_payload(parsed_action, payload)

        project = await self._load(project_id)
        require_access(identity, project, AccessLevel.WRITE)

        asset = project.find_asset(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        version = asset.find_version(version_id)
        if version is None:
            raise VersionNotFoundError(version_id, asset_id=asset_id)

        if parsed_action == CommentAction.CREATE:
            comment = self._create(version, parsed_payload, identity)
        elif parsed_action == CommentAction.UPDATE:
            comment = self._update(version, parsed_payload, identity)
        else:
            comment = self._delete(version, parsed_payload, identity)

        if comment is None:
            # Unknown comment id or empty patch: no-op, nothing to persist
            return CommentActionResult(action=parsed_action, changed=False, project=project)

        saved = await self.store.upsert(project)
        logger.info(
            f"Comment {parsed_action.value} by {identity.id} on "
            f"{project_id}/{asset_id}/{version_id}: {comment.id}"
        )
        return CommentActionResult(
            action=parsed_action, changed=True, comment=comment, project=saved
        )

    @staticmethod
    def _create(version: Version, payload: CommentCreate, identity: Identity) -> Comment:
        if version.is_locked:
            raise VersionLockedError(version.id)
        comment_id = payload.id or str(uuid.uuid4())
        if version.find_comment(comment_id) is not None:
            raise InvalidFieldValueError(
                f"Comment id already exists: {comment_id}", field="payload.id"
            )

        extra = {"duration": payload.duration} if payload.duration is not None else {}
        comment = Comment(
            id=comment_id,
            user_id=identity.id,
            author_name=identity.display_name,
            text=payload.text,
            timestamp=payload.timestamp,
            status=payload.status,
            created_at=utcnow(),
            **extra,
        )
        version.comments.append(comment)
        return comment

    @staticmethod
    def _update(version: Version, patch: CommentPatch, identity: Identity) -> Comment | None:
        index = version.find_comment(patch.id)
        if index is None:
            return None
        comment = version.comments[index]
        require_comment_author_or_verified(identity, comment)

        changes = patch.model_dump(exclude={"id"}, exclude_none=True)
        if not changes:
            return None
        updated = comment.model_copy(update=changes)
        version.comments[index] = updated
        return updated

    @staticmethod
    def _delete(version: Version, ref: CommentRef, identity: Identity) -> Comment | None:
        index = version.find_comment(ref.id)
        if index is None:
            return None
        require_comment_author_or_verified(identity, version.comments[index])
        return version.comments.pop(index)
