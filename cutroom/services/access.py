"""Centralized project access control.

Every entry point that reads or mutates a project goes through these helpers.
They are pure: the decision is computed from the identity and the loaded
document alone, without touching the store.
"""

from enum import Enum

from cutroom.exceptions import ForbiddenError
from cutroom.schemas.identity import Identity
from cutroom.schemas.project import Comment, Project


class AccessLevel(str, Enum):
    NONE = "none"
    READ = "read"
    WRITE = "write"


def is_owner(identity: Identity, project: Project) -> bool:
    return bool(project.owner_id) and project.owner_id == identity.id


def is_member(identity_id: str, project: Project) -> bool:
    return project.member_index(identity_id) is not None


def can_access(identity: Identity, project: Project) -> AccessLevel:
    """Access granted by ownership or team membership.

    Membership grants full write access; there is no read-only tier in the
    document model, so READ is never returned on its own today.
    """
    if is_owner(identity, project) or is_member(identity.id, project):
        return AccessLevel.WRITE
    return AccessLevel.NONE


def require_access(identity: Identity, project: Project, level: AccessLevel) -> None:
    granted = can_access(identity, project)
    if level == AccessLevel.WRITE and granted != AccessLevel.WRITE:
        raise ForbiddenError(f"Access denied to project {project.id}")
    if level == AccessLevel.READ and granted == AccessLevel.NONE:
        raise ForbiddenError(f"Access denied to project {project.id}")


def can_modify_comment(identity: Identity, comment: Comment) -> bool:
    """Authors may edit their own comments; verified identities may edit any."""
    return comment.user_id == identity.id or identity.verified


def require_comment_author_or_verified(identity: Identity, comment: Comment) -> None:
    if not can_modify_comment(identity, comment):
        raise ForbiddenError(f"Only the author or a verified user can modify comment {comment.id}")
