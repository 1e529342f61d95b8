"""Project document schemas.

A project is stored as one JSON document with camelCase keys. Attributes are
snake_case in Python; keys the service does not interpret (playback metadata,
project name, ...) are kept as extras and written back unchanged.
"""

from collections.abc import Iterator
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel


class CommentStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"


class MemberRole(str, Enum):
    ADMIN = "Admin"
    CREATOR = "Creator"
    GUEST = "Guest"


class CommentAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


class DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class Comment(DocumentModel):
    id: str
    user_id: str
    text: str = ""
    timestamp: float = 0.0  # Media position in seconds
    status: CommentStatus = CommentStatus.OPEN
    # Older documents carry free-form strings here
    created_at: datetime | str | None = None
    author_name: str | None = None
    replies: list["Comment"] | None = None

    def iter_thread(self) -> Iterator["Comment"]:
        """Yield this comment followed by all nested replies."""
        yield self
        for reply in self.replies or []:
            yield from reply.iter_thread()


class Version(DocumentModel):
    id: str
    comments: list[Comment] = Field(default_factory=list)
    is_locked: bool = False

    @field_validator("comments", mode="before")
    @classmethod
    def normalize_comments(cls, value: Any) -> list:
        return _as_list(value)

    def find_comment(self, comment_id: str) -> int | None:
        for index, comment in enumerate(self.comments):
            if comment.id == comment_id:
                return index
        return None


class Asset(DocumentModel):
    id: str
    title: str | None = ""
    thumbnail: str | None = ""
    versions: list[Version] = Field(default_factory=list)

    @field_validator("versions", mode="before")
    @classmethod
    def normalize_versions(cls, value: Any) -> list:
        return _as_list(value)

    def find_version(self, version_id: str) -> Version | None:
        return next((v for v in self.versions if v.id == version_id), None)


class TeamMember(DocumentModel):
    id: str
    name: str = ""
    avatar: str | None = None
    role: MemberRole = MemberRole.CREATOR


class Project(DocumentModel):
    id: str = Field(..., min_length=1)
    owner_id: str = ""
    team: list[TeamMember] = Field(default_factory=list)
    assets: list[Asset] = Field(default_factory=list)
    # Server-assigned from the store row, never taken from the document body
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("team", mode="before")
    @classmethod
    def normalize_team(cls, value: Any) -> list:
        """Drop malformed entries and collapse duplicate ids (first one wins)."""
        members: list = []
        seen: set[str] = set()
        for entry in _as_list(value):
            if not isinstance(entry, (TeamMember, dict)):
                continue
            try:
                member = TeamMember.model_validate(entry)
            except ValidationError:
                continue
            if not member.id or member.id in seen:
                continue
            seen.add(member.id)
            members.append(member)
        return members

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def ignore_client_timestamps(cls, value: Any) -> datetime | None:
        return value if isinstance(value, datetime) else None

    @field_validator("assets", mode="before")
    @classmethod
    def normalize_assets(cls, value: Any) -> list:
        return _as_list(value)

    def find_asset(self, asset_id: str) -> Asset | None:
        return next((a for a in self.assets if a.id == asset_id), None)

    def member_index(self, member_id: str) -> int | None:
        for index, member in enumerate(self.team):
            if member.id == member_id:
                return index
        return None

    def iter_comments(self) -> Iterator[Comment]:
        """Yield every comment (and nested reply) across all assets and versions."""
        for asset in self.assets:
            for version in asset.versions:
                for comment in version.comments:
                    yield from comment.iter_thread()

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored JSON payload (timestamps live in columns)."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"created_at", "updated_at"},
        )


# =============================================================================
# Comment payloads
# =============================================================================


class CommentCreate(DocumentModel):
    """Payload for creating a comment. Any claimed author is ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str | None = None
    text: str = Field(..., min_length=1)
    timestamp: float = Field(default=0.0, ge=0)
    duration: float | None = Field(default=None, ge=0)
    status: CommentStatus = CommentStatus.OPEN


class CommentPatch(DocumentModel):
    """Payload for updating a comment. Only whitelisted fields are mutable."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    id: str = Field(..., min_length=1)
    text: str | None = Field(default=None, min_length=1)
    status: CommentStatus | None = None


class CommentRef(DocumentModel):
    """Payload for deleting a comment."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1)


class CommentActionRequest(DocumentModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    asset_id: str | None = None
    version_id: str | None = None
    # Plain string so unknown actions surface as a domain error, not a 422
    action: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class CommentActionResult(BaseModel):
    action: CommentAction
    changed: bool
    comment: Comment | None = None
    project: Project


# =============================================================================
# Sync
# =============================================================================


class SyncResult(BaseModel):
    written: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


class DeleteResult(BaseModel):
    deleted: bool
