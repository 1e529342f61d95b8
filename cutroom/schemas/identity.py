from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from cutroom.schemas.project import MemberRole, TeamMember


class IdentityRole(str, Enum):
    GUEST = "Guest"
    AUTHENTICATED = "Authenticated"


class Identity(BaseModel):
    """The acting user of a request.

    Never persisted on its own; embedded by value into project documents as a
    team member or as a comment author.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    verified: bool = False
    role: IdentityRole = IdentityRole.GUEST
    email: str | None = None
    subject_id: str | None = None  # Provider subject, used to fetch provider tokens
    avatar_url: str | None = None

    @property
    def is_guest(self) -> bool:
        return self.role == IdentityRole.GUEST

    def to_member(self) -> TeamMember:
        """Build the team membership record for this identity."""
        extra = {"email": self.email} if self.email else {}
        return TeamMember(
            id=self.id,
            name=self.display_name,
            avatar=self.avatar_url,
            role=MemberRole.GUEST if self.is_guest else MemberRole.CREATOR,
            **extra,
        )


class ProviderClaims(BaseModel):
    """What an identity provider yields for a verified bearer token."""

    subject_id: str
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None


class IdentityResponse(BaseModel):
    id: str
    display_name: str
    verified: bool
    role: IdentityRole
    email: str | None = None
    avatar_url: str | None = None


class MigrateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    guest_id: str | None = None


class MigrationResult(BaseModel):
    migrated_count: int
    identity: Identity
