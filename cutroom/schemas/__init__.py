from cutroom.schemas.identity import Identity, IdentityRole
from cutroom.schemas.project import Asset, Comment, Project, TeamMember, Version

__all__ = [
    "Asset",
    "Comment",
    "Identity",
    "IdentityRole",
    "Project",
    "TeamMember",
    "Version",
]
