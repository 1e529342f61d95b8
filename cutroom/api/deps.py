from typing import Annotated, Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from cutroom.config import Settings, get_settings
from cutroom.exceptions import UnauthenticatedError
from cutroom.models.database import get_db
from cutroom.schemas.identity import Identity
from cutroom.services.collaboration import CollaborationService
from cutroom.services.drive_token import RequestSession, build_access_token_provider
from cutroom.services.identity_migration import IdentityMigrationService
from cutroom.services.identity_resolver import IdentityResolver, get_identity_resolver
from cutroom.services.media_service import MediaService
from cutroom.services.project_service import ProjectService
from cutroom.services.project_store import ProjectStore
from cutroom.services.storage_service import StorageService, get_storage_service

# Use auto_error=False so guest requests without a bearer token get through
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]
Resolver = Annotated[IdentityResolver, Depends(get_identity_resolver)]


async def get_optional_identity(
    resolver: Resolver,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    x_guest_id: Annotated[Optional[str], Header(alias="X-Guest-ID")] = None,
) -> Identity | None:
    token = credentials.credentials if credentials else None
    return await resolver.resolve(guest_marker=x_guest_id, bearer_token=token)


async def get_current_identity(
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> Identity:
    if identity is None:
        raise UnauthenticatedError()
    return identity


async def get_bearer_identity(
    resolver: Resolver,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Identity:
    """Resolve from the bearer token alone, ignoring any guest marker."""
    token = credentials.credentials if credentials else None
    identity = await resolver.resolve(bearer_token=token)
    if identity is None:
        raise UnauthenticatedError("A valid bearer token is required")
    return identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
BearerIdentity = Annotated[Identity, Depends(get_bearer_identity)]


def get_project_store(db: DbSession) -> ProjectStore:
    return ProjectStore(db)


Store = Annotated[ProjectStore, Depends(get_project_store)]


def get_project_service(store: Store) -> ProjectService:
    return ProjectService(store)


def get_collaboration_service(store: Store) -> CollaborationService:
    return CollaborationService(store)


def get_migration_service(store: Store, settings: AppSettings) -> IdentityMigrationService:
    return IdentityMigrationService(store, guest_id_prefix=settings.guest_id_prefix)


def get_media_service(
    storage: Annotated[StorageService, Depends(get_storage_service)],
    settings: AppSettings,
) -> MediaService:
    return MediaService(
        storage,
        allowed_content_types=settings.allowed_video_types,
        expires_minutes=settings.upload_url_expires_minutes,
    )


def get_request_session(identity: CurrentIdentity, settings: AppSettings) -> RequestSession:
    return RequestSession(identity=identity, token_provider=build_access_token_provider(settings))


Projects = Annotated[ProjectService, Depends(get_project_service)]
Collaboration = Annotated[CollaborationService, Depends(get_collaboration_service)]
Migration = Annotated[IdentityMigrationService, Depends(get_migration_service)]
Media = Annotated[MediaService, Depends(get_media_service)]
Session = Annotated[RequestSession, Depends(get_request_session)]
