from fastapi import APIRouter

from cutroom.api.deps import BearerIdentity, CurrentIdentity, Migration, Session
from cutroom.schemas.identity import IdentityResponse, MigrateRequest, MigrationResult
from cutroom.services.drive_token import DriveTokenService

router = APIRouter()


@router.get("/me", response_model=IdentityResponse)
async def get_current_identity_info(identity: CurrentIdentity) -> IdentityResponse:
    """Get the identity the request credentials resolve to."""
    return IdentityResponse.model_validate(identity.model_dump())


@router.post("/migrate", response_model=MigrationResult)
async def migrate_guest(
    request: MigrateRequest,
    identity: BearerIdentity,
    migration: Migration,
) -> MigrationResult:
    """Move everything owned or authored by a guest id onto the signed-in account."""
    return await migration.migrate(request.guest_id, identity)


@router.get("/drive-token")
async def get_drive_token(session: Session) -> dict[str, str]:
    """Return a fresh Google Drive access token for the signed-in account."""
    token = await DriveTokenService().get_access_token(session)
    return {"access_token": token}
