"""Custom exceptions for the cutroom backend.

Every operation of the core resolves to a value or to one of these typed
errors. Each carries a machine-readable code, an HTTP status for the API layer
and, through the error-code dictionary, a retryable flag and recovery hint.
"""

from typing import Any

from cutroom.constants.error_codes import get_error_spec
from cutroom.schemas.envelope import ErrorInfo, ErrorLocation, SuggestedAction


class CutroomError(Exception):
    """Base exception for all cutroom application errors."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        location: ErrorLocation | None = None,
        suggested_fix: str | None = None,
    ):
        self.message = message or self.__class__.message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.location = location
        self.suggested_fix = suggested_fix
        super().__init__(self.message)

    def details(self) -> dict[str, Any] | None:
        """Extra structured data for the error envelope."""
        return None

    def to_error_info(self) -> ErrorInfo:
        """Convert exception to ErrorInfo for API response."""
        spec = get_error_spec(self.code)
        retryable = spec.get("retryable", False)

        suggested_actions: list[SuggestedAction] = []
        if "suggested_action" in spec:
            action = SuggestedAction(
                action=spec["suggested_action"],
                endpoint=spec.get("suggested_endpoint"),
                parameters=spec.get("parameters", {}),
            )
            suggested_actions.append(action)

        suggested_fix = self.suggested_fix or spec.get("suggested_fix")

        return ErrorInfo(
            code=self.code,
            message=self.message,
            location=self.location,
            retryable=retryable,
            suggested_fix=suggested_fix,
            suggested_actions=suggested_actions,
            details=self.details(),
        )


# =============================================================================
# Identity / Access Errors (401/403)
# =============================================================================


class UnauthenticatedError(CutroomError):
    """No usable identity could be resolved from the request credentials."""

    code = "UNAUTHENTICATED"
    status_code = 401
    message = "Authentication required"


class ForbiddenError(CutroomError):
    """Identity resolved but lacks the required access."""

    code = "FORBIDDEN"
    status_code = 403
    message = "Access denied"


# =============================================================================
# Resource Not Found Errors (404)
# =============================================================================


class ResourceNotFoundError(CutroomError):
    """Base class for resource not found errors."""

    status_code = 404


class ProjectNotFoundError(ResourceNotFoundError):
    """Project not found."""

    code = "PROJECT_NOT_FOUND"
    message = "Project not found"

    def __init__(self, project_id: str | None = None):
        message = f"Project not found: {project_id}" if project_id else self.message
        location = ErrorLocation(project_id=project_id) if project_id else None
        super().__init__(message, location=location)


class AssetNotFoundError(ResourceNotFoundError):
    """Asset not found."""

    code = "ASSET_NOT_FOUND"
    message = "Asset not found"

    def __init__(self, asset_id: str | None = None):
        message = f"Asset not found: {asset_id}" if asset_id else self.message
        location = ErrorLocation(asset_id=asset_id) if asset_id else None
        super().__init__(message, location=location)


class VersionNotFoundError(ResourceNotFoundError):
    """Version not found within an asset."""

    code = "VERSION_NOT_FOUND"
    message = "Version not found"

    def __init__(self, version_id: str | None = None, asset_id: str | None = None):
        message = f"Version not found: {version_id}" if version_id else self.message
        location = (
            ErrorLocation(version_id=version_id, asset_id=asset_id) if version_id else None
        )
        super().__init__(message, location=location)


class DriveConnectionNotFoundError(ResourceNotFoundError):
    """No provider access token is linked to the identity."""

    code = "DRIVE_CONNECTION_NOT_FOUND"
    message = "No Google Drive connection found. Please re-login."


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(CutroomError):
    """Base class for malformed-input errors."""

    code = "VALIDATION_ERROR"
    status_code = 400
    message = "Invalid request"


class MissingRequiredFieldError(ValidationError):
    """Required field is missing."""

    code = "MISSING_REQUIRED_FIELD"
    message = "Required field is missing"

    def __init__(self, field: str | None = None):
        message = f"Required field is missing: {field}" if field else self.message
        location = ErrorLocation(field=field) if field else None
        super().__init__(message, location=location)


class InvalidFieldValueError(ValidationError):
    """Field value is invalid."""

    code = "INVALID_FIELD_VALUE"
    message = "Invalid field value"

    def __init__(
        self, message: str | None = None, *, field: str | None = None, value: Any = None
    ):
        msg = message or self.message
        if field and value is not None and message is None:
            msg = f"Invalid value for field '{field}': {value}"
        location = ErrorLocation(field=field) if field else None
        super().__init__(msg, location=location)


class UnknownCommentActionError(ValidationError):
    """Comment action is not one of create/update/delete."""

    code = "UNKNOWN_COMMENT_ACTION"
    message = "Unknown comment action"

    def __init__(self, action: str | None = None):
        message = f"Unknown comment action: {action}" if action else self.message
        super().__init__(message, location=ErrorLocation(field="action"))


class VersionLockedError(ValidationError):
    """Version is locked and does not accept new comments."""

    code = "VERSION_LOCKED"
    message = "Version is locked"

    def __init__(self, version_id: str | None = None):
        message = f"Version is locked: {version_id}" if version_id else self.message
        location = ErrorLocation(version_id=version_id) if version_id else None
        super().__init__(message, location=location)


# =============================================================================
# Backend Errors (503)
# =============================================================================


class NotInitializedError(CutroomError):
    """Backing table/schema is missing. A deployment error, not a missing entity."""

    code = "NOT_INITIALIZED"
    status_code = 503
    message = "Project store is not initialized"


class StoreUnavailableError(CutroomError):
    """Transient persistence-layer failure."""

    code = "STORE_UNAVAILABLE"
    status_code = 503
    message = "Project store is temporarily unavailable"


class CorruptDocumentError(CutroomError):
    """A stored document no longer fits the project schema."""

    code = "DOCUMENT_CORRUPT"
    status_code = 500
    message = "Stored project document is corrupt"

    def __init__(self, project_id: str | None = None):
        message = f"Stored project document is corrupt: {project_id}" if project_id else self.message
        location = ErrorLocation(project_id=project_id) if project_id else None
        super().__init__(message, location=location)


class MigrationIncompleteError(StoreUnavailableError):
    """Identity migration stopped part way through the store scan."""

    code = "MIGRATION_INCOMPLETE"
    message = "Identity migration did not complete"

    def __init__(self, migrated_count: int, project_id: str | None = None):
        self.migrated_count = migrated_count
        self.project_id = project_id
        message = f"Identity migration stopped after {migrated_count} project(s)"
        if project_id:
            message += f" while saving project {project_id}"
        location = ErrorLocation(project_id=project_id) if project_id else None
        super().__init__(message, location=location)

    def details(self) -> dict[str, Any] | None:
        return {"migrated_count": self.migrated_count}


class ServiceUnavailableError(CutroomError):
    """An external collaborator is temporarily unavailable."""

    code = "SERVICE_UNAVAILABLE"
    status_code = 503
    message = "Service is temporarily unavailable"
