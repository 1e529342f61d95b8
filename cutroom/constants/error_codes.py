"""Error codes dictionary.

Single source of truth for every error code the service emits, whether it is
retryable, and the recovery hint attached to error envelopes.
"""

from typing import Any, TypedDict


class ErrorCodeSpec(TypedDict, total=False):
    """Specification for an error code."""

    retryable: bool
    suggested_action: str
    suggested_endpoint: str
    suggested_fix: str
    parameters: dict[str, Any]


ERROR_CODES: dict[str, ErrorCodeSpec] = {
    # ==========================================================================
    # Identity / access
    # ==========================================================================
    "UNAUTHENTICATED": {
        "retryable": False,
        "suggested_fix": "Send an X-Guest-ID header or an Authorization: Bearer token",
    },
    "FORBIDDEN": {
        "retryable": False,
        "suggested_fix": "Join the project or sign in with a verified account",
    },
    # ==========================================================================
    # Resource errors (retryable after refresh)
    # ==========================================================================
    "PROJECT_NOT_FOUND": {
        "retryable": True,
        "suggested_action": "refresh_ids",
        "suggested_endpoint": "GET /api/projects",
    },
    "ASSET_NOT_FOUND": {
        "retryable": True,
        "suggested_action": "refresh_ids",
        "suggested_endpoint": "GET /api/projects/{project_id}",
    },
    "VERSION_NOT_FOUND": {
        "retryable": True,
        "suggested_action": "refresh_ids",
        "suggested_endpoint": "GET /api/projects/{project_id}",
    },
    "DRIVE_CONNECTION_NOT_FOUND": {
        "retryable": False,
        "suggested_fix": "Sign in again and grant Google Drive access",
    },
    # ==========================================================================
    # Validation errors (not retryable, fix input)
    # ==========================================================================
    "VALIDATION_ERROR": {
        "retryable": False,
    },
    "MISSING_REQUIRED_FIELD": {
        "retryable": False,
    },
    "INVALID_FIELD_VALUE": {
        "retryable": False,
    },
    "UNKNOWN_COMMENT_ACTION": {
        "retryable": False,
        "suggested_fix": "Use one of: create, update, delete",
    },
    "VERSION_LOCKED": {
        "retryable": False,
        "suggested_fix": "Unlock the version or comment on a newer version",
    },
    # ==========================================================================
    # Deployment / backend errors
    # ==========================================================================
    "NOT_INITIALIZED": {
        "retryable": False,
        "suggested_fix": "Run database initialization before serving requests",
    },
    "STORE_UNAVAILABLE": {
        "retryable": True,
        "suggested_action": "retry_with_backoff",
        "parameters": {"delay_ms": 1000, "max_retries": 3},
    },
    "DOCUMENT_CORRUPT": {
        "retryable": False,
        "suggested_fix": "Repair or re-sync the project document",
    },
    "MIGRATION_INCOMPLETE": {
        "retryable": True,
        "suggested_action": "retry_with_backoff",
        "suggested_fix": "Re-run the migration; already migrated projects are skipped",
        "parameters": {"delay_ms": 2000, "max_retries": 2},
    },
    "SERVICE_UNAVAILABLE": {
        "retryable": True,
        "suggested_action": "retry_with_backoff",
        "parameters": {"delay_ms": 2000, "max_retries": 2},
    },
    "INTERNAL_ERROR": {
        "retryable": False,
    },
}


def get_error_spec(code: str) -> ErrorCodeSpec:
    """Get error specification by code.

    Args:
        code: The error code

    Returns:
        ErrorCodeSpec with retryable flag and suggested actions
    """
    return ERROR_CODES.get(code, {"retryable": False})
