"""Error envelope returned by every failing API call.

Successful calls return their payload directly; only failures are wrapped,
so clients can branch on ``error.code`` and ``error.retryable`` without
parsing messages.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ErrorMeta(BaseModel):
    api_version: str = "1.0"
    processing_time_ms: int
    timestamp: datetime


class ErrorLocation(BaseModel):
    """Which part of a project document the error refers to."""

    field: str | None = None
    project_id: str | None = None
    asset_id: str | None = None
    version_id: str | None = None
    comment_id: str | None = None


class SuggestedAction(BaseModel):
    action: str  # e.g. "refresh_ids", "retry_with_backoff"
    endpoint: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)  # e.g. retry delay_ms


class ErrorInfo(BaseModel):
    code: str
    message: str
    location: ErrorLocation | None = None
    retryable: bool = False
    suggested_fix: str | None = None
    suggested_actions: list[SuggestedAction] = Field(default_factory=list)
    details: dict[str, Any] | None = None


class ErrorEnvelope(BaseModel):
    request_id: str
    error: ErrorInfo
    meta: ErrorMeta
