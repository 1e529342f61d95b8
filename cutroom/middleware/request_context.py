"""Per-request id and timing, and rendering of error envelopes."""

from dataclasses import dataclass
from datetime import datetime, timezone
from time import perf_counter
from uuid import uuid4

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from cutroom.constants.error_codes import get_error_spec
from cutroom.exceptions import CutroomError
from cutroom.schemas.envelope import ErrorEnvelope, ErrorInfo, ErrorMeta


@dataclass
class RequestContext:
    request_id: str
    start_time: float


def create_request_context() -> RequestContext:
    return RequestContext(
        request_id=str(uuid4()),
        start_time=perf_counter(),
    )


def build_meta(context: RequestContext, api_version: str = "1.0") -> ErrorMeta:
    processing_time_ms = int((perf_counter() - context.start_time) * 1000)
    return ErrorMeta(
        api_version=api_version,
        processing_time_ms=processing_time_ms,
        timestamp=datetime.now(timezone.utc),
    )


def envelope_error(
    context: RequestContext,
    *,
    code: str,
    message: str,
    status_code: int,
) -> JSONResponse:
    spec = get_error_spec(code)
    error = ErrorInfo(
        code=code,
        message=message,
        retryable=spec.get("retryable", False),
        suggested_fix=spec.get("suggested_fix"),
    )
    return _envelope_response(context, error, status_code)


def envelope_error_from_exception(context: RequestContext, exc: CutroomError) -> JSONResponse:
    """Convert a CutroomError to an envelope error response."""
    return _envelope_response(context, exc.to_error_info(), exc.status_code)


def _envelope_response(context: RequestContext, error: ErrorInfo, status_code: int) -> JSONResponse:
    envelope = ErrorEnvelope(
        request_id=context.request_id,
        error=error,
        meta=build_meta(context),
    )
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope.model_dump(exclude_none=True)),
    )
