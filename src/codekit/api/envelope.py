"""Decoding of the backend's `{success, data|error}` response envelope."""

import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)


class ErrorBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str | None = None
    code: str | int | None = None
    details: Any = None


class SuccessEnvelope(BaseModel):
    """`{success: true, data: ...}`"""

    model_config = ConfigDict(extra="ignore")

    success: Literal[True]
    data: Any


class FailureEnvelope(BaseModel):
    """`{success: false, error: {...}}`"""

    model_config = ConfigDict(extra="ignore")

    success: Literal[False]
    error: ErrorBody | None = None


class LegacyBody(BaseModel):
    """Any other JSON document.

    Deprecated: older endpoints return their payload without an envelope. The
    body is passed through as-is.
    """

    raw: Any


Envelope = SuccessEnvelope | FailureEnvelope | LegacyBody


def decode_envelope(body: Any) -> Envelope:
    """Classify a parsed JSON body into one of the envelope variants.

    Any body with `success: false` is a failure, whatever shape its `error`
    takes.
    """
    if isinstance(body, dict) and "success" in body:
        if body["success"] is False:
            message, code, details = error_fields(body)
            return FailureEnvelope(
                success=False,
                error=ErrorBody(message=message, code=code, details=details),
            )
        if body["success"] is True and "data" in body:
            return SuccessEnvelope.model_validate(body)

    logger.debug("Legacy response body without envelope")
    return LegacyBody(raw=body)


def _error_body(error: dict) -> ErrorBody:
    try:
        return ErrorBody.model_validate(error)
    except ValidationError:
        message = error.get("message")
        code = error.get("code")
        return ErrorBody(
            message=None if message is None else str(message),
            code=None if code is None else str(code),
            details=error.get("details"),
        )


def error_fields(body: Any) -> tuple[str | None, str | None, Any]:
    """Extract (message, code, details) from an error response body.

    Understands the envelope shape `{error: {message, code, details}}`, a
    bare string `error`, and a plain `{message: ...}` document.
    """
    if not isinstance(body, dict):
        return None, None, None

    error = body.get("error")
    if isinstance(error, dict):
        parsed = _error_body(error)
        code = str(parsed.code) if parsed.code is not None else None
        return parsed.message, code, parsed.details
    if isinstance(error, str):
        return error, None, body.get("details")

    message = body.get("message")
    if body.get("success") is False:
        return (None if message is None else str(message)), None, body.get("details")
    return (message if isinstance(message, str) else None), None, body
