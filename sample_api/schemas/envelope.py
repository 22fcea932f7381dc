"""
Sample API - Response Envelopes
================================

What:  The two response shapes every dispatched request ends with.
Why:   Clients parse one uniform wrapper regardless of route:
           success → {"success": true, "result": <payload>}           (HTTP 200)
           failure → {"statusCode": <int>, "message": <str>, "body": {}}  (HTTP = statusCode)
How:   Pydantic models plus small constructors used by controllers, validators,
       auth checks and the chain executor.
"""

from typing import Any, Dict, Union

from pydantic import BaseModel, Field

from sample_api.exceptions import SampleApiError


class SuccessEnvelope(BaseModel):
    """Successful outcome; `result` is already JSON-compatible."""
    success: bool = Field(default=True, description="Response status")
    result: Any = Field(default=None, description="Operation payload")


class FailureEnvelope(BaseModel):
    """Failed outcome; `statusCode` mirrors the HTTP status line."""
    status_code: int = Field(alias="statusCode", ge=400, le=599)
    message: str = Field(description="Human-readable error description")
    body: Dict[str, Any] = Field(default_factory=dict, description="Offending request context")

    model_config = {"populate_by_name": True}


Envelope = Union[SuccessEnvelope, FailureEnvelope]


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def success(result: Any = None) -> SuccessEnvelope:
    return SuccessEnvelope(result=_jsonable(result))


def failure(
    status_code: int,
    message: str,
    body: Dict[str, Any] | None = None,
) -> FailureEnvelope:
    return FailureEnvelope(status_code=status_code, message=message, body=body or {})


def from_error(exc: SampleApiError) -> FailureEnvelope:
    """Build the failure envelope for an application error (body only, never context)."""
    return failure(exc.status_code, exc.message, exc.body)


def http_status(envelope: Envelope) -> int:
    if isinstance(envelope, FailureEnvelope):
        return envelope.status_code
    return 200


def render(envelope: Envelope) -> Dict[str, Any]:
    """JSON body for the wire, with camelCase keys."""
    return envelope.model_dump(mode="json", by_alias=True)
