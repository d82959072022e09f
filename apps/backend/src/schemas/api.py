"""Response envelopes shared by every Sharkbid endpoint.

Successful calls return ``ApiResponse[T]``. Failures return ``ErrorResponse``
whose ``error`` block always carries a correlation id and an error type, and
for remote-call failures whether the caller may retry.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, SerializerFunctionWrapHandler, model_serializer


T = TypeVar("T")


class ErrorDetail(BaseModel):
    """Error block of a failed response.

    Which optional fields appear depends on the environment; unset fields are
    left out of the serialized body entirely.
    """

    correlation_id: str
    type: str
    retryable: bool | None = None
    attempts: int | None = None
    details: dict[str, Any] | None = None
    exception_type: str | None = None
    traceback: str | None = None
    validation_errors: Any | None = None

    @model_serializer(mode="wrap")
    def _drop_unset(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        return {key: value for key, value in handler(self).items() if value is not None}


class ApiResponse(BaseModel, Generic[T]):
    """Envelope for successful responses.

    Attributes:
        success: Always True unless the envelope is an ``ErrorResponse``.
        data: The payload; list endpoints return an empty list rather than None.
        message: Short human-readable summary, e.g. ``"Found 3 match(es)"``.
        error: Populated only on ``ErrorResponse``.
    """

    success: bool = True
    data: T | None = None
    message: str = "Operation completed successfully"
    error: ErrorDetail | None = None


class ErrorResponse(ApiResponse[None]):
    """Envelope for failures raised anywhere in a request."""

    success: bool = False
    message: str = "An error occurred"

