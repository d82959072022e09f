"""Centralized error handling and logging for the Sharkbid API.

This module provides:
- Global exception handler for FastAPI
- Structured logging with correlation IDs
- Mapping of classified remote-call failures onto HTTP responses
- Environment-aware error responses (generic in production, detailed in dev)
"""

import json
import logging
import sys
import traceback
import uuid
from collections.abc import Mapping
from contextvars import ContextVar
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from core.config import get_settings
from core.exceptions import DomainError
from core.resilience.errors import (
    RemoteCallError,
    RemoteOperationError,
    UnclassifiedError,
)
from core.security_config import get_allowed_error_fields, is_sensitive_key
from schemas.api import ErrorResponse


# Context variable for correlation ID tracking across async calls
_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "Unknown error"
_OBJECT_ARTIFACT = "[object Object]"
_MESSAGE_FIELDS = ("message", "error", "error_description", "detail", "msg")

REMOTE_KIND_STATUS: dict[str, int] = {
    "validation": 400,
    "authorization": 403,
    "not_found": 404,
    "conflict": 409,
    "remote": 502,
}

REMOTE_KIND_MESSAGES: dict[str, str] = {
    "validation": "The request was rejected as invalid",
    "authorization": "You do not have access to this resource",
    "not_found": "The requested resource was not found",
    "conflict": "The request conflicts with existing data",
    "remote": "The data service reported an error",
}

HTTP_ERROR_TYPES: dict[int, str] = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
}


def get_correlation_id() -> str:
    """Get or create a correlation ID for request tracing."""
    correlation_id: str | None = _correlation_id_var.get()
    if not correlation_id:
        new_id = str(uuid.uuid4())
        _correlation_id_var.set(new_id)
        return new_id
    return correlation_id


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for the current context."""
    _correlation_id_var.set(correlation_id)


def get_error_message(err: Any) -> str:
    """Extract a human-readable message from any error-like value.

    Accepts exceptions, strings and mappings shaped like remote error payloads
    (``message``, ``error``, ``error_description``, ``detail``, ``msg`` with an
    optional ``details`` suffix). Never returns ``"[object Object]"``.
    """
    if isinstance(err, RemoteCallError):
        return err.message or UNKNOWN_ERROR_MESSAGE
    if isinstance(err, BaseException):
        return str(err) or type(err).__name__
    if not err:
        return UNKNOWN_ERROR_MESSAGE
    if isinstance(err, str):
        return UNKNOWN_ERROR_MESSAGE if err.strip() == _OBJECT_ARTIFACT else err
    if isinstance(err, Mapping):
        return _message_from_mapping(err)
    text = str(err)
    return UNKNOWN_ERROR_MESSAGE if text == _OBJECT_ARTIFACT else text


def _message_from_mapping(payload: Mapping[Any, Any]) -> str:
    for field in _MESSAGE_FIELDS:
        value = payload.get(field)
        if isinstance(value, Mapping) and value:
            return _message_from_mapping(value)
        if isinstance(value, str) and value and value.strip() != _OBJECT_ARTIFACT:
            details = payload.get("details")
            if isinstance(details, str) and details:
                return f"{value}: {details}"
            return value
    try:
        return json.dumps(payload)
    except (TypeError, ValueError):
        return UNKNOWN_ERROR_MESSAGE


class StructuredLogger:
    """Structured logger that includes correlation IDs and sanitized data."""

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def _log_with_context(
        self,
        level: int,
        message: str,
        extra_data: dict[str, Any] | None = None,
        exc_info: bool = False,
    ) -> None:
        correlation_id = get_correlation_id()
        log_data = {
            "correlation_id": correlation_id,
            "message": message,
            **self._sanitize_data(extra_data or {}),
        }

        # The JSON formatter picks up `structured_data`; in development the
        # correlation id is also prefixed so plain-text logs stay greppable.
        if get_settings().ENVIRONMENT == "production":
            rendered = message
        else:
            rendered = f"[{correlation_id}] {message}"
        self.logger.log(
            level,
            rendered,
            extra={"structured_data": log_data},
            exc_info=exc_info,
        )

    def _sanitize_data(self, data: dict[str, Any]) -> dict[str, Any]:
        """Remove or mask sensitive data from log entries."""
        if not isinstance(data, dict) or not data:
            return {}

        header_redaction = self._redact_header_like(data)
        if header_redaction is not None:
            return header_redaction

        return {
            key: "[REDACTED]" if is_sensitive_key(key) else self._sanitize_value(value)
            for key, value in data.items()
        }

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self._sanitize_data(value)
        if isinstance(value, list):
            return [self._sanitize_value(item) for item in value]
        return value

    def _redact_header_like(self, data: dict[str, Any]) -> dict[str, Any] | None:
        """Redact ``{"name": ..., "value": ...}`` pairs whose name is sensitive."""
        if "value" not in data or not ("name" in data or "key" in data):
            return None

        header_name = data.get("name") or data.get("key")
        if not isinstance(header_name, str) or not is_sensitive_key(header_name):
            return None

        redacted: dict[str, Any] = {}
        for sub_k, sub_v in data.items():
            if sub_k.lower() in {"value", "val", "v"}:
                redacted[sub_k] = "[REDACTED]"
            elif isinstance(sub_v, dict):
                redacted[sub_k] = self._sanitize_data(sub_v)
            else:
                redacted[sub_k] = "[REDACTED]" if is_sensitive_key(sub_k) else sub_v
        return redacted

    def info(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.ERROR, message, kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._log_with_context(logging.ERROR, message, kwargs, exc_info=True)


structured_logger = StructuredLogger(__name__)


class ExceptionNormalizationMiddleware(BaseHTTPMiddleware):
    """Catch any uncaught Exception and delegate to global_exception_handler."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001
            return await global_exception_handler(request, exc)


def _build_error_response(
    *,
    correlation_id: str,
    error_type: str,
    message: str,
    environment: str,
    details: dict[str, Any] | None = None,
    traceback_str: str | None = None,
    exception_type: str | None = None,
    validation_errors: Any | None = None,
    retryable: bool | None = None,
    attempts: int | None = None,
    status_code: int = 500,
) -> JSONResponse:
    """Construct a sanitized JSON error response respecting environment rules."""
    allowed_fields = get_allowed_error_fields(environment)

    error_body: dict[str, Any] = {
        "correlation_id": correlation_id,
        "type": error_type,
    }
    optional: dict[str, Any] = {
        "details": details or None,
        "traceback": traceback_str or None,
        "exception_type": exception_type or None,
        "validation_errors": validation_errors,
        "retryable": retryable,
        "attempts": attempts,
    }
    for field, value in optional.items():
        if field in allowed_fields and value is not None:
            error_body[field] = value

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            message=message,
            error=error_body,
            success=False,
        ).model_dump(),
    )


def _remote_error_response(
    exc: RemoteCallError, correlation_id: str, environment: str
) -> JSONResponse:
    details = {"message": exc.message} if environment != "production" else None
    if exc.retryable:
        structured_logger.warning(
            "Remote service unavailable",
            error_type=exc.error_type,
            attempts=exc.attempts,
            exhausted=exc.exhausted,
        )
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="remote_unavailable",
            message="The service is temporarily unavailable, please try again",
            environment=environment,
            details=details,
            exception_type=exc.error_type,
            retryable=True,
            attempts=exc.attempts,
            status_code=503,
        )

    if isinstance(exc, RemoteOperationError):
        structured_logger.error(
            "Remote operation failed", kind=exc.kind, error=exc.message
        )
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="remote_error",
            message=REMOTE_KIND_MESSAGES.get(exc.kind, "Remote error"),
            environment=environment,
            details=details,
            exception_type=exc.error_type,
            retryable=False,
            attempts=exc.attempts,
            status_code=REMOTE_KIND_STATUS.get(exc.kind, 502),
        )

    # UnclassifiedError and any other fatal remote failure
    structured_logger.error(
        "Unclassified remote failure", error_type=exc.error_type, error=exc.message
    )
    return _build_error_response(
        correlation_id=correlation_id,
        error_type="internal_server_error",
        message="An internal error occurred",
        environment=environment,
        details=details,
        exception_type=exc.error_type,
        retryable=False,
        attempts=exc.attempts,
        status_code=500 if isinstance(exc, UnclassifiedError) else 502,
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler providing structured, sanitized responses.

    This function centralizes all error handling to ensure:
    - Consistent JSON error envelope
    - Correlation ID is always present
    - Retryable remote failures are distinguishable from fatal ones
    - Helpful diagnostics in development only
    """
    settings = get_settings()
    environment = settings.ENVIRONMENT
    correlation_id = get_correlation_id()

    if isinstance(exc, StarletteHTTPException):
        status_code = exc.status_code
        http_error_body: dict[str, Any] = {
            "correlation_id": correlation_id,
            "type": HTTP_ERROR_TYPES.get(status_code, "http_error"),
        }
        if environment != "production":
            http_error_body["details"] = {"detail": exc.detail}
            http_error_body["exception_type"] = exc.__class__.__name__
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                message="An HTTP error occurred", error=http_error_body, success=False
            ).model_dump(),
            headers=getattr(exc, "headers", None),
        )

    if isinstance(exc, ValidationError | RequestValidationError):
        validation_details = exc.errors()
        structured_logger.warning(
            "Validation error", validation_errors=list(validation_details)
        )
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="validation_error",
            message="Invalid request data provided",
            environment=environment,
            validation_errors=json.loads(json.dumps(validation_details, default=str)),
            status_code=422,
        )

    if isinstance(exc, RemoteCallError):
        return _remote_error_response(exc, correlation_id, environment)

    if isinstance(exc, DomainError):
        structured_logger.warning(
            "Domain error", error_type=exc.__class__.__name__, domain_message=str(exc)
        )
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="domain_error",
            message="The requested resource was not found",
            environment=environment,
            details={"message": get_error_message(exc)},
            status_code=404,
        )

    structured_logger.exception(
        "Unhandled exception", exception_type=exc.__class__.__name__, error=str(exc)
    )
    traceback_str: str | None = None
    if environment != "production":
        traceback_str = "".join(traceback.format_exception(exc)).strip()

    return _build_error_response(
        correlation_id=correlation_id,
        error_type="internal_server_error",
        message="An internal error occurred",
        environment=environment,
        traceback_str=traceback_str,
        exception_type=exc.__class__.__name__,
    )


def setup_logging() -> None:
    """Configure application logging; idempotent."""
    settings = get_settings()

    log_level = logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    formatter: logging.Formatter
    if settings.ENVIRONMENT == "production":
        from pythonjsonlogger.json import JsonFormatter

        formatter = JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)

    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    if settings.ENVIRONMENT == "production":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
