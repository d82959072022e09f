"""Response envelope shapes."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from schemas.api import ApiResponse, ErrorResponse


def test_success_envelope_defaults():
    body = ApiResponse[list[int]](data=[1, 2]).model_dump()

    assert body == {
        "success": True,
        "data": [1, 2],
        "message": "Operation completed successfully",
        "error": None,
    }


def test_error_envelope_omits_unset_fields():
    body = ErrorResponse(
        message="Try again",
        error={"correlation_id": "abc", "type": "remote_unavailable", "retryable": True},
    ).model_dump()

    assert body["success"] is False
    assert body["data"] is None
    assert body["error"] == {
        "correlation_id": "abc",
        "type": "remote_unavailable",
        "retryable": True,
    }


def test_error_block_requires_correlation_id_and_type():
    with pytest.raises(ValidationError):
        ErrorResponse(error={"type": "remote_error"})
