from __future__ import annotations

import pytest

from core.error_handler import UNKNOWN_ERROR_MESSAGE, get_error_message
from core.resilience.errors import RemoteOperationError, TimeoutExceeded


@pytest.mark.parametrize(
    ("err", "expected"),
    [
        (None, UNKNOWN_ERROR_MESSAGE),
        ("", UNKNOWN_ERROR_MESSAGE),
        ({}, UNKNOWN_ERROR_MESSAGE),
        ("plain failure", "plain failure"),
        ("[object Object]", UNKNOWN_ERROR_MESSAGE),
        ({"message": "Row not found"}, "Row not found"),
        ({"error": "invalid_grant", "error_description": "x"}, "invalid_grant"),
        ({"error_description": "Token expired"}, "Token expired"),
        ({"detail": "Not allowed"}, "Not allowed"),
        ({"msg": "Bad input"}, "Bad input"),
        ({"error": {"message": "nested"}}, "nested"),
        (
            {"message": "duplicate key", "details": "Key (id)=(1) already exists"},
            "duplicate key: Key (id)=(1) already exists",
        ),
        (ValueError("bad value"), "bad value"),
        (KeyError(), "KeyError"),
        (RemoteOperationError("store said no"), "store said no"),
        (TimeoutExceeded(250), "Request timed out after 250ms"),
    ],
)
def test_get_error_message(err, expected):
    assert get_error_message(err) == expected


def test_unrecognised_mapping_is_serialized():
    assert get_error_message({"code": "PGRST116"}) == '{"code": "PGRST116"}'


def test_never_returns_object_artifact():
    assert get_error_message({"message": "[object Object]"}) != "[object Object]"
