from core.error_handler import (
    StructuredLogger,
    get_correlation_id,
    set_correlation_id,
)


def test_structured_logger_redacts_sensitive_keys():
    logger = StructuredLogger("tests")

    data = {
        "password": "placeholder_password",  # pragma: allowlist secret
        "email": "creator@example.com",
        "card_number": "4242",
        "skills": ["video"],
    }
    sanitized = logger._sanitize_data(data)

    assert sanitized["password"] == "[REDACTED]"
    assert sanitized["email"] == "[REDACTED]"
    assert sanitized["card_number"] == "[REDACTED]"
    assert sanitized["skills"] == ["video"]


def test_structured_logger_header_like_redaction():
    logger = StructuredLogger("tests")

    header = {"name": "Authorization", "value": "Bearer placeholder_token"}
    redacted = logger._redact_header_like(header)
    assert redacted["value"] == "[REDACTED]"


def test_correlation_id_is_generated_once_per_context():
    set_correlation_id(None)
    first = get_correlation_id()
    assert first
    assert get_correlation_id() == first

    set_correlation_id("fixed-id")
    assert get_correlation_id() == "fixed-id"
