"""Security configuration constants for the Sharkbid API.

Centralizes the keys redacted from structured logs and the error-envelope
fields each environment may expose.
"""

# Keys redacted from structured logs (substring match, case-insensitive)
SENSITIVE_KEYS: set[str] = {
    # Authentication & Authorization
    "password",
    "secret",
    "token",
    "access_token",
    "refresh_token",
    "authorization",
    "api_key",
    "jwt",
    "session_id",
    "bearer",
    "x-api-key",
    "x-auth-token",
    "set-cookie",
    "cookie",
    # Personal and payment data
    "email",
    "phone",
    "phone_number",
    "address",
    "street_address",
    "billing_address",
    "credit_card",
    "card_number",
    "cvv",
    "bank_account",
    "routing_number",
    "account_number",
    "stripe_customer_id",
    "payment_method",
}

# Production responses only carry these; the retryable flag lets the UI show
# "still trying" versus "this failed".
PRODUCTION_ERROR_FIELDS: set[str] = {
    "correlation_id",
    "type",
    "retryable",
}

DEVELOPMENT_ERROR_FIELDS: set[str] = PRODUCTION_ERROR_FIELDS | {
    "details",
    "traceback",
    "exception_type",
    "validation_errors",
    "attempts",
}


def get_allowed_error_fields(environment: str) -> set[str]:
    """Get allowed error response fields for ``environment``."""
    if environment == "production":
        return PRODUCTION_ERROR_FIELDS.copy()
    return DEVELOPMENT_ERROR_FIELDS.copy()


def is_sensitive_key(key: str) -> bool:
    """Check if a key should be considered sensitive and redacted.

    Args:
        key: The key name to check

    Returns:
        True if the key should be redacted, False otherwise
    """
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
