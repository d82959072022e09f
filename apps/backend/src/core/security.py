"""Bearer token verification.

Tokens are issued by the identity provider; this service only verifies them
and reads the ``sub`` and ``role`` claims. ``create_access_token`` exists for
local tooling and tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import HTTPException, status
from jose import JWTError, jwt

from core.config import Settings, get_settings
from schemas.auth import TokenData


def _settings() -> Settings:  # lazy accessor to allow tests to set env first
    return get_settings()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(
    data: dict[str, Any], expires_delta: timedelta | None = None
) -> str:
    """Encodes a JWT with `sub` (subject) and expiry"""
    to_encode = data.copy()
    s = _settings()
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=s.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, s.SECRET_KEY, algorithm=s.ALGORITHM)


def decode_token(token: str) -> TokenData:
    """Decode and validate a JWT, returning TokenData or raising 401.

    Expects a `sub` claim (user identifier); `role` and `scopes` are optional.
    """
    try:
        s = _settings()
        payload = jwt.decode(
            token,
            s.SECRET_KEY,
            algorithms=[s.ALGORITHM],
            options={"verify_aud": False},
        )
    except JWTError as err:
        raise _unauthorized("Could not validate credentials") from err

    sub = payload.get("sub")
    if sub is None:
        raise _unauthorized("Token missing subject")

    role = payload.get("role")
    scopes = payload.get("scopes", [])
    return TokenData(
        sub=str(sub),
        role=str(role) if role else None,
        scopes=list(scopes) if isinstance(scopes, list) else [],
    )
