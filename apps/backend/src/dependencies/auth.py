from __future__ import annotations

import logging
from typing import Annotated, get_args
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.security import decode_token
from schemas.auth import CurrentUser, Role


LOGGER = logging.getLogger(__name__)
BEARER = "Bearer"

_KNOWN_ROLES: frozenset[str] = frozenset(get_args(Role))

bearer_scheme = HTTPBearer(auto_error=False)


def unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    """Return the canonical 401 response."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": BEARER},
    )


def forbidden(detail: str = "Access denied") -> HTTPException:
    """Return the canonical 403 response."""
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> CurrentUser:
    """Resolve the caller from a verified bearer token.

    Raises
    ------
    HTTPException(401)
        If the token is missing, malformed or expired, or its subject is not a
        user id.
    """
    if credentials is None or credentials.scheme.lower() != BEARER.lower():
        raise unauthorized()

    token_data = decode_token(credentials.credentials)
    sub = token_data.sub
    if not sub:
        raise unauthorized()

    try:
        UUID(sub)
    except ValueError as exc:
        LOGGER.debug("Token 'sub' is not a valid UUID", exc_info=exc)
        raise unauthorized() from exc

    role = token_data.role if token_data.role in _KNOWN_ROLES else "business"
    return CurrentUser(id=sub, role=role)


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


async def require_admin(current_user: CurrentUserDep) -> CurrentUser:
    if not current_user.is_admin:
        raise forbidden("Admin access required")
    return current_user


async def require_creator(current_user: CurrentUserDep) -> CurrentUser:
    if current_user.role not in {"creator", "admin"}:
        raise forbidden("Creator access required")
    return current_user


AdminUser = Annotated[CurrentUser, Depends(require_admin)]
CreatorUser = Annotated[CurrentUser, Depends(require_creator)]
