"""Authentication and authorization dependencies for FastAPI."""

import logging
from typing import Any, Optional

from fastapi import Depends, Header, Request

from bistro.core.exceptions import ForbiddenError, UnauthorizedError
from bistro.core.security import InvalidTokenError, verify_token
from bistro.models import ROLE_FIELD, UserRole
from bistro.repositories import UserRepository, get_user_repository

logger = logging.getLogger(__name__)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def require_authenticated(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> dict[str, Any]:
    """
    Decode the bearer token and attach its claims to ``request.state.user``.

    Raises:
        UnauthorizedError: no token, or the token does not verify
    """
    token = _bearer_token(authorization)
    if not token:
        raise UnauthorizedError()

    try:
        claims = verify_token(token)
    except InvalidTokenError:
        raise UnauthorizedError()

    request.state.user = claims
    return claims


def is_admin(user: Optional[dict]) -> bool:
    return bool(user) and user.get(ROLE_FIELD) == UserRole.ADMIN.value


def require_admin(
    claims: dict[str, Any] = Depends(require_authenticated),
    users: UserRepository = Depends(get_user_repository),
) -> dict[str, Any]:
    """
    Allow only callers whose stored user record has the admin role.
    The user is read on every call; roles are not cached.
    """
    email = claims.get("email")
    if not email:
        raise UnauthorizedError()

    if not is_admin(users.find_by_email(email)):
        logger.info(f"Admin access denied for {email}")
        raise ForbiddenError()
    return claims
