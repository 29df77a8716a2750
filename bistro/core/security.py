"""
Identity Token Service

Issues and verifies the signed, time-limited tokens handed to the frontend
after sign-in. A token carries whatever claims the client posted (at least
``email``) plus ``iat`` and ``exp``. There is no refresh flow: once a token
expires the client signs in again.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from jose import JWTError, jwt

from bistro.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """Token signature is invalid, the token is malformed, or it has expired."""


def issue_token(
    claims: Mapping[str, Any],
    settings: Optional[Settings] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    settings = settings or get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = dict(claims)
    payload["iat"] = now
    payload["exp"] = now + expires_delta

    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str, settings: Optional[Settings] = None) -> dict[str, Any]:
    """
    Decode a token and return its claims.

    Raises:
        InvalidTokenError: for any signature, format or expiry failure
    """
    settings = settings or get_settings()
    try:
        return jwt.decode(
            token, settings.secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        raise InvalidTokenError(str(e)) from e
