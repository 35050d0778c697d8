"""
JWT helpers.

Access tokens are issued by the account service (out of this repo) and
signed with the shared JWT_SECRET_KEY. This module verifies them; the
encoder exists so scripts and tests can mint tokens with the same claims.

Claims used here:
-----------------
- sub: the user id (string form of the integer primary key)
- exp: expiry timestamp

References:
-----------
- FastAPI Security: https://fastapi.tiangolo.com/tutorial/security/oauth2-jwt/
- JWT Standard: https://jwt.io/introduction
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from reelsense.core.config import settings


DEFAULT_TOKEN_TTL = timedelta(minutes=30)


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode (must include "sub")
        expires_delta: Lifetime of the token (default 30 minutes)

    Returns:
        Encoded JWT string
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or DEFAULT_TOKEN_TTL)
    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """
    Decode and verify a JWT access token.

    Returns:
        Dictionary of claims if valid, None if invalid (expired, tampered,
        malformed)
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
