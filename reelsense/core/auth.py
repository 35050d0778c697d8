"""
Authentication dependencies for FastAPI.

This module provides:
- OAuth2 bearer scheme (token extraction)
- get_current_user / get_current_active_user for protected routes
- require_admin for the administrative endpoints

Tokens are verified locally; the user row is loaded to make sure the
account still exists and is active.

References:
-----------
- FastAPI Security Tutorial: https://fastapi.tiangolo.com/tutorial/security/oauth2-jwt/
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reelsense.core.config import settings
from reelsense.core.security import decode_access_token
from reelsense.db.deps import get_db
from reelsense.models.user import User

# ================================
# OAuth2 Configuration
# ================================

# Extracts "Authorization: Bearer <token>". tokenUrl points at the
# account service's login endpoint so Swagger's "Authorize" button works.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get the current authenticated user from the JWT token.

    Raises:
        HTTPException 401: If token invalid, expired, or user not found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    subject = payload.get("sub")
    if subject is None:
        raise credentials_exception

    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception

    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Get the current user and verify they are active.

    Raises:
        HTTPException 400: If user account is disabled
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user"
        )
    return current_user


def is_admin(user: User) -> bool:
    """
    Check whether ``user`` may call administrative endpoints.

    With no ADMIN_USER_IDS configured, every authenticated user is an admin
    outside production and nobody is in production.
    """
    admin_ids = settings.admin_user_id_list
    if not admin_ids:
        return not settings.is_production
    return user.id in admin_ids


async def require_admin(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """Require the current user to be an administrator."""
    if not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user
