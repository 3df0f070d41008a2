"""
FastAPI dependency injection for authentication, roles and CSRF
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.exceptions import ConfigurationError
from app.models.user import CurrentUser, UserRole
from app.services.user_repository import user_repository
from app.utils.security import (
    ExpiredSignatureError,
    JWTError,
    csrf_token_for,
    verify_access_token,
)

logger = logging.getLogger(__name__)

# Missing credentials are reported by get_current_user itself
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """
    Dependency to get the current authenticated user from a JWT access token

    The token's role selects the tenant the user is loaded from, so a token
    issued for one tenant never resolves a user in another.

    Raises:
        HTTPException: 401 for missing/invalid/expired tokens or vanished
            users, 423 for locked accounts, 500 for anything unexpected
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access token required")

    try:
        payload = verify_access_token(credentials.credentials)
    except ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except JWTError as e:
        logger.debug(f"Access token rejected: {e}")
        raise _unauthorized("Invalid token")
    except ConfigurationError as e:
        logger.error(f"Auth middleware error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Authentication error",
        )

    user_id = payload.get("id")
    role = payload.get("role")
    if not user_id or role not in {r.value for r in UserRole}:
        raise _unauthorized("Invalid token")

    try:
        user = await user_repository.find_by_id(user_id, role)
    except Exception as e:
        logger.error(f"Auth middleware error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Authentication error",
        )

    if user is None:
        raise _unauthorized("Invalid token - user not found")

    if user_repository.is_account_locked(user):
        raise HTTPException(
            status_code=status.HTTP_423_LOCKED,
            detail="Account is temporarily locked due to too many failed login attempts",
        )

    return CurrentUser(id=user.id, email=user.email, role=user.role, name=user.name)


def require_roles(*roles: UserRole):
    """
    Dependency factory to require one of multiple roles

    Args:
        roles: Acceptable roles

    Returns:
        Dependency function
    """
    allowed = {role.value for role in roles}

    async def roles_checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return roles_checker


async def verify_csrf_token(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_csrf_token: Optional[str] = Header(None, alias="X-CSRF-Token"),
) -> CurrentUser:
    """
    Authenticate, then check the X-CSRF-Token header against the bearer token

    The client derives the header as the first 32 characters of the base64
    encoded access token. Safe methods are not checked.
    """
    if request.method in ("GET", "OPTIONS"):
        return current_user

    session_token = credentials.credentials if credentials else None
    if not x_csrf_token or not session_token:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="CSRF token required"
        )

    if x_csrf_token != csrf_token_for(session_token):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Invalid CSRF token"
        )

    return current_user


# Convenience dependencies for specific roles
require_user = require_roles(UserRole.USER)
require_remote_employee = require_roles(UserRole.REMOTE_EMPLOYEE)
require_admin = require_roles(UserRole.ADMIN)
