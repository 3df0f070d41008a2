"""
Security utilities for password hashing, JWT token management, reset tokens,
CSRF tokens and input sanitisation
"""

import base64
import re
import secrets
from datetime import datetime, timedelta, UTC
from typing import Any, Dict, Optional

from passlib.context import CryptContext
from jose import JWTError, ExpiredSignatureError, jwt

from app.config import settings
from app.exceptions import ConfigurationError

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS
)

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>?", re.MULTILINE)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt

    Args:
        password: Plain text password

    Returns:
        Hashed password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash

    Args:
        plain_password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise (including malformed hashes)
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def _secret() -> str:
    if not settings.JWT_SECRET_KEY:
        raise ConfigurationError("JWT_SECRET not configured")
    return settings.JWT_SECRET_KEY


def _encode(claims: Dict[str, Any], expires_delta: timedelta) -> str:
    now = datetime.now(UTC)
    to_encode = claims.copy()
    to_encode.update(
        {
            "iat": now,
            "exp": now + expires_delta,
            "iss": settings.JWT_ISSUER,
            "aud": settings.JWT_AUDIENCE,
        }
    )
    return jwt.encode(to_encode, _secret(), algorithm=settings.JWT_ALGORITHM)


def create_access_token(
    user_id: str, email: str, role: str, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token carrying {id, email, role}

    Args:
        user_id: User's unique identifier
        email: User's email
        role: User's role (also the tenant the user lives in)
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(
        {"id": user_id, "email": email, "role": role, "type": "access"}, expires_delta
    )


def create_refresh_token(
    user_id: str, role: str, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT refresh token

    The role is included so the refresh endpoint knows which tenant to read.
    """
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode({"id": user_id, "role": role, "type": "refresh"}, expires_delta)


def generate_tokens(user_id: str, email: str, role: str) -> Dict[str, str]:
    """
    Create both access and refresh tokens for a user

    Returns:
        Dictionary with accessToken and refreshToken
    """
    return {
        "accessToken": create_access_token(user_id, email, role),
        "refreshToken": create_refresh_token(user_id, role),
    }


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a JWT token (signature, expiry, issuer and audience)

    Raises:
        ExpiredSignatureError: If the token has expired
        JWTError: If the token is otherwise invalid
    """
    return jwt.decode(
        token,
        _secret(),
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        issuer=settings.JWT_ISSUER,
    )


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Verify an access token

    Raises:
        JWTError: If token is invalid, expired, or not an access token
    """
    payload = decode_token(token)

    if payload.get("type") != "access":
        raise JWTError("Invalid token type")

    return payload


def verify_refresh_token(token: str) -> Dict[str, Any]:
    """
    Verify a refresh token

    Raises:
        JWTError: If token is invalid, expired, or not a refresh token
    """
    payload = decode_token(token)

    if payload.get("type") != "refresh":
        raise JWTError("Invalid token type")

    return payload


def generate_reset_token() -> str:
    """64 hex characters of randomness for password reset links"""
    return secrets.token_hex(32)


def csrf_token_for(access_token: str) -> str:
    """CSRF token the client derives from its bearer token"""
    return base64.b64encode(access_token.encode("utf-8")).decode("ascii")[:32]


def sanitize_value(value: Any) -> Any:
    """Strip script blocks and HTML tags from every string in a nested structure"""
    if isinstance(value, str):
        value = _SCRIPT_RE.sub("", value)
        return _TAG_RE.sub("", value).strip()
    if isinstance(value, dict):
        return {key: sanitize_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [sanitize_value(item) for item in value]
    return value


__all__ = [
    "ExpiredSignatureError",
    "JWTError",
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "generate_tokens",
    "decode_token",
    "verify_access_token",
    "verify_refresh_token",
    "generate_reset_token",
    "csrf_token_for",
    "sanitize_value",
]
