"""
User Models for Talk-to-My-Lawyer Backend

This module defines the User row stored in each tenant's `users` table and
the lightweight identity attached to authenticated requests.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict


# Helper function for timezone-aware UTC datetime
def utc_now():
    """Get current UTC datetime (timezone-aware)"""
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    """User role enumeration; each role lives in its own tenant database"""

    USER = "user"
    REMOTE_EMPLOYEE = "remote_employee"
    ADMIN = "admin"


class User(BaseModel):
    """
    Complete User model as stored in a tenant database

    Table: users
    Primary key: id (uuid4)
    """

    id: str
    email: str
    name: str
    password_hash: str = Field(default="", repr=False)
    role: UserRole = UserRole.USER
    email_verified: bool = False
    created_at: Optional[datetime] = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = Field(default_factory=utc_now)
    last_login: Optional[datetime] = None

    # Lockout bookkeeping
    login_attempts: int = 0
    locked_until: Optional[datetime] = None

    # Password reset lifecycle
    password_reset_token: Optional[str] = Field(default=None, repr=False)
    password_reset_expires: Optional[datetime] = None

    # Remote employees only
    discount_code: Optional[str] = None
    referral_points: Optional[int] = None

    # Regular users only
    referred_by: Optional[str] = None
    subscription_plan: Optional[str] = None
    letters_used: Optional[int] = None

    model_config = ConfigDict(use_enum_values=True)


class CurrentUser(BaseModel):
    """Identity attached to an authenticated request"""

    id: str
    email: str
    role: str
    name: str


def row_to_user(row: Optional[Dict[str, Any]]) -> Optional[User]:
    """Convert a database row to a User, stringifying UUID columns"""
    if not row:
        return None
    data = dict(row)
    for key in ("id", "referred_by"):
        if data.get(key) is not None:
            data[key] = str(data[key])
    if data.get("login_attempts") is None:
        data["login_attempts"] = 0
    return User.model_validate(data)


def user_to_public_dict(user: User, include_timestamps: bool = False) -> Dict[str, Any]:
    """Camel-cased user payload returned by the auth endpoints"""
    data = {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "emailVerified": user.email_verified,
        "discountCode": user.discount_code,
        "referralPoints": user.referral_points,
        "lettersUsed": user.letters_used,
        "subscriptionPlan": user.subscription_plan,
    }
    if include_timestamps:
        data["createdAt"] = user.created_at
        data["lastLogin"] = user.last_login
    return data
