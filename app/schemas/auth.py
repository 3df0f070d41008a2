"""
Authentication request/response schemas
"""

import re
from datetime import datetime
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from app.models.user import UserRole
from app.utils.security import sanitize_value

T = TypeVar("T")

PASSWORD_SPECIALS = "@$!%*?&"
_NAME_RE = re.compile(r"^[a-zA-Z\s]+$")


def validate_password_strength(v: str) -> str:
    """Shared password policy for registration, reset and change"""
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not (
        any(char.islower() for char in v)
        and any(char.isupper() for char in v)
        and any(char.isdigit() for char in v)
        and any(char in PASSWORD_SPECIALS for char in v)
    ):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, "
            "one number, and one special character"
        )
    return v


class SanitizedRequest(BaseModel):
    """Base for request bodies: strips HTML from every incoming string"""

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def sanitize(cls, data: Any) -> Any:
        return sanitize_value(data)


class RoleScopedRequest(SanitizedRequest):
    role: UserRole = Field(..., description="Tenant the account lives in")


class UserRegister(RoleScopedRequest):
    """Schema for user registration"""

    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    password: str
    confirm_password: str = Field(..., alias="confirmPassword")
    discount_code: Optional[str] = Field(
        None, alias="discountCode", min_length=6, max_length=20
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not _NAME_RE.match(v):
            raise ValueError("Name can only contain letters and spaces")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)

    @field_validator("discount_code", mode="before")
    @classmethod
    def empty_code_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password != self.password:
            raise ValueError("Password confirmation does not match password")
        return self

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "email": "user@example.com",
                "name": "Jane Doe",
                "password": "SecurePass123!",
                "confirmPassword": "SecurePass123!",
                "role": "user",
                "discountCode": "REMOTEAB12CD34",
            }
        },
    )


class UserLogin(RoleScopedRequest):
    """Schema for user login"""

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "email": "user@example.com",
                "password": "SecurePass123!",
                "role": "user",
            }
        },
    )


class PasswordResetRequest(RoleScopedRequest):
    """Schema for the forgot-password request"""

    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()


class PasswordReset(SanitizedRequest):
    """Schema for completing a password reset"""

    token: str = Field(..., min_length=1)
    password: str
    confirm_password: str = Field(..., alias="confirmPassword")
    # Accepted for client compatibility; the token alone identifies the tenant
    role: Optional[UserRole] = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password != self.password:
            raise ValueError("Password confirmation does not match password")
        return self


class PasswordChange(SanitizedRequest):
    """Schema for password change"""

    current_password: str = Field(..., alias="currentPassword", min_length=1)
    new_password: str = Field(..., alias="newPassword")
    confirm_password: str = Field(..., alias="confirmPassword")

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password != self.new_password:
            raise ValueError("Password confirmation does not match new password")
        return self


class TokenRefresh(SanitizedRequest):
    """Schema for token refresh request"""

    refresh_token: str = Field(..., alias="refreshToken")


class Tokens(BaseModel):
    """Schema for authentication tokens"""

    accessToken: str
    refreshToken: str


class UserResponse(BaseModel):
    """Schema for user data returned by the auth endpoints"""

    id: str
    email: str
    name: str
    role: str
    emailVerified: bool
    discountCode: Optional[str] = None
    referralPoints: Optional[int] = None
    lettersUsed: Optional[int] = None
    subscriptionPlan: Optional[str] = None
    createdAt: Optional[datetime] = None
    lastLogin: Optional[datetime] = None


class AuthData(BaseModel):
    user: UserResponse
    tokens: Tokens


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every endpoint"""

    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class AuthResponse(ApiResponse[AuthData]):
    """Complete authentication response with user data and tokens"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "message": "Login successful",
                "data": {
                    "user": {
                        "id": "5b0f7c1e-7d4e-4c55-9f6a-2f1d0d8f3b7a",
                        "email": "user@example.com",
                        "name": "Jane Doe",
                        "role": "user",
                        "emailVerified": False,
                        "discountCode": None,
                        "referralPoints": None,
                        "lettersUsed": 0,
                        "subscriptionPlan": None,
                    },
                    "tokens": {
                        "accessToken": "eyJ0eXAiOiJKV1QiLCJhbGc...",
                        "refreshToken": "eyJ0eXAiOiJKV1QiLCJhbGc...",
                    },
                },
            }
        }
    )


def message_response(message: str) -> Dict[str, Any]:
    return {"success": True, "message": message}
