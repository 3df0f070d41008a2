"""
Authentication service handling registration, login, lockout, token refresh
and the password reset lifecycle
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from app.exceptions import (
    AccountLockedError,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    TooManyAttemptsError,
)
from app.models.user import User, user_to_public_dict
from app.services.email_service import email_service
from app.services.user_repository import user_repository
from app.utils.rate_limit import account_limiter
from app.utils.security import (
    JWTError,
    generate_reset_token,
    generate_tokens,
    verify_password,
    verify_refresh_token,
)

logger = logging.getLogger(__name__)

LOCKED_MESSAGE = "Account is temporarily locked due to too many failed login attempts"


class AuthService:
    """Service for authentication operations"""

    def __init__(self, users=None, mailer=None, limiter=None):
        self.users = users or user_repository
        self.mailer = mailer or email_service
        self.limiter = limiter or account_limiter

    @staticmethod
    def _tokens_for(user: User) -> Dict[str, str]:
        return generate_tokens(user_id=user.id, email=user.email, role=user.role)

    async def register_user(
        self,
        email: str,
        name: str,
        password: str,
        role: str,
        discount_code: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Register a new user

        Returns:
            Dictionary containing the public user payload and tokens

        Raises:
            ConflictError: If the email already exists in the role's tenant
            ValueError: If the discount code is unknown
        """
        existing_user = await self.users.find_by_email(email, role)
        if existing_user:
            raise ConflictError("User with this email already exists")

        referrer = None
        if discount_code:
            referrer = await self.users.find_by_discount_code(discount_code)
            if not referrer:
                raise ValueError("Invalid discount code")

        user = await self.users.create_user(
            email=email,
            name=name,
            password=password,
            role=role,
            referred_by=referrer.id if referrer else None,
        )
        tokens = self._tokens_for(user)

        try:
            await self.mailer.send_welcome_email(user.email, user.name)
        except Exception as e:
            logger.error(f"Failed to send welcome email: {e}")

        if referrer:
            try:
                await self.users.add_referral_point(referrer.id)
            except Exception as e:
                logger.error(f"Failed to update referral points: {e}")

        return {"user": user_to_public_dict(user), "tokens": tokens}

    async def login_user(self, email: str, password: str, role: str) -> Dict[str, Any]:
        """
        Authenticate with email and password against the role's tenant

        Raises:
            TooManyAttemptsError: Per-account limiter exhausted
            InvalidCredentialsError: Unknown user or wrong password
            AccountLockedError: Lockout window still active
        """
        if self.limiter.is_blocked(email):
            raise TooManyAttemptsError(
                "Too many login attempts for this account, please try again later.",
                retry_after=self.limiter.retry_after(email),
            )

        user = await self.users.find_by_email(email, role)
        if not user:
            self.limiter.register_failure(email)
            raise InvalidCredentialsError("Invalid credentials")

        if self.users.is_account_locked(user):
            self.limiter.register_failure(email)
            raise AccountLockedError(LOCKED_MESSAGE)

        valid = await asyncio.to_thread(verify_password, password, user.password_hash)
        if not valid:
            await self.users.increment_login_attempts(user.id, role)
            self.limiter.register_failure(email)
            logger.info(f"Failed login for {user.id} ({role})")
            raise InvalidCredentialsError("Invalid credentials")

        await self.users.reset_login_attempts(user.id, role)
        return {"user": user_to_public_dict(user), "tokens": self._tokens_for(user)}

    async def refresh_tokens(self, refresh_token: str) -> Dict[str, str]:
        """
        Generate a new token pair from a refresh token

        Raises:
            JWTError: If the refresh token is invalid or the user is gone
        """
        payload = verify_refresh_token(refresh_token)
        user_id = payload.get("id")
        role = payload.get("role")
        if not user_id or not role:
            raise JWTError("Invalid token payload")

        user = await self.users.find_by_id(user_id, role)
        if not user:
            raise JWTError("User not found")
        if self.users.is_account_locked(user):
            raise AccountLockedError(LOCKED_MESSAGE)

        return self._tokens_for(user)

    async def request_password_reset(self, email: str, role: str) -> bool:
        """
        Issue a reset token and email it

        Returns:
            False when no such account exists (callers must not reveal this)

        Raises:
            Exception: When the reset email could not be sent
        """
        user = await self.users.find_by_email(email, role)
        if not user:
            return False

        token = generate_reset_token()
        await self.users.set_reset_token(user.id, role, token)
        await self.mailer.send_password_reset_email(user.email, user.name, token)
        return True

    async def reset_password(self, token: str, new_password: str) -> None:
        """
        Consume a reset token found in any tenant

        Raises:
            ValueError: If no tenant holds the unexpired token
        """
        user, tenant = await self.users.find_by_reset_token(token)
        if not user or not tenant:
            raise ValueError("Invalid or expired reset token")

        await self.users.update_password(user.id, tenant, new_password)
        logger.info(f"Password reset completed for {user.id} ({tenant})")

    async def change_password(
        self, user_id: str, role: str, current_password: str, new_password: str
    ) -> None:
        """
        Raises:
            NotFoundError: If the user vanished
            ValueError: If the current password does not match
        """
        user = await self.users.find_by_id(user_id, role)
        if not user:
            raise NotFoundError("User not found")

        valid = await asyncio.to_thread(verify_password, current_password, user.password_hash)
        if not valid:
            raise ValueError("Current password is incorrect")

        await self.users.update_password(user_id, role, new_password)

    async def get_profile(self, user_id: str, role: str) -> Dict[str, Any]:
        user = await self.users.find_by_id(user_id, role)
        if not user:
            raise NotFoundError("User not found")
        return user_to_public_dict(user, include_timestamps=True)


# Global auth service instance
auth_service = AuthService()
