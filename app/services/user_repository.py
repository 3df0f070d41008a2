"""
User persistence routed to the tenant database that matches each user's role
"""

import asyncio
import logging
import secrets
import string
import uuid
from datetime import datetime, timedelta, UTC
from typing import Any, Dict, List, Optional, Tuple

from psycopg2 import errors as pg_errors

from app.config import settings, TENANTS
from app.exceptions import ConflictError, DatabaseUnavailableError
from app.models.user import User, UserRole, row_to_user
from app.services.database_service import database_service
from app.utils.security import hash_password

logger = logging.getLogger(__name__)

# Columns update_user is allowed to touch
UPDATABLE_COLUMNS = {
    "email",
    "name",
    "password_hash",
    "email_verified",
    "last_login",
    "login_attempts",
    "locked_until",
    "password_reset_token",
    "password_reset_expires",
    "discount_code",
    "referral_points",
    "referred_by",
    "subscription_plan",
    "letters_used",
}

PUBLIC_COLUMNS = (
    "id, email, name, role, email_verified, created_at, last_login, "
    "subscription_plan, letters_used, discount_code, referral_points"
)

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_discount_code() -> str:
    """Referral code handed to remote employees, e.g. REMOTE7K2Q9XZA"""
    return "REMOTE" + "".join(secrets.choice(_CODE_ALPHABET) for _ in range(8))


class UserRepository:
    """CRUD and lockout bookkeeping for user rows"""

    def __init__(self, db=None):
        self.db = db or database_service

    async def _ensure_connection(self, tenant: str) -> None:
        if not await self.db.test_connection(tenant):
            connected = await self.db.wait_for_connection(tenant, 3, 1.0)
            if not connected:
                raise DatabaseUnavailableError(
                    f"Database connection unavailable for role: {tenant}"
                )

    async def create_user(
        self,
        email: str,
        name: str,
        password: str,
        role: str,
        referred_by: Optional[str] = None,
    ) -> User:
        """
        Insert a new user into the tenant of its role

        Args:
            email: Email address (stored lowercased)
            name: Display name
            password: Plain text password, hashed before storage
            role: One of user, remote_employee, admin
            referred_by: Id of the remote employee whose code was used

        Returns:
            The created User

        Raises:
            ConflictError: If the email is already registered in the tenant
        """
        # bcrypt is CPU bound
        password_hash = await asyncio.to_thread(hash_password, password)
        is_employee = role == UserRole.REMOTE_EMPLOYEE.value
        is_user = role == UserRole.USER.value

        try:
            row = await self.db.fetch_one(
                role,
                """
                INSERT INTO users (
                    id, email, name, password_hash, role, email_verified, created_at, updated_at,
                    login_attempts, discount_code, referral_points, referred_by, letters_used
                ) VALUES (
                    %s, %s, %s, %s, %s, %s, NOW(), NOW(), 0, %s, %s, %s, %s
                ) RETURNING *
                """,
                (
                    str(uuid.uuid4()),
                    email.lower(),
                    name,
                    password_hash,
                    role,
                    False,
                    generate_discount_code() if is_employee else None,
                    0 if is_employee else None,
                    referred_by,
                    0 if is_user else None,
                ),
            )
        except pg_errors.UniqueViolation as e:
            # Lost a race with a concurrent registration of the same email
            logger.warning(f"Duplicate {role} registration for {email.lower()}: {e}")
            raise ConflictError("User with this email already exists") from e

        logger.info(f"Created {role} account {row['id'] if row else '?'}")
        return row_to_user(row)

    async def find_by_email(self, email: str, role: str) -> Optional[User]:
        row = await self.db.fetch_one(
            role, "SELECT * FROM users WHERE email = %s", (email.lower(),)
        )
        return row_to_user(row)

    async def find_by_id(self, user_id: str, role: str) -> Optional[User]:
        row = await self.db.fetch_one(
            role, "SELECT * FROM users WHERE id = %s", (user_id,)
        )
        return row_to_user(row)

    async def update_user(
        self, user_id: str, role: str, updates: Dict[str, Any]
    ) -> Optional[User]:
        """
        Update whitelisted columns and bump updated_at

        Raises:
            ValueError: If an unknown column is passed or updates is empty
        """
        unknown = set(updates) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")
        if not updates:
            raise ValueError("No updates supplied")

        await self._ensure_connection(role)
        columns = list(updates.keys())
        set_clause = ", ".join(f"{column} = %s" for column in columns)
        row = await self.db.fetch_one(
            role,
            f"UPDATE users SET {set_clause}, updated_at = NOW() WHERE id = %s RETURNING *",
            (*[updates[column] for column in columns], user_id),
        )
        return row_to_user(row)

    async def update_password(self, user_id: str, role: str, new_password: str) -> None:
        """Store a new password hash and invalidate any pending reset token"""
        password_hash = await asyncio.to_thread(hash_password, new_password)
        await self.update_user(
            user_id,
            role,
            {
                "password_hash": password_hash,
                "password_reset_token": None,
                "password_reset_expires": None,
            },
        )

    async def increment_login_attempts(self, user_id: str, role: str) -> None:
        """Count a failed login; lock the account once the limit is reached"""
        await self.db.execute(
            role,
            """
            UPDATE users
            SET
                login_attempts = login_attempts + 1,
                locked_until = CASE
                    WHEN login_attempts + 1 >= %s THEN NOW() + make_interval(mins => %s)
                    ELSE locked_until
                END
            WHERE id = %s
            """,
            (settings.MAX_LOGIN_ATTEMPTS, settings.LOCKOUT_TIME_MINUTES, user_id),
        )

    async def reset_login_attempts(self, user_id: str, role: str) -> None:
        await self.update_user(
            user_id,
            role,
            {"login_attempts": 0, "locked_until": None, "last_login": datetime.now(UTC)},
        )

    @staticmethod
    def is_account_locked(user: User) -> bool:
        if not user.locked_until:
            return False
        locked_until = user.locked_until
        if locked_until.tzinfo is None:
            locked_until = locked_until.replace(tzinfo=UTC)
        return datetime.now(UTC) < locked_until

    async def set_reset_token(self, user_id: str, role: str, token: str) -> datetime:
        expires = datetime.now(UTC) + timedelta(
            minutes=settings.PASSWORD_RESET_EXPIRES_MINUTES
        )
        await self.update_user(
            user_id,
            role,
            {"password_reset_token": token, "password_reset_expires": expires},
        )
        return expires

    async def find_by_reset_token(self, token: str) -> Tuple[Optional[User], Optional[str]]:
        """
        Look for an unexpired reset token in every tenant

        Unreachable tenants are skipped.

        Returns:
            (user, tenant) or (None, None)
        """
        for tenant in TENANTS:
            try:
                if not await self.db.test_connection(tenant):
                    continue
                row = await self.db.fetch_one(
                    tenant,
                    "SELECT * FROM users WHERE password_reset_token = %s "
                    "AND password_reset_expires > NOW()",
                    (token,),
                )
            except Exception as e:
                logger.error(f"Error checking role {tenant} for password reset: {e}")
                continue
            if row:
                return row_to_user(row), tenant
        return None, None

    async def find_by_discount_code(self, discount_code: str) -> Optional[User]:
        row = await self.db.fetch_one(
            UserRole.REMOTE_EMPLOYEE.value,
            "SELECT * FROM users WHERE discount_code = %s AND role = %s",
            (discount_code.upper(), UserRole.REMOTE_EMPLOYEE.value),
        )
        return row_to_user(row)

    async def add_referral_point(self, employee_id: str) -> None:
        await self.db.execute(
            UserRole.REMOTE_EMPLOYEE.value,
            "UPDATE users SET referral_points = COALESCE(referral_points, 0) + 1, "
            "updated_at = NOW() WHERE id = %s",
            (employee_id,),
        )

    async def get_all_users(self, requesting_role: str) -> List[Dict[str, Any]]:
        """
        List every account across tenants, newest first, without secrets

        Raises:
            PermissionError: If the caller is not an admin
        """
        if requesting_role != UserRole.ADMIN.value:
            raise PermissionError("Unauthorized: Only admin can access all users")

        users: List[Dict[str, Any]] = []
        for tenant in TENANTS:
            try:
                rows = await self.db.fetch_all(
                    tenant,
                    f"SELECT {PUBLIC_COLUMNS} FROM users ORDER BY created_at DESC",
                )
            except DatabaseUnavailableError as e:
                logger.warning(f"Skipping tenant {tenant} in user listing: {e}")
                continue
            for row in rows:
                row = dict(row)
                row["id"] = str(row["id"])
                users.append(row)

        users.sort(key=lambda row: row.get("created_at") or datetime.min.replace(tzinfo=UTC), reverse=True)
        return users


# Global user repository instance
user_repository = UserRepository()
