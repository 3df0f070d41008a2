"""
Authentication API endpoints
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status, Depends

from app.config import settings
from app.exceptions import AppError
from app.schemas.auth import (
    AuthResponse,
    PasswordChange,
    PasswordReset,
    PasswordResetRequest,
    TokenRefresh,
    UserLogin,
    UserRegister,
    message_response,
)
from app.services.auth_service import auth_service
from app.dependencies import get_current_user, verify_csrf_token
from app.models.user import CurrentUser
from app.utils.rate_limit import auth_attempt_limiter, limit_failed_attempts, limiter
from app.utils.security import JWTError

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api/auth", tags=["Authentication"])

RESET_REQUESTED_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent"
)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limit_failed_attempts(auth_attempt_limiter)
async def register(request: Request, user_data: UserRegister):
    """
    Register a new account in the tenant of the requested role

    - **email**, **name**, **password**, **confirmPassword**, **role**
    - **discountCode**: optional referral code of a remote employee

    Returns 409 if the email is taken and 400 for an unknown discount code.
    """
    try:
        result = await auth_service.register_user(
            email=user_data.email,
            name=user_data.name,
            password=user_data.password,
            role=user_data.role.value,
            discount_code=user_data.discount_code,
        )
        return AuthResponse(message="User registered successfully", data=result)

    except AppError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Registration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error during registration",
        )


@router.post("/login", response_model=AuthResponse)
@limit_failed_attempts(auth_attempt_limiter)
async def login(request: Request, credentials: UserLogin):
    """
    Log in with email, password and role

    Failed attempts are counted on the account; after MAX_LOGIN_ATTEMPTS the
    account is locked (423) for LOCKOUT_TIME_MINUTES.
    """
    try:
        result = await auth_service.login_user(
            credentials.email, credentials.password, credentials.role.value
        )
        return AuthResponse(message="Login successful", data=result)

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Login error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error during login",
        )


@router.post("/logout")
async def logout(current_user: CurrentUser = Depends(get_current_user)):
    """
    Logout current user

    Requires authentication. Client should discard tokens after this call.
    """
    logger.info(f"User {current_user.id} logged out")
    return message_response("Logged out successfully")


@router.post("/refresh")
async def refresh_token(token_data: TokenRefresh):
    """
    Exchange a refresh token for a new access/refresh pair
    """
    try:
        tokens = await auth_service.refresh_tokens(token_data.refresh_token)
        return {"success": True, "data": {"tokens": tokens}}

    except AppError:
        raise
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )


@router.post("/forgot-password")
@limiter.limit(settings.PASSWORD_RESET_RATE_LIMIT)
async def forgot_password(request: Request, reset_data: PasswordResetRequest):
    """
    Request a password reset email

    Returns the same message whether or not the account exists.
    """
    try:
        await auth_service.request_password_reset(
            reset_data.email, reset_data.role.value
        )
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Failed to send password reset email: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send password reset email",
        )

    return message_response(RESET_REQUESTED_MESSAGE)


@router.post("/reset-password")
@limit_failed_attempts(auth_attempt_limiter)
async def reset_password(request: Request, reset_data: PasswordReset):
    """
    Set a new password using the token from the reset email
    """
    try:
        await auth_service.reset_password(reset_data.token, reset_data.password)
        return message_response("Password reset successfully")

    except AppError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Password reset error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )


@router.post("/change-password")
async def change_password(
    payload: PasswordChange, current_user: CurrentUser = Depends(verify_csrf_token)
):
    """
    Change the password of the logged-in user

    Requires authentication and the X-CSRF-Token header.
    """
    try:
        await auth_service.change_password(
            current_user.id,
            current_user.role,
            payload.current_password,
            payload.new_password,
        )
        return message_response("Password changed successfully")

    except AppError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Change password error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )


@router.get("/me")
async def get_current_user_info(current_user: CurrentUser = Depends(get_current_user)):
    """
    Get current authenticated user information

    Requires authentication.
    """
    try:
        user = await auth_service.get_profile(current_user.id, current_user.role)
        return {"success": True, "data": {"user": user}}

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Get profile error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )
