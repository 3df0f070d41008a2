"""
Rate limiting: per-IP request limits through slowapi, and fixed-window
limiters that only count failed attempts (per account for logins, per IP for
the authentication endpoints)
"""

import functools
import math
import time

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.config import settings
from app.exceptions import AppError, TooManyAttemptsError


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.API_RATE_LIMIT],
    enabled=settings.RATE_LIMIT_ENABLED,
)

AUTH_LIMIT_MESSAGE = "Too many authentication attempts from this IP, please try again later."

_LIMIT_MESSAGES = {
    settings.PASSWORD_RESET_RATE_LIMIT: "Too many password reset attempts from this IP, please try again in an hour.",
}


def _retry_after(request: Request, exc: RateLimitExceeded) -> int:
    """Seconds until the exceeded window resets"""
    view_limit = getattr(request.state, "view_rate_limit", None)
    if view_limit is not None:
        item, keys = view_limit
        reset_time, _ = limiter.limiter.get_window_stats(item, *keys)
        return max(0, math.ceil(reset_time - time.time()))

    item = getattr(getattr(exc, "limit", None), "limit", None)
    if item is None:
        return 60
    return item.get_expiry()


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render slowapi rejections in the API envelope"""
    limit = getattr(getattr(exc, "limit", None), "limit", None)
    message = "Too many requests from this IP, please try again later."
    if limit is not None:
        for configured, text in _LIMIT_MESSAGES.items():
            if parse(configured) == limit:
                message = text
                break
    return JSONResponse(
        status_code=429,
        content={"success": False, "message": message, "retryAfter": _retry_after(request, exc)},
    )


class FailureLimiter:
    """
    Fixed-window limiter that only counts registered failures.

    Keys are compared case-insensitively. Successful attempts never use up
    the allowance.
    """

    def __init__(self, limit: str = None, scope: str = "login"):
        self.item = parse(limit or settings.ACCOUNT_RATE_LIMIT)
        self.scope = scope
        self.storage = MemoryStorage()
        self.strategy = FixedWindowRateLimiter(self.storage)

    def is_blocked(self, key: str) -> bool:
        if not settings.RATE_LIMIT_ENABLED:
            return False
        return not self.strategy.test(self.item, self.scope, key.lower())

    def register_failure(self, key: str) -> None:
        self.strategy.hit(self.item, self.scope, key.lower())

    def retry_after(self, key: str) -> int:
        reset_time, _ = self.strategy.get_window_stats(self.item, self.scope, key.lower())
        return max(0, math.ceil(reset_time - time.time()))

    def reset(self) -> None:
        self.storage.reset()


# Failed logins per account email
account_limiter = FailureLimiter(settings.ACCOUNT_RATE_LIMIT, "login")

# Failed register/login/reset attempts per client IP
auth_attempt_limiter = FailureLimiter(settings.AUTH_RATE_LIMIT, "auth")


def limit_failed_attempts(failure_limiter: FailureLimiter, message: str = AUTH_LIMIT_MESSAGE):
    """
    Decorate a route so that 4xx outcomes count against the client IP

    The route must take a ``request: Request`` parameter. Once the IP is out
    of allowance every further call is rejected with 429 until the window
    resets.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            request = kwargs.get("request")
            key = get_remote_address(request)
            if failure_limiter.is_blocked(key):
                raise TooManyAttemptsError(message, failure_limiter.retry_after(key))

            try:
                return await func(*args, **kwargs)
            except (HTTPException, AppError) as exc:
                if 400 <= exc.status_code < 500:
                    failure_limiter.register_failure(key)
                raise

        return wrapper

    return decorator
