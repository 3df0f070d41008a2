"""
Application exceptions mapped to HTTP responses by the global handlers in app.main
"""


class AppError(Exception):
    """Base class for errors that carry their own HTTP status"""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(AppError):
    """Raised when a required setting (e.g. JWT secret) is missing"""

    status_code = 500


class DatabaseUnavailableError(AppError):
    """Raised when a tenant database cannot be reached"""

    status_code = 503


class NotFoundError(AppError):
    status_code = 404


class LetterLimitExceededError(AppError):
    """Raised when a user has used every letter their plan allows"""

    status_code = 403


class ConflictError(AppError):
    status_code = 409


class InvalidCredentialsError(AppError):
    status_code = 401


class AccountLockedError(AppError):
    status_code = 423


class TooManyAttemptsError(AppError):
    """Raised when the per-account login limiter is exhausted"""

    status_code = 429

    def __init__(self, message: str, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after
