from app.models.user import CurrentUser, User, UserRole
from app.models.letter import (
    Commission,
    CommissionStatus,
    Letter,
    LetterCategory,
    LetterStatus,
    SubscriptionPlan,
)

__all__ = [
    "CurrentUser",
    "User",
    "UserRole",
    "Commission",
    "CommissionStatus",
    "Letter",
    "LetterCategory",
    "LetterStatus",
    "SubscriptionPlan",
]
