"""
Letter, subscription plan and commission models
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict

from app.models.user import utc_now


class LetterCategory(str, Enum):
    DEBT_RETRIEVAL = "debt_retrieval"
    HR_EMPLOYMENT = "hr_employment"
    CONTRACT_DISPUTES = "contract_disputes"
    TENANT_LANDLORD = "tenant_landlord"
    CONSUMER_COMPLAINTS = "consumer_complaints"
    BUSINESS_DISPUTES = "business_disputes"
    CEASE_DESIST = "cease_desist"
    DEMAND_LETTERS = "demand_letters"
    INSURANCE_CLAIMS = "insurance_claims"
    PERSONAL_INJURY = "personal_injury"


class LetterStatus(str, Enum):
    DRAFT = "draft"
    GENERATED = "generated"
    DOWNLOADED = "downloaded"


class CommissionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class Letter(BaseModel):
    """
    Generated letter stored in the user tenant

    Table: letters
    """

    id: str
    user_id: str
    title: str
    content: str
    category: LetterCategory
    status: LetterStatus = LetterStatus.GENERATED
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(use_enum_values=True)


class SubscriptionPlan(BaseModel):
    id: str
    name: str
    price: float
    letters_limit: int
    duration: str
    features: List[str] = Field(default_factory=list)


class Commission(BaseModel):
    """
    Commission earned by a remote employee when a referred user subscribes

    Table: commissions (remote_employee tenant)
    """

    id: str
    remote_employee_id: str
    user_id: str
    user_email: str
    plan_id: str
    subscription_amount: float
    commission_amount: float
    status: CommissionStatus = CommissionStatus.PENDING
    created_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(use_enum_values=True)


def _normalize_row(row: Dict[str, Any], uuid_keys) -> Dict[str, Any]:
    data = dict(row)
    for key in uuid_keys:
        if data.get(key) is not None:
            data[key] = str(data[key])
    for key, value in data.items():
        if isinstance(value, Decimal):
            data[key] = float(value)
    return data


def row_to_letter(row: Optional[Dict[str, Any]]) -> Optional[Letter]:
    if not row:
        return None
    return Letter.model_validate(_normalize_row(row, ("id", "user_id")))


def row_to_commission(row: Optional[Dict[str, Any]]) -> Optional[Commission]:
    if not row:
        return None
    return Commission.model_validate(
        _normalize_row(row, ("id", "remote_employee_id", "user_id"))
    )
