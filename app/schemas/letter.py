"""
Letter, subscription and commission request schemas
"""

from typing import Optional

from pydantic import ConfigDict, EmailStr, Field

from app.models.letter import CommissionStatus, LetterCategory, LetterStatus
from app.schemas.auth import SanitizedRequest


class LetterForm(SanitizedRequest):
    """Fields collected by the letter generation form"""

    sender_name: str = Field(..., min_length=2, max_length=100)
    sender_address: str = Field(..., min_length=1, max_length=200)
    sender_city: str = Field(..., min_length=1, max_length=100)
    sender_state: str = Field(..., min_length=1, max_length=50)
    sender_zip: str = Field(..., min_length=1, max_length=20)
    sender_phone: str = Field(..., min_length=1, max_length=30)
    sender_email: EmailStr
    recipient_name: str = Field(..., min_length=2, max_length=100)
    recipient_address: str = Field(..., min_length=1, max_length=200)
    recipient_city: str = Field(..., min_length=1, max_length=100)
    recipient_state: str = Field(..., min_length=1, max_length=50)
    recipient_zip: str = Field(..., min_length=1, max_length=20)
    subject: str = Field(..., min_length=3, max_length=200)
    category: LetterCategory
    details: str = Field(..., min_length=10, max_length=5000)
    amount_owed: Optional[str] = Field(None, max_length=50)
    due_date: Optional[str] = Field(None, max_length=50)
    additional_info: Optional[str] = Field(None, max_length=2000)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sender_name": "Jane Doe",
                "sender_address": "12 Oak Street",
                "sender_city": "Austin",
                "sender_state": "TX",
                "sender_zip": "73301",
                "sender_phone": "512-555-0100",
                "sender_email": "jane@example.com",
                "recipient_name": "Acme Corp",
                "recipient_address": "500 Market Street",
                "recipient_city": "Dallas",
                "recipient_state": "TX",
                "recipient_zip": "75201",
                "subject": "Unpaid invoice #1042",
                "category": "debt_retrieval",
                "details": "Invoice #1042 for consulting services delivered in March remains unpaid.",
                "amount_owed": "$2,500.00",
                "due_date": "June 30, 2025",
            }
        }
    )


class LetterStatusUpdate(SanitizedRequest):
    status: LetterStatus


class SubscriptionRequest(SanitizedRequest):
    plan_id: str = Field(..., alias="planId", min_length=1)


class CommissionStatusUpdate(SanitizedRequest):
    status: CommissionStatus
