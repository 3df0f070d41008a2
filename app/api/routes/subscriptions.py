"""
Subscription API endpoints
"""

import logging

from fastapi import APIRouter, HTTPException, status, Depends

from app.dependencies import require_user
from app.exceptions import AppError
from app.models.user import CurrentUser
from app.schemas.letter import SubscriptionRequest
from app.services.referral_service import referral_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscriptions", tags=["Subscriptions"])


@router.post("")
async def subscribe(
    payload: SubscriptionRequest, current_user: CurrentUser = Depends(require_user)
):
    """
    Subscribe the current user to a plan

    - **planId**: basic, premium or professional

    Users who registered with a discount code pay the discounted price and
    the referring remote employee earns a commission.
    """
    try:
        result = await referral_service.subscribe(current_user.id, payload.plan_id)
        return {
            "success": True,
            "message": "Subscription activated successfully",
            "data": result,
        }

    except AppError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Subscription error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to activate subscription",
        )
