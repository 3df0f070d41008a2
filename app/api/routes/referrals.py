"""
Remote employee referral endpoints
"""

from fastapi import APIRouter, Depends

from app.dependencies import require_remote_employee
from app.models.user import CurrentUser
from app.services.referral_service import referral_service

router = APIRouter(prefix="/api/referrals", tags=["Referrals"])


@router.get("/me")
async def get_my_referrals(current_user: CurrentUser = Depends(require_remote_employee)):
    """
    Discount code, referral points and commission totals of the current
    remote employee
    """
    summary = await referral_service.get_referral_summary(current_user.id)
    return {"success": True, "data": summary}
