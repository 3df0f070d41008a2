"""
Admin dashboard API endpoints
"""

import logging
import uuid

from fastapi import APIRouter, HTTPException, status, Depends

from app.dependencies import require_admin
from app.models.user import CurrentUser
from app.schemas.letter import CommissionStatusUpdate
from app.services.letter_service import letter_service
from app.services.referral_service import referral_service
from app.services.user_repository import user_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/users")
async def list_users(current_user: CurrentUser = Depends(require_admin)):
    """List every account in every tenant, newest first"""
    try:
        users = await user_repository.get_all_users(current_user.role)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return {"success": True, "data": {"users": users, "total": len(users)}}


@router.get("/letters")
async def list_letters(current_user: CurrentUser = Depends(require_admin)):
    letters = await letter_service.list_all_letters()
    return {"success": True, "data": {"letters": letters, "total": len(letters)}}


@router.get("/commissions")
async def list_commissions(current_user: CurrentUser = Depends(require_admin)):
    commissions = await referral_service.list_commissions()
    return {
        "success": True,
        "data": {"commissions": [c.model_dump() for c in commissions]},
    }


@router.patch("/commissions/{commission_id}")
async def update_commission(
    commission_id: uuid.UUID,
    payload: CommissionStatusUpdate,
    current_user: CurrentUser = Depends(require_admin),
):
    """Mark a commission as paid or cancelled"""
    commission = await referral_service.update_commission_status(
        str(commission_id), payload.status
    )
    logger.info(
        f"Admin {current_user.id} set commission {commission_id} to {commission.status}"
    )
    return {"success": True, "data": {"commission": commission.model_dump()}}
