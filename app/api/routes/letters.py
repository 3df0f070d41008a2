"""
Letter generation API endpoints
"""

import logging
import uuid

from fastapi import APIRouter, HTTPException, Request, status, Depends

from app.config import settings
from app.dependencies import require_user
from app.exceptions import AppError
from app.letter_templates import LETTER_CATEGORIES, SUBSCRIPTION_PLANS
from app.models.user import CurrentUser
from app.schemas.auth import message_response
from app.schemas.letter import LetterForm, LetterStatusUpdate
from app.services.letter_service import letter_service
from app.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/letters", tags=["Letters"])


@router.get("/categories")
async def get_categories():
    """List the letter categories a user can generate"""
    categories = [
        {"id": category.value, **info} for category, info in LETTER_CATEGORIES.items()
    ]
    return {"success": True, "data": {"categories": categories}}


@router.get("/plans")
async def get_plans():
    """List the subscription plans"""
    plans = [plan.model_dump() for plan in SUBSCRIPTION_PLANS.values()]
    return {"success": True, "data": {"plans": plans}}


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.API_RATE_LIMIT)
async def generate_letter(
    request: Request, form: LetterForm, current_user: CurrentUser = Depends(require_user)
):
    """
    Generate a letter from the form fields

    Requires an active subscription with letters remaining on the plan (403
    otherwise).
    """
    try:
        letter = await letter_service.generate_letter(current_user.id, form)
        return {
            "success": True,
            "message": "Letter generated successfully",
            "data": {"letter": letter.model_dump()},
        }

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Letter generation error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate letter",
        )


@router.get("")
async def list_letters(current_user: CurrentUser = Depends(require_user)):
    """List the current user's letters, newest first"""
    letters = await letter_service.list_letters(current_user.id)
    return {"success": True, "data": {"letters": [l.model_dump() for l in letters]}}


@router.get("/{letter_id}")
async def get_letter(letter_id: uuid.UUID, current_user: CurrentUser = Depends(require_user)):
    letter = await letter_service.get_letter(current_user.id, str(letter_id))
    return {"success": True, "data": {"letter": letter.model_dump()}}


@router.patch("/{letter_id}/status")
async def update_letter_status(
    letter_id: uuid.UUID,
    payload: LetterStatusUpdate,
    current_user: CurrentUser = Depends(require_user),
):
    """Mark a letter as downloaded (or back to draft)"""
    letter = await letter_service.update_status(current_user.id, str(letter_id), payload.status)
    return {"success": True, "data": {"letter": letter.model_dump()}}


@router.delete("/{letter_id}")
async def delete_letter(letter_id: uuid.UUID, current_user: CurrentUser = Depends(require_user)):
    await letter_service.delete_letter(current_user.id, str(letter_id))
    return message_response("Letter deleted successfully")
