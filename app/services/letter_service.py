"""
Letter generation and storage

Letters live in the user tenant. Generating a letter consumes one unit of
the user's plan allowance.
"""

import logging
import uuid
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from app.exceptions import LetterLimitExceededError, NotFoundError
from app.letter_templates import (
    AMOUNT_CATEGORIES,
    LETTER_CATEGORIES,
    LETTER_FRAME,
    SUBSCRIPTION_PLANS,
    get_body_template,
)
from app.models.letter import Letter, LetterCategory, LetterStatus, row_to_letter
from app.models.user import UserRole
from app.schemas.letter import LetterForm
from app.services.database_service import database_service
from app.services.user_repository import user_repository

logger = logging.getLogger(__name__)

TENANT = UserRole.USER.value


def render_letter(form: LetterForm, date: Optional[datetime] = None) -> str:
    """Fill the category body and the shared frame with the form fields"""
    date = date or datetime.now(UTC)
    fields = form.model_dump()
    category = LetterCategory(form.category)

    if category in AMOUNT_CATEGORIES:
        fields["amount_owed"] = form.amount_owed or "the outstanding balance"
        fields["due_date"] = form.due_date or "fourteen (14) days from the date of this letter"
    else:
        fields["amount_owed"] = form.amount_owed or ""
        fields["due_date"] = form.due_date or ""

    body = get_body_template(category).format(**fields)
    additional = f"\n{form.additional_info}\n" if form.additional_info else ""

    frame_fields = {**fields, "body": body.strip() + "\n", "additional_info": additional}
    frame_fields["date"] = date.strftime("%B %d, %Y")
    return LETTER_FRAME.format(**frame_fields)


def letter_title(form: LetterForm) -> str:
    category_name = LETTER_CATEGORIES[LetterCategory(form.category)]["name"]
    return f"{category_name}: {form.subject}"


class LetterService:
    """Service for letter operations"""

    def __init__(self, db=None, users=None):
        self.db = db or database_service
        self.users = users or user_repository

    async def generate_letter(self, user_id: str, form: LetterForm) -> Letter:
        """
        Render and store a letter for a subscribed user

        Raises:
            NotFoundError: If the user vanished
            LetterLimitExceededError: No plan, or the plan allowance is used up
        """
        user = await self.users.find_by_id(user_id, TENANT)
        if not user:
            raise NotFoundError("User not found")

        plan = SUBSCRIPTION_PLANS.get(user.subscription_plan or "")
        if plan is None:
            raise LetterLimitExceededError("An active subscription is required")
        if (user.letters_used or 0) >= plan.letters_limit:
            raise LetterLimitExceededError("Letter limit reached for your plan")

        params = (
            str(uuid.uuid4()),
            user_id,
            letter_title(form),
            render_letter(form),
            LetterCategory(form.category).value,
            LetterStatus.GENERATED.value,
        )

        def claim_and_store(cur):
            # The user row stays locked until commit
            cur.execute(
                """
                UPDATE users SET letters_used = COALESCE(letters_used, 0) + 1, updated_at = NOW()
                WHERE id = %s AND COALESCE(letters_used, 0) < %s
                RETURNING letters_used
                """,
                (user_id, plan.letters_limit),
            )
            if cur.fetchone() is None:
                return None
            cur.execute(
                """
                INSERT INTO letters (id, user_id, title, content, category, status, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s, NOW(), NOW())
                RETURNING *
                """,
                params,
            )
            return dict(cur.fetchone())

        row = await self.db.transaction(TENANT, claim_and_store)
        if row is None:
            raise LetterLimitExceededError("Letter limit reached for your plan")

        letter = row_to_letter(row)
        logger.info(f"Generated {letter.category} letter {letter.id} for {user_id}")
        return letter

    async def list_letters(self, user_id: str) -> List[Letter]:
        rows = await self.db.fetch_all(
            TENANT,
            "SELECT * FROM letters WHERE user_id = %s ORDER BY created_at DESC",
            (user_id,),
        )
        return [row_to_letter(row) for row in rows]

    async def get_letter(self, user_id: str, letter_id: str) -> Letter:
        row = await self.db.fetch_one(
            TENANT,
            "SELECT * FROM letters WHERE id = %s AND user_id = %s",
            (letter_id, user_id),
        )
        if not row:
            raise NotFoundError("Letter not found")
        return row_to_letter(row)

    async def update_status(self, user_id: str, letter_id: str, status: LetterStatus) -> Letter:
        row = await self.db.fetch_one(
            TENANT,
            "UPDATE letters SET status = %s, updated_at = NOW() "
            "WHERE id = %s AND user_id = %s RETURNING *",
            (LetterStatus(status).value, letter_id, user_id),
        )
        if not row:
            raise NotFoundError("Letter not found")
        return row_to_letter(row)

    async def delete_letter(self, user_id: str, letter_id: str) -> None:
        deleted = await self.db.execute(
            TENANT,
            "DELETE FROM letters WHERE id = %s AND user_id = %s",
            (letter_id, user_id),
        )
        if not deleted:
            raise NotFoundError("Letter not found")

    async def list_all_letters(self) -> List[Dict[str, Any]]:
        """Every letter with its author, for the admin dashboard"""
        rows = await self.db.fetch_all(
            TENANT,
            """
            SELECT l.id, l.title, l.category, l.status, l.created_at,
                   u.name AS user_name, u.email AS user_email
            FROM letters l LEFT JOIN users u ON u.id = l.user_id
            ORDER BY l.created_at DESC
            """,
        )
        return [{**row, "id": str(row["id"])} for row in rows]


# Global letter service instance
letter_service = LetterService()
