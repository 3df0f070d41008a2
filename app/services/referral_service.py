"""
Subscriptions, referral discounts and remote-employee commissions
"""

import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List

from app.config import settings
from app.exceptions import NotFoundError
from app.letter_templates import SUBSCRIPTION_PLANS
from app.models.letter import Commission, CommissionStatus, row_to_commission
from app.models.user import UserRole, user_to_public_dict
from app.services.database_service import database_service
from app.services.email_service import email_service
from app.services.user_repository import user_repository

logger = logging.getLogger(__name__)

EMPLOYEE_TENANT = UserRole.REMOTE_EMPLOYEE.value
USER_TENANT = UserRole.USER.value

_CENT = Decimal("0.01")


def to_cents(value) -> float:
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


class ReferralService:
    """Handles plan purchases and the commissions they generate"""

    def __init__(self, db=None, users=None, mailer=None):
        self.db = db or database_service
        self.users = users or user_repository
        self.mailer = mailer or email_service

    async def subscribe(self, user_id: str, plan_id: str) -> Dict[str, Any]:
        """
        Put a user on a plan, applying the referral discount when the user
        registered with a discount code

        Returns:
            Dictionary with the updated user, the plan, the amount charged
            and the commission (if any)

        Raises:
            ValueError: Unknown plan
            NotFoundError: User vanished

        A commission that cannot be stored is logged and reported as None.
        """
        plan = SUBSCRIPTION_PLANS.get(plan_id)
        if plan is None:
            raise ValueError("Invalid subscription plan")

        user = await self.users.find_by_id(user_id, USER_TENANT)
        if not user:
            raise NotFoundError("User not found")

        amount = plan.price
        if user.referred_by:
            amount = to_cents(plan.price * (1 - settings.REFERRAL_DISCOUNT_RATE))

        updated = await self.users.update_user(
            user_id, USER_TENANT, {"subscription_plan": plan.id, "letters_used": 0}
        )

        commission = None
        if user.referred_by:
            # The plan is already active; a failed commission must not undo it
            try:
                commission = await self.record_commission(
                    employee_id=user.referred_by,
                    user_id=user.id,
                    user_email=user.email,
                    plan_id=plan.id,
                    amount_paid=amount,
                )
            except Exception as e:
                logger.error(
                    f"Failed to record commission for employee {user.referred_by} "
                    f"(user {user_id}, plan {plan.id}, paid {amount}): {e}"
                )

        logger.info(f"User {user_id} subscribed to {plan.id} for {amount}")
        return {
            "user": user_to_public_dict(updated or user),
            "plan": plan.model_dump(),
            "amountCharged": amount,
            "commission": commission.model_dump() if commission else None,
        }

    async def record_commission(
        self,
        employee_id: str,
        user_id: str,
        user_email: str,
        plan_id: str,
        amount_paid: float,
    ) -> Commission:
        commission_amount = to_cents(amount_paid * settings.COMMISSION_RATE)
        row = await self.db.fetch_one(
            EMPLOYEE_TENANT,
            """
            INSERT INTO commissions (
                id, remote_employee_id, user_id, user_email, plan_id,
                subscription_amount, commission_amount, status, created_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, NOW())
            RETURNING *
            """,
            (
                str(uuid.uuid4()),
                employee_id,
                user_id,
                user_email,
                plan_id,
                amount_paid,
                commission_amount,
                CommissionStatus.PENDING.value,
            ),
        )
        commission = row_to_commission(row)

        try:
            employee = await self.users.find_by_id(employee_id, EMPLOYEE_TENANT)
            if employee:
                await self.mailer.send_commission_notification(
                    employee.email, employee.name, commission_amount, user_email
                )
        except Exception as e:
            logger.error(f"Failed to send commission notification: {e}")

        return commission

    async def list_commissions(self, employee_id: str = None) -> List[Commission]:
        if employee_id:
            rows = await self.db.fetch_all(
                EMPLOYEE_TENANT,
                "SELECT * FROM commissions WHERE remote_employee_id = %s ORDER BY created_at DESC",
                (employee_id,),
            )
        else:
            rows = await self.db.fetch_all(
                EMPLOYEE_TENANT, "SELECT * FROM commissions ORDER BY created_at DESC"
            )
        return [row_to_commission(row) for row in rows]

    async def update_commission_status(
        self, commission_id: str, status: CommissionStatus
    ) -> Commission:
        row = await self.db.fetch_one(
            EMPLOYEE_TENANT,
            "UPDATE commissions SET status = %s WHERE id = %s RETURNING *",
            (CommissionStatus(status).value, commission_id),
        )
        if not row:
            raise NotFoundError("Commission not found")
        return row_to_commission(row)

    async def get_referral_summary(self, employee_id: str) -> Dict[str, Any]:
        """Discount code, points and commission totals for a remote employee"""
        employee = await self.users.find_by_id(employee_id, EMPLOYEE_TENANT)
        if not employee:
            raise NotFoundError("User not found")

        commissions = await self.list_commissions(employee_id)
        counted = [c for c in commissions if c.status != CommissionStatus.CANCELLED.value]

        def total(items) -> float:
            return to_cents(sum(Decimal(str(c.commission_amount)) for c in items))

        return {
            "discountCode": employee.discount_code,
            "referralPoints": employee.referral_points or 0,
            "commissionRate": settings.COMMISSION_RATE,
            "discountRate": settings.REFERRAL_DISCOUNT_RATE,
            "totalCommission": total(counted),
            "pendingCommission": total(
                c for c in counted if c.status == CommissionStatus.PENDING.value
            ),
            "paidCommission": total(
                c for c in counted if c.status == CommissionStatus.PAID.value
            ),
            "activeReferrals": len({c.user_id for c in counted}),
            "commissions": [c.model_dump() for c in commissions],
        }


# Global referral service instance
referral_service = ReferralService()
