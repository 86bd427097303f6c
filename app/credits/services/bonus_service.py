"""
Signup bonus for new freelancers.

Granted once per user; the idempotency key makes repeat calls no-ops.
"""

from __future__ import annotations

from core.services import BaseService

from credits.conf import credit_settings
from credits.ledger import TransactionParams, ledger
from credits.models import CreditTransaction
from credits.states import ReferenceType, TransactionKind


class SignupBonusService(BaseService):
    @classmethod
    def grant(cls, user) -> CreditTransaction | None:
        """
        Credit the configured bonus to a freelancer.

        Returns None when the user is not a freelancer or the bonus is 0.
        """
        bonus = credit_settings().signup_bonus
        if bonus <= 0 or not user.is_freelancer:
            return None

        txn = ledger.apply_transaction(
            user,
            TransactionParams(
                amount=bonus,
                kind=TransactionKind.SIGNUP_BONUS,
                idempotency_key=f"signup_bonus:user:{user.pk}",
                reference_type=ReferenceType.SIGNUP,
                reference_id=str(user.pk),
                description=f"Signup bonus: {bonus} credits",
            ),
        )
        cls.get_logger().info(
            "Signup bonus granted",
            extra={"user_id": user.pk, "credits": bonus, "transaction_id": txn.pk},
        )
        return txn
