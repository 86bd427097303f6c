"""
Refund service for credits spent on project applications.

Policy:
    - withdrawal: 100% within CREDITS_FULL_REFUND_MINUTES of applying,
      CREDITS_PARTIAL_REFUND_PERCENT (rounded down) within
      CREDITS_PARTIAL_REFUND_HOURS, nothing afterwards
    - project_cancelled, project_expired, application_rejected,
      technical_error, admin_refund, duplicate: 100%
    - an application is refunded at most once

Usage:
    from credits.services import RefundService

    eligibility = RefundService.check_eligibility(application)
    if eligibility.eligible:
        txn = RefundService.issue_refund(application)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from django.utils import timezone

from core.exceptions import NotFoundError
from core.services import BaseService

from credits.conf import credit_settings
from credits.exceptions import RefundAlreadyIssued, RefundNotEligible
from credits.ledger import TransactionParams, ledger
from credits.models import CreditTransaction
from credits.states import ReferenceType, RefundReason, TransactionKind
from projects.models import Application, ApplicationStatus

logger = logging.getLogger(__name__)


# Reasons that always refund the full spend
FULL_REFUND_REASONS = frozenset(
    [
        RefundReason.PROJECT_CANCELLED,
        RefundReason.PROJECT_EXPIRED,
        RefundReason.APPLICATION_REJECTED,
        RefundReason.TECHNICAL_ERROR,
        RefundReason.ADMIN_REFUND,
        RefundReason.DUPLICATE,
    ]
)

# Refund reason implied by an application's status
STATUS_REFUND_REASONS = {
    ApplicationStatus.WITHDRAWN: RefundReason.WITHDRAWAL,
    ApplicationStatus.EXPIRED: RefundReason.PROJECT_EXPIRED,
    ApplicationStatus.REJECTED: RefundReason.APPLICATION_REJECTED,
}


@dataclass
class RefundEligibility:
    """
    Result of a refund eligibility check.

    Attributes:
        eligible: Whether a refund can be issued now
        refund_amount: Credits that would be returned
        refund_percent: Share of the spend returned (0-100)
        reason: Human-readable explanation
        original_credits: Credits spent on the application
        refund_reason: RefundReason applied, if any
    """

    eligible: bool
    refund_amount: int = 0
    refund_percent: int = 0
    reason: str = ""
    original_credits: int = 0
    refund_reason: str | None = None


def refund_idempotency_key(application_id: int) -> str:
    return f"refund:application:{application_id}"


class RefundService(BaseService):
    """
    Service evaluating and issuing credit refunds.

    Methods:
        get_application_for_user: Owned application lookup (404 otherwise)
        check_eligibility: Apply the refund policy without side effects
        issue_refund: Return credits for one application, exactly once
        list_refunds: A user's refund transactions
    """

    @classmethod
    def get_application_for_user(cls, user, application_id) -> Application:
        """
        Raises:
            NotFoundError: Missing, deleted or owned by someone else
        """
        application = (
            Application.objects.select_related("project")
            .filter(pk=application_id, freelancer=user)
            .first()
        )
        if application is None:
            raise NotFoundError(
                "Application not found",
                error_code="APPLICATION_NOT_FOUND",
                details={"application_id": application_id},
            )
        return application

    @classmethod
    def resolve_reason(cls, application: Application) -> str | None:
        return STATUS_REFUND_REASONS.get(application.status)

    @classmethod
    def check_eligibility(
        cls,
        application: Application,
        reason: str | None = None,
        now=None,
    ) -> RefundEligibility:
        """
        Evaluate the refund policy for an application.

        Args:
            application: The spend record
            reason: Explicit RefundReason; derived from status when omitted
            now: Evaluation time (defaults to timezone.now())
        """
        spent = application.credits_spent

        if application.refunded:
            return RefundEligibility(
                eligible=False,
                reason="Application already refunded",
                original_credits=spent,
            )

        if reason is None:
            reason = cls.resolve_reason(application)
            if reason is None:
                return RefundEligibility(
                    eligible=False,
                    reason="Application is still active",
                    original_credits=spent,
                )

        if spent <= 0:
            return RefundEligibility(
                eligible=False,
                reason="No credits were spent on this application",
                original_credits=spent,
                refund_reason=reason,
            )

        if reason in FULL_REFUND_REASONS:
            return RefundEligibility(
                eligible=True,
                refund_amount=spent,
                refund_percent=100,
                reason="Full refund",
                original_credits=spent,
                refund_reason=reason,
            )

        if reason != RefundReason.WITHDRAWAL:
            return RefundEligibility(
                eligible=False,
                reason=f"Unknown refund reason: {reason}",
                original_credits=spent,
            )

        conf = credit_settings()
        elapsed = (now or timezone.now()) - application.created_at

        if elapsed <= timedelta(minutes=conf.full_refund_minutes):
            return RefundEligibility(
                eligible=True,
                refund_amount=spent,
                refund_percent=100,
                reason=f"Full refund within {conf.full_refund_minutes} minutes",
                original_credits=spent,
                refund_reason=reason,
            )

        if elapsed <= timedelta(hours=conf.partial_refund_hours):
            amount = spent * conf.partial_refund_percent // 100
            if amount <= 0:
                return RefundEligibility(
                    eligible=False,
                    refund_percent=conf.partial_refund_percent,
                    reason="Partial refund rounds down to zero credits",
                    original_credits=spent,
                    refund_reason=reason,
                )
            return RefundEligibility(
                eligible=True,
                refund_amount=amount,
                refund_percent=conf.partial_refund_percent,
                reason=(
                    f"{conf.partial_refund_percent}% refund within "
                    f"{conf.partial_refund_hours} hours"
                ),
                original_credits=spent,
                refund_reason=reason,
            )

        return RefundEligibility(
            eligible=False,
            reason="Refund period expired",
            original_credits=spent,
            refund_reason=reason,
        )

    @classmethod
    def issue_refund(
        cls,
        application: Application,
        reason: str | None = None,
        admin=None,
        note: str = "",
        request_context: dict[str, str] | None = None,
    ) -> CreditTransaction:
        """
        Return credits for an application.

        The application row is locked and re-checked, so two concurrent
        calls produce one refund.

        Raises:
            RefundAlreadyIssued: The application was already refunded
            RefundNotEligible: The policy does not allow a refund
        """
        with cls.atomic():
            locked = Application.all_objects.select_for_update().get(pk=application.pk)
            if locked.refunded:
                raise RefundAlreadyIssued(
                    "Application already refunded",
                    details={"application_id": locked.pk},
                )

            eligibility = cls.check_eligibility(locked, reason=reason)
            if not eligibility.eligible:
                raise RefundNotEligible(
                    eligibility.reason,
                    details={
                        "application_id": locked.pk,
                        "original_credits": eligibility.original_credits,
                    },
                )

            metadata = {
                "project_id": locked.project_id,
                "refund_percent": eligibility.refund_percent,
                "original_credits": eligibility.original_credits,
            }
            if note:
                metadata["note"] = note
            metadata.update(request_context or {})

            txn = ledger.apply_transaction(
                locked.freelancer,
                TransactionParams(
                    amount=eligibility.refund_amount,
                    kind=TransactionKind.REFUND,
                    idempotency_key=refund_idempotency_key(locked.pk),
                    reference_type=ReferenceType.APPLICATION,
                    reference_id=str(locked.pk),
                    reason=eligibility.refund_reason,
                    description=(
                        f"Refund for application #{locked.pk} "
                        f"(+{eligibility.refund_amount} credits)"
                    ),
                    performed_by=admin,
                    metadata=metadata,
                ),
            )

            locked.refunded = True
            locked.refund_amount = eligibility.refund_amount
            locked.refund_reason = eligibility.refund_reason
            locked.refunded_at = timezone.now()
            locked.save(
                update_fields=[
                    "refunded",
                    "refund_amount",
                    "refund_reason",
                    "refunded_at",
                    "updated_at",
                ]
            )

        application.refunded = locked.refunded
        application.refund_amount = locked.refund_amount
        application.refund_reason = locked.refund_reason
        application.refunded_at = locked.refunded_at

        logger.info(
            "Credits refunded",
            extra={
                "application_id": locked.pk,
                "user_id": locked.freelancer_id,
                "amount": eligibility.refund_amount,
                "refund_reason": eligibility.refund_reason,
                "transaction_id": txn.pk,
                "admin_id": admin.pk if admin else None,
            },
        )
        return txn

    @classmethod
    def list_refunds(cls, user):
        """The user's refund transactions, newest first."""
        return (
            CreditTransaction.objects.for_user(user)
            .of_kind(TransactionKind.REFUND)
            .order_by("-created_at", "-id")
        )
