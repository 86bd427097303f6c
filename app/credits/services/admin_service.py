"""
Admin operations on credits.

Usage:
    from credits.services import AdminCreditService

    result = AdminCreditService.adjust_balance(target, 10, "Goodwill", admin)
    sweep = AdminCreditService.refund_project(project_id, admin)
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from django.contrib.auth import get_user_model
from django.db import DatabaseError

from core.exceptions import BaseApplicationError, NotFoundError, ValidationError
from core.services import BaseService, ServiceResult

from credits.conf import credit_settings
from credits.exceptions import NegativeBalanceNotAllowed, PurchaseLimitExceeded
from credits.ledger import TransactionParams, ledger
from credits.models import CreditTransaction
from credits.services.refund_service import RefundService
from credits.states import ReferenceType, RefundReason, TransactionKind
from projects.models import Application, Project

RECENT_TRANSACTIONS_LIMIT = 20


@dataclass
class AdjustmentResult:
    previous_balance: int
    adjustment: int
    new_balance: int
    transaction: CreditTransaction


@dataclass
class SweepResult:
    """
    Outcome of refunding every application on a project.

    Attributes:
        project: The swept project
        refunds_processed: Applications refunded by this sweep
        total_applications: Applications considered
        failures: Per-application failures (application_id, error, error_code)
    """

    project: Project
    refunds_processed: int = 0
    total_applications: int = 0
    failures: list[dict[str, Any]] = field(default_factory=list)


class AdminCreditService(BaseService):
    """
    Service for admin-only credit operations.

    Methods:
        get_user: Target user lookup (404 otherwise)
        adjust_balance: Signed manual correction with a reason
        refund_project: Full refunds for every application on a project
        user_snapshot: A user's balance and recent transactions
    """

    @classmethod
    def get_user(cls, user_id):
        User = get_user_model()
        user = User.objects.filter(pk=user_id).first()
        if user is None:
            raise NotFoundError(
                "User not found",
                error_code="USER_NOT_FOUND",
                details={"user_id": user_id},
            )
        return user

    @classmethod
    def adjust_balance(
        cls,
        target_user,
        amount: Any,
        reason: str,
        admin,
        request_context: dict[str, str] | None = None,
    ) -> AdjustmentResult:
        """
        Add or remove credits with an audit reason.

        Raises:
            ValidationError: amount not a non-zero integer, or blank reason
            NegativeBalanceNotAllowed: Deduction below zero while disallowed
            PurchaseLimitExceeded: Addition above the balance ceiling
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount == 0:
            raise ValidationError(
                "amount must be a non-zero integer",
                details={"amount": amount},
            )
        validation = cls.validate_required(reason=reason)
        if validation is not None:
            raise ValidationError(validation.error, details=validation.errors)

        conf = credit_settings()
        metadata = {"admin_id": admin.pk}
        metadata.update(request_context or {})

        with cls.atomic():
            account = ledger.lock_account(target_user)
            previous_balance = account.balance
            new_balance = previous_balance + amount

            if new_balance < 0 and not conf.admin_allow_negative:
                raise NegativeBalanceNotAllowed(
                    "Adjustment would result in a negative balance",
                    details={"current_balance": previous_balance, "adjustment": amount},
                )
            if amount > 0 and new_balance > conf.max_balance:
                raise PurchaseLimitExceeded(
                    f"Adjustment would exceed the maximum balance of {conf.max_balance} credits",
                    error_code="MAX_BALANCE_EXCEEDED",
                    details={"current_balance": previous_balance, "max_balance": conf.max_balance},
                )

            txn = ledger.apply_transaction(
                target_user,
                TransactionParams(
                    amount=amount,
                    kind=TransactionKind.ADMIN_ADJUSTMENT,
                    idempotency_key=f"admin_adjustment:{uuid.uuid4()}",
                    reference_type=ReferenceType.ADMIN,
                    reference_id=str(admin.pk),
                    reason=reason.strip(),
                    description=f"Admin adjustment: {reason.strip()}",
                    performed_by=admin,
                    metadata=metadata,
                    allow_negative=conf.admin_allow_negative,
                ),
            )

        cls.get_logger().warning(
            "Admin credit adjustment",
            extra={
                "admin_id": admin.pk,
                "user_id": target_user.pk,
                "adjustment": amount,
                "previous_balance": previous_balance,
                "new_balance": new_balance,
                "transaction_id": txn.pk,
            },
        )
        return AdjustmentResult(
            previous_balance=previous_balance,
            adjustment=amount,
            new_balance=new_balance,
            transaction=txn,
        )

    @classmethod
    def refund_project(cls, project_id, admin) -> SweepResult:
        """
        Fully refund every unrefunded application on a project.

        Each refund commits on its own; a failure is logged and recorded
        in the result and the sweep moves on.

        Raises:
            NotFoundError: Unknown project
        """
        project = Project.objects.filter(pk=project_id).first()
        if project is None:
            raise NotFoundError(
                "Project not found",
                error_code="PROJECT_NOT_FOUND",
                details={"project_id": project_id},
            )

        applications = list(
            Application.objects.filter(
                project=project,
                refunded=False,
                credits_spent__gt=0,
            ).order_by("id")
        )
        sweep = SweepResult(project=project, total_applications=len(applications))

        for application in applications:
            result = cls._refund_one(application, admin)
            if result.success:
                sweep.refunds_processed += 1
            else:
                sweep.failures.append(
                    {
                        "application_id": application.pk,
                        "error": result.error,
                        "error_code": result.error_code,
                    }
                )

        cls.get_logger().info(
            "Project refund sweep finished",
            extra={
                "project_id": project.pk,
                "admin_id": admin.pk,
                "refunds_processed": sweep.refunds_processed,
                "total_applications": sweep.total_applications,
                "failures": len(sweep.failures),
            },
        )
        return sweep

    @classmethod
    def _refund_one(cls, application: Application, admin) -> ServiceResult:
        try:
            txn = RefundService.issue_refund(
                application,
                reason=RefundReason.PROJECT_CANCELLED,
                admin=admin,
                note="Project cancelled by admin",
            )
        except BaseApplicationError as e:
            return cls.handle_exception(
                e,
                f"Refund sweep skipped application {application.pk}",
                log_level=logging.WARNING,
            )
        except DatabaseError as e:
            return cls.handle_exception(
                e,
                f"Refund sweep failed for application {application.pk}",
            )
        return ServiceResult.success(txn)

    @classmethod
    def user_snapshot(cls, user_id) -> dict[str, Any]:
        """
        Raises:
            NotFoundError: Unknown user
        """
        user = cls.get_user(user_id)
        return {
            "user": user,
            "credits": ledger.get_balance(user),
            "recent_transactions": list(
                ledger.list_transactions(user)[:RECENT_TRANSACTIONS_LIMIT]
            ),
        }
