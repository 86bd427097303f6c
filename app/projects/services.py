"""
Application service: applying to projects costs credits.

Usage:
    from projects.services import ApplicationService

    application = ApplicationService.apply(freelancer, project, cover_letter="...")
    result = ApplicationService.withdraw(application_id, freelancer)
    result.refund   # CreditTransaction, or None when not eligible
"""

from __future__ import annotations

from dataclasses import dataclass

from core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from core.services import BaseService

from credits.ledger import TransactionParams, ledger
from credits.models import CreditTransaction
from credits.services import RefundEligibility, RefundService
from credits.states import ReferenceType, TransactionKind
from projects.models import Application, ApplicationStatus, Project, ProjectStatus


@dataclass
class WithdrawalResult:
    application: Application
    eligibility: RefundEligibility
    refund: CreditTransaction | None = None


class ApplicationService(BaseService):
    """
    Service for project applications.

    Methods:
        apply: Create an application and spend its credits atomically
        withdraw: Withdraw an active application, refunding when eligible
    """

    @classmethod
    def get_project(cls, project_id) -> Project:
        project = Project.objects.filter(pk=project_id).first()
        if project is None:
            raise NotFoundError(
                "Project not found",
                error_code="PROJECT_NOT_FOUND",
                details={"project_id": project_id},
            )
        return project

    @classmethod
    def apply(cls, freelancer, project: Project, cover_letter: str = "") -> Application:
        """
        Apply to a project, spending project.credits_required credits.

        Raises:
            PermissionDeniedError: User is not a freelancer
            ValidationError: Project is not open
            ConflictError: Already applied
            InsufficientCredits: Balance too low (nothing is created)
        """
        if not freelancer.is_freelancer:
            raise PermissionDeniedError("Only freelancers can apply to projects")
        if project.status != ProjectStatus.OPEN:
            raise ValidationError(
                "Project is not accepting applications",
                error_code="PROJECT_NOT_OPEN",
                details={"project_id": project.pk, "status": project.status},
            )
        if Application.objects.filter(project=project, freelancer=freelancer).exists():
            raise ConflictError(
                "You have already applied to this project",
                error_code="ALREADY_APPLIED",
            )

        cost = project.credits_required
        with cls.atomic():
            application = Application.objects.create(
                project=project,
                freelancer=freelancer,
                cover_letter=cover_letter,
                credits_spent=cost,
            )
            if cost > 0:
                ledger.apply_transaction(
                    freelancer,
                    TransactionParams(
                        amount=-cost,
                        kind=TransactionKind.USAGE,
                        idempotency_key=f"usage:application:{application.pk}",
                        reference_type=ReferenceType.APPLICATION,
                        reference_id=str(application.pk),
                        description=f"Used {cost} credits for application #{application.pk}",
                        metadata={"project_id": project.pk},
                    ),
                )

        cls.get_logger().info(
            "Application submitted",
            extra={
                "application_id": application.pk,
                "project_id": project.pk,
                "user_id": freelancer.pk,
                "credits_spent": cost,
            },
        )
        return application

    @classmethod
    def withdraw(cls, application_id, user) -> WithdrawalResult:
        """
        Withdraw an active application and refund credits if eligible.

        Raises:
            NotFoundError: Missing or owned by someone else
            ConflictError: Application is no longer active
        """
        with cls.atomic():
            application = (
                Application.objects.select_for_update()
                .filter(pk=application_id, freelancer=user)
                .first()
            )
            if application is None:
                raise NotFoundError(
                    "Application not found",
                    error_code="APPLICATION_NOT_FOUND",
                    details={"application_id": application_id},
                )
            if not application.is_active:
                raise ConflictError(
                    f"Cannot withdraw an application in '{application.status}' state",
                    error_code="APPLICATION_NOT_ACTIVE",
                )

            application.status = ApplicationStatus.WITHDRAWN
            application.save(update_fields=["status", "updated_at"])

            eligibility = RefundService.check_eligibility(application)
            refund = None
            if eligibility.eligible:
                refund = RefundService.issue_refund(application)

        cls.get_logger().info(
            "Application withdrawn",
            extra={
                "application_id": application.pk,
                "user_id": user.pk,
                "refunded": refund is not None,
                "refund_amount": eligibility.refund_amount if refund else 0,
            },
        )
        return WithdrawalResult(application=application, eligibility=eligibility, refund=refund)
