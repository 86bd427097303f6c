"""
Project and Application models.

An Application is the spend record of the credits system: applying to
a project costs `credits_spent` credits, and refunds are recorded back
onto the application.

Related files:
    - services.py: Applying (spends credits) and withdrawing (may refund)
    - credits/services/refund_service.py: Refund policy and issuance
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.managers import SoftDeleteManager
from core.model_mixins import SoftDeleteMixin
from core.models import BaseModel


class ProjectStatus(models.TextChoices):
    OPEN = "open", "Open"
    CLOSED = "closed", "Closed"
    CANCELLED = "cancelled", "Cancelled"
    EXPIRED = "expired", "Expired"


class ApplicationStatus(models.TextChoices):
    """
    Application lifecycle.

    PENDING/ACCEPTED are active. WITHDRAWN, REJECTED and EXPIRED make the
    spent credits eligible for refund under the credits refund policy.
    """

    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    REJECTED = "rejected", "Rejected"
    WITHDRAWN = "withdrawn", "Withdrawn"
    EXPIRED = "expired", "Expired"


ACTIVE_APPLICATION_STATUSES = frozenset(
    [ApplicationStatus.PENDING, ApplicationStatus.ACCEPTED]
)


class Project(BaseModel):
    """
    A client's project that freelancers can apply to.

    Fields:
        client: User who posted the project
        title: Short project title
        description: Brief for applicants
        status: open, closed, cancelled or expired
        credits_required: Credits an application costs
    """

    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="projects",
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=20,
        choices=ProjectStatus.choices,
        default=ProjectStatus.OPEN,
        db_index=True,
    )
    credits_required = models.PositiveSmallIntegerField(
        default=1,
        help_text="Credits spent by each application",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title


class Application(SoftDeleteMixin, BaseModel):
    """
    A freelancer's application to a project.

    Fields:
        project: Project applied to
        freelancer: Applicant
        status: Lifecycle status (see ApplicationStatus)
        cover_letter: Pitch text
        credits_spent: Credits deducted when applying
        refunded: Whether the spend has been refunded
        refund_amount / refund_reason / refunded_at: Refund details
    """

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name="applications",
    )
    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="applications",
    )
    status = models.CharField(
        max_length=20,
        choices=ApplicationStatus.choices,
        default=ApplicationStatus.PENDING,
        db_index=True,
    )
    cover_letter = models.TextField(blank=True, default="")
    credits_spent = models.PositiveSmallIntegerField(default=1)

    refunded = models.BooleanField(default=False, db_index=True)
    refund_amount = models.PositiveSmallIntegerField(default=0)
    refund_reason = models.CharField(max_length=30, blank=True, default="")
    refunded_at = models.DateTimeField(null=True, blank=True)

    objects = SoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["project", "freelancer"],
                condition=models.Q(is_deleted=False),
                name="unique_active_application_per_project",
            ),
        ]

    def __str__(self) -> str:
        return f"Application({self.pk}, {self.status})"

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_APPLICATION_STATUSES
