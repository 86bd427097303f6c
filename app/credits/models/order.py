"""
CreditOrder model for credit purchases.

An order is created before the Stripe PaymentIntent and completed
exactly once, when payment is confirmed by the client (verify-payment)
or by the Stripe webhook, whichever arrives first.

Usage:
    order = CreditOrder.objects.create(account=account, credits=10, amount=50000)
    order.complete(gateway_reference="pi_123")   # initiated -> completed
    order.save()
"""

from __future__ import annotations

from django.db import models
from django.db.models import F
from django.utils import timezone

from django_fsm import FSMField, transition

from core.helpers import generate_token
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from credits.states import CreditOrderStatus


def generate_order_id() -> str:
    """Public order identifier, e.g. order_5f1c0a9e3b7d2c4e8a6f0b1d."""
    return f"order_{generate_token(12)}"


class CreditOrder(UUIDPrimaryKeyMixin, BaseModel):
    """
    A purchase of credits through the payment gateway.

    State Flow:
        INITIATED -> COMPLETED
        INITIATED -> FAILED

    Fields:
        order_id: Public identifier shared with the client and Stripe metadata
        account: Account credited on completion
        credits: Credits added on completion
        amount: Charge in the currency's smallest unit (paise)
        currency: ISO 4217 code
        package_id / package_name: Catalog package, when bought as one
        status: FSM-managed lifecycle state
        gateway / gateway_reference: Provider and PaymentIntent id
        client_secret: PaymentIntent client secret for the frontend
        version: Optimistic locking version
    """

    order_id = models.CharField(
        max_length=40,
        unique=True,
        default=generate_order_id,
        editable=False,
    )
    account = models.ForeignKey(
        "credits.CreditAccount",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    credits = models.PositiveIntegerField()
    amount = models.PositiveBigIntegerField(
        help_text="Amount in smallest currency unit (paise for INR)",
    )
    currency = models.CharField(max_length=3, default="INR")
    package_id = models.PositiveSmallIntegerField(null=True, blank=True)
    package_name = models.CharField(max_length=50, blank=True, default="")

    status = FSMField(
        default=CreditOrderStatus.INITIATED,
        choices=CreditOrderStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the order (managed by FSM)",
    )

    gateway = models.CharField(max_length=20, default="stripe")
    gateway_reference = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Stripe PaymentIntent ID (pi_xxx)",
    )
    client_secret = models.CharField(max_length=255, blank=True, default="")

    failure_reason = models.TextField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)

    metadata = models.JSONField(default=dict, blank=True)

    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Credit Order"
        verbose_name_plural = "Credit Orders"
        indexes = [
            models.Index(fields=["account", "status"], name="credit_order_account_status"),
            models.Index(fields=["status", "created_at"], name="credit_order_status_created"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(credits__gt=0),
                name="credit_order_credits_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="credit_order_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"CreditOrder({self.order_id}, {self.status}, {self.credits} credits)"

    def save(self, *args, **kwargs):
        """Save, incrementing version on every update."""
        is_update = not self._state.adding
        if is_update:
            self.version = F("version") + 1
        super().save(*args, **kwargs)
        if is_update:
            self.refresh_from_db(fields=["version"])

    @property
    def is_terminal(self) -> bool:
        return self.status != CreditOrderStatus.INITIATED

    @transition(
        field=status,
        source=CreditOrderStatus.INITIATED,
        target=CreditOrderStatus.COMPLETED,
    )
    def complete(self, gateway_reference: str | None = None):
        """Mark payment confirmed. Credits are added by the caller."""
        if gateway_reference:
            self.gateway_reference = gateway_reference
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=CreditOrderStatus.INITIATED,
        target=CreditOrderStatus.FAILED,
    )
    def fail(self, reason: str = ""):
        self.failure_reason = reason
        self.failed_at = timezone.now()
