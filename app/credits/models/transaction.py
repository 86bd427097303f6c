"""
CreditTransaction model: the append-only credits ledger.

Each row records one signed change to one account along with the
balance before and after it. Rows are never updated or deleted; a
correction is a new transaction.

Usage:
    from credits.ledger import ledger, TransactionParams

    txn = ledger.apply_transaction(user, TransactionParams(
        amount=-1,
        kind=TransactionKind.USAGE,
        idempotency_key=f"usage:application:{application.pk}",
    ))
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.managers import BaseQuerySet

from credits.exceptions import ImmutableTransactionError
from credits.states import ReferenceType, TransactionKind


class CreditTransactionQuerySet(BaseQuerySet):
    def for_user(self, user) -> CreditTransactionQuerySet:
        return self.filter(account__user=user)

    def of_kind(self, kind: str | None) -> CreditTransactionQuerySet:
        if not kind:
            return self
        return self.filter(kind=kind)


class CreditTransaction(models.Model):
    """
    Immutable ledger entry.

    Fields:
        account: Account whose balance changed
        amount: Signed delta (positive adds credits, never zero)
        kind: purchase, usage, refund, admin_adjustment or signup_bonus
        balance_before / balance_after: Account balance around this entry
        order: Purchase order that produced this entry, if any
        reference_type / reference_id: Business entity behind the entry
        reason: Operator reason (required for admin adjustments)
        description: Human-readable summary shown in history
        performed_by: Admin who caused the entry, if any
        metadata: Gateway ids, package, request ip and user agent
        idempotency_key: Unique key making writes safe to retry
    """

    account = models.ForeignKey(
        "credits.CreditAccount",
        on_delete=models.PROTECT,
        related_name="transactions",
    )
    amount = models.IntegerField(
        help_text="Signed change in credits (positive adds, negative removes)",
    )
    kind = models.CharField(
        max_length=20,
        choices=TransactionKind.choices,
        db_index=True,
    )
    balance_before = models.IntegerField()
    balance_after = models.IntegerField()

    order = models.ForeignKey(
        "credits.CreditOrder",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )
    reference_type = models.CharField(
        max_length=20,
        choices=ReferenceType.choices,
        null=True,
        blank=True,
    )
    reference_id = models.CharField(max_length=64, null=True, blank=True)

    reason = models.TextField(blank=True, default="")
    description = models.CharField(max_length=255, blank=True, default="")
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="performed_credit_transactions",
        help_text="Admin who performed this transaction",
    )
    metadata = models.JSONField(default=dict, blank=True)

    idempotency_key = models.CharField(
        max_length=255,
        unique=True,
        help_text="Unique key to prevent duplicate transactions",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = CreditTransactionQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name = "Credit Transaction"
        verbose_name_plural = "Credit Transactions"
        indexes = [
            models.Index(fields=["account", "-created_at"], name="credit_txn_account_created"),
            models.Index(fields=["kind", "created_at"], name="credit_txn_kind_created"),
            models.Index(fields=["reference_type", "reference_id"], name="credit_txn_reference"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(amount=0),
                name="credit_transaction_amount_nonzero",
            ),
            models.CheckConstraint(
                condition=models.Q(
                    balance_after=models.F("balance_before") + models.F("amount")
                ),
                name="credit_transaction_balance_consistent",
            ),
        ]

    def __str__(self) -> str:
        return f"CreditTransaction({self.pk}, {self.kind}, {self.amount:+d})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableTransactionError(
                "Ledger transactions cannot be modified",
                details={"transaction_id": self.pk},
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableTransactionError(
            "Ledger transactions cannot be deleted",
            details={"transaction_id": self.pk},
        )
