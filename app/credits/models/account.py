"""
CreditAccount model.

The account row is the lock target for every balance mutation. Its
balance is a cache of the sum of its transactions; only
credits.ledger.LedgerService writes it.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel


class CreditAccount(BaseModel):
    """
    A user's credit wallet.

    Fields:
        user: Owner (one account per user, created lazily)
        balance: Current spendable credits
        total_purchased: Lifetime credits bought, granted or added by admins
        total_used: Lifetime credits spent, net of refunds
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="credit_account",
        help_text="Owner of this credit account",
    )
    balance = models.IntegerField(
        default=0,
        help_text="Current balance; negative only through admin adjustments",
    )
    total_purchased = models.PositiveIntegerField(
        default=0,
        help_text="Lifetime credits added by purchases, bonuses and admins",
    )
    total_used = models.PositiveIntegerField(
        default=0,
        help_text="Lifetime credits spent, reduced by refunds",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Credit Account"
        verbose_name_plural = "Credit Accounts"
        indexes = [
            models.Index(fields=["-balance"], name="credit_account_balance_idx"),
        ]

    def __str__(self) -> str:
        return f"CreditAccount(user={self.user_id}, balance={self.balance})"
