"""
Credits domain models.

- CreditAccount: One per user; cached balance and lifetime aggregates
- CreditTransaction: Immutable ledger entry (signed delta)
- CreditOrder: Stripe-backed purchase moving initiated → completed | failed
"""

from credits.models.account import CreditAccount
from credits.models.order import CreditOrder
from credits.models.transaction import CreditTransaction

__all__ = [
    "CreditAccount",
    "CreditOrder",
    "CreditTransaction",
]
