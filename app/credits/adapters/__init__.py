"""
Payment gateway adapters for the credits app.
"""

from credits.adapters.stripe_adapter import (
    CreatePaymentIntentParams,
    PaymentIntentResult,
    StripeAdapter,
)

__all__ = [
    "CreatePaymentIntentParams",
    "PaymentIntentResult",
    "StripeAdapter",
]
