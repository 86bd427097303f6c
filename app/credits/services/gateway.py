"""
Shared access to the payment gateway adapter.

Services resolve the adapter at call time so tests can replace it:

    PaymentGatewayService.set_stripe_adapter(FakeStripeAdapter)
    ...
    PaymentGatewayService.set_stripe_adapter(None)
"""

from __future__ import annotations

from core.services import BaseService

from credits.adapters import StripeAdapter


class PaymentGatewayService(BaseService):
    """Base for services that call Stripe."""

    _stripe_adapter: type | None = None

    @classmethod
    def get_stripe_adapter(cls) -> type:
        """Get the Stripe adapter class."""
        return PaymentGatewayService._stripe_adapter or StripeAdapter

    @classmethod
    def set_stripe_adapter(cls, adapter: type | None) -> None:
        """Set the Stripe adapter class (for testing)."""
        PaymentGatewayService._stripe_adapter = adapter
