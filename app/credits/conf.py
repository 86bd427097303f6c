"""
Credits configuration snapshot.

All tunables live in Django settings (populated from the environment by
django-environ in config/settings.py). Services read them through
credit_settings() at call time so tests can override them with the
pytest-django `settings` fixture.

Usage:
    from credits.conf import credit_settings

    conf = credit_settings()
    amount = credits * conf.price_per_credit * 100
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings


@dataclass(frozen=True)
class CreditSettings:
    """
    Immutable view of the credits settings.

    Attributes:
        price_per_credit: Price of one credit in major currency units
        currency: ISO 4217 currency code for purchases
        min_purchase: Smallest purchasable number of credits
        max_single_purchase: Largest number of credits in one order
        max_balance: Balance ceiling enforced on purchase and admin top-up
        full_refund_minutes: Window for a 100% withdrawal refund
        partial_refund_hours: Window for a partial withdrawal refund
        partial_refund_percent: Percentage refunded inside the partial window
        signup_bonus: Credits granted to new freelancers (0 disables)
        admin_allow_negative: Whether admin adjustments may go below zero
        order_expiry_hours: Age after which initiated orders are failed
    """

    price_per_credit: int
    currency: str
    min_purchase: int
    max_single_purchase: int
    max_balance: int
    full_refund_minutes: int
    partial_refund_hours: int
    partial_refund_percent: int
    signup_bonus: int
    admin_allow_negative: bool
    order_expiry_hours: int

    @property
    def minor_units_per_credit(self) -> int:
        """Price of one credit in the currency's smallest unit (paise)."""
        return self.price_per_credit * 100


def credit_settings() -> CreditSettings:
    """Build a CreditSettings from the current Django settings."""
    return CreditSettings(
        price_per_credit=settings.CREDITS_PRICE_PER_CREDIT,
        currency=settings.CREDITS_CURRENCY,
        min_purchase=settings.CREDITS_MIN_PURCHASE,
        max_single_purchase=settings.CREDITS_MAX_SINGLE_PURCHASE,
        max_balance=settings.CREDITS_MAX_BALANCE,
        full_refund_minutes=settings.CREDITS_FULL_REFUND_MINUTES,
        partial_refund_hours=settings.CREDITS_PARTIAL_REFUND_HOURS,
        partial_refund_percent=settings.CREDITS_PARTIAL_REFUND_PERCENT,
        signup_bonus=settings.CREDITS_SIGNUP_BONUS,
        admin_allow_negative=settings.CREDITS_ADMIN_ALLOW_NEGATIVE,
        order_expiry_hours=settings.CREDITS_ORDER_EXPIRY_HOURS,
    )
