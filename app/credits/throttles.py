"""
Rate limits for credits endpoints.

Rates live in REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] under the
scopes below.
"""

from rest_framework.throttling import UserRateThrottle


class CreditOperationsThrottle(UserRateThrottle):
    """Applied to every credits endpoint."""

    scope = "credit_operations"


class CreditPurchaseThrottle(UserRateThrottle):
    """Tighter limit for starting and verifying purchases."""

    scope = "credit_purchase"
