"""
Credits domain exceptions.

All exceptions inherit from the core hierarchy so the API exception
handler renders them as {"error", "error_code", "details"} with the
status of their core base class.

Exception Hierarchy:
    CreditError (400)
    ├── InsufficientCredits - Spend larger than the balance
    ├── PurchaseLimitExceeded - Min/max purchase or balance ceiling
    ├── InvalidPackage - Unknown package id
    ├── NegativeBalanceNotAllowed - Admin deduction below zero
    ├── PaymentVerificationError - PaymentIntent does not match the order
    ├── RefundNotEligible - Refund policy says no
    └── ImmutableTransactionError - Attempt to edit or delete the ledger
    OrderNotFound (NotFoundError, 404)
    RefundAlreadyIssued (ConflictError, 409)
    InvalidStateTransitionError (ConflictError, 409)
    PaymentGatewayError (ExternalServiceError, 502)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
)

if TYPE_CHECKING:
    from typing import Any


class CreditError(BaseApplicationError):
    """Base exception for credits business-rule failures."""

    default_error_code: str = "CREDIT_ERROR"


class InsufficientCredits(CreditError):
    """
    Raised when a spend would take the balance below zero.

    Carries the amounts a client needs to offer a top-up.

    Example:
        if account.balance < cost:
            raise InsufficientCredits(required=cost, available=account.balance)
    """

    default_error_code: str = "INSUFFICIENT_CREDITS"
    purchase_url: str = "/credits/purchase"

    def __init__(
        self,
        required: int,
        available: int,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.required = required
        self.available = available
        self.shortfall = max(required - available, 0)

        full_details = {
            "required": required,
            "available": available,
            "shortfall": self.shortfall,
            "purchase_url": self.purchase_url,
        }
        if details:
            full_details.update(details)

        super().__init__(
            message=(
                f"Insufficient credits: {required} required, {available} available"
            ),
            error_code=error_code,
            details=full_details,
        )


class PurchaseLimitExceeded(CreditError):
    default_error_code: str = "PURCHASE_LIMIT_EXCEEDED"


class InvalidPackage(CreditError):
    default_error_code: str = "INVALID_PACKAGE"


class NegativeBalanceNotAllowed(CreditError):
    default_error_code: str = "NEGATIVE_BALANCE_NOT_ALLOWED"


class PaymentVerificationError(CreditError):
    """Raised when a PaymentIntent does not confirm the order it claims to pay."""

    default_error_code: str = "PAYMENT_VERIFICATION_FAILED"


class RefundNotEligible(CreditError):
    default_error_code: str = "REFUND_NOT_ELIGIBLE"


class ImmutableTransactionError(CreditError):
    default_error_code: str = "IMMUTABLE_TRANSACTION"


class OrderNotFound(NotFoundError):
    default_error_code: str = "ORDER_NOT_FOUND"


class RefundAlreadyIssued(ConflictError):
    """Raised when a refund for the same spend was committed concurrently."""

    default_error_code: str = "REFUND_ALREADY_ISSUED"


class InvalidStateTransitionError(ConflictError):
    """
    Raised when an order transition is not allowed from its current state.

    Wraps django-fsm's TransitionNotAllowed in the standard error format.

    Example:
        raise InvalidStateTransitionError(
            f"Cannot complete order in '{order.status}' state",
            details={"current_state": order.status, "target_state": "completed"},
        )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


class PaymentGatewayError(ExternalServiceError):
    """
    Raised when Stripe rejects or fails a request.

    Attributes:
        stripe_code: Stripe's error code, when provided
        is_retryable: Whether the call may succeed on retry
    """

    default_error_code: str = "PAYMENT_GATEWAY_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        is_retryable: bool = False,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code
        self.is_retryable = is_retryable


__all__ = [
    "CreditError",
    "InsufficientCredits",
    "PurchaseLimitExceeded",
    "InvalidPackage",
    "NegativeBalanceNotAllowed",
    "PaymentVerificationError",
    "RefundNotEligible",
    "ImmutableTransactionError",
    "OrderNotFound",
    "RefundAlreadyIssued",
    "InvalidStateTransitionError",
    "PaymentGatewayError",
]
