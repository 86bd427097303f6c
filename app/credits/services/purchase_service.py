"""
Purchase initiation for credit packages and custom amounts.

Initiation creates a CreditOrder and a Stripe PaymentIntent. It never
changes the balance; credits are added only when the order completes
(see payment_service).

Usage:
    from credits.services import PurchaseService

    order = PurchaseService.initiate_purchase(user, package_id=2)
    order.client_secret   # handed to Stripe.js on the frontend
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import ValidationError

from credits.adapters import CreatePaymentIntentParams
from credits.conf import credit_settings
from credits.exceptions import InvalidPackage, PaymentGatewayError, PurchaseLimitExceeded
from credits.ledger import ledger
from credits.models import CreditOrder
from credits.packages import Package, get_package
from credits.services.gateway import PaymentGatewayService

if TYPE_CHECKING:
    from typing import Any


class PurchaseService(PaymentGatewayService):
    """
    Service for starting credit purchases.

    Methods:
        resolve_credits: Work out how many credits an order is for
        check_limits: Enforce min/max purchase and the balance ceiling
        initiate_purchase: Create the order and its PaymentIntent
    """

    @classmethod
    def resolve_credits(
        cls,
        credits: Any = None,
        package_id: Any = None,
    ) -> tuple[int, Package | None]:
        """
        Return (credits, package) for a purchase request.

        package_id wins over credits when both are supplied.

        Raises:
            InvalidPackage: Unknown package id
            ValidationError: credits is not a positive integer
        """
        if package_id is not None:
            package = get_package(package_id)
            if package is None:
                raise InvalidPackage(
                    "Invalid package selected",
                    details={"package_id": package_id},
                )
            return package.credits, package

        if isinstance(credits, bool) or not isinstance(credits, int) or credits <= 0:
            raise ValidationError(
                "credits_amount must be a positive integer",
                details={"credits_amount": credits},
            )
        return credits, None

    @classmethod
    def check_limits(cls, user, credits: int) -> None:
        """
        Raises:
            PurchaseLimitExceeded: Below minimum, above maximum, or the
                resulting balance would exceed the ceiling
        """
        conf = credit_settings()
        if credits < conf.min_purchase:
            raise PurchaseLimitExceeded(
                f"Minimum purchase is {conf.min_purchase} credits",
                details={"min_purchase": conf.min_purchase},
            )
        if credits > conf.max_single_purchase:
            raise PurchaseLimitExceeded(
                f"Maximum purchase is {conf.max_single_purchase} credits",
                details={"max_purchase": conf.max_single_purchase},
            )

        balance = ledger.get_balance(user).balance
        if balance + credits > conf.max_balance:
            raise PurchaseLimitExceeded(
                f"Purchase would exceed the maximum balance of {conf.max_balance} credits",
                error_code="MAX_BALANCE_EXCEEDED",
                details={
                    "current_balance": balance,
                    "max_balance": conf.max_balance,
                    "can_purchase": max(conf.max_balance - balance, 0),
                },
            )

    @classmethod
    def initiate_purchase(
        cls,
        user,
        credits: Any = None,
        package_id: Any = None,
        request_context: dict[str, str] | None = None,
    ) -> CreditOrder:
        """
        Create a purchase order and its Stripe PaymentIntent.

        Two phases: the order is committed first, then the PaymentIntent
        is created outside any database transaction. A gateway failure
        marks the order failed.

        Returns:
            The initiated CreditOrder with gateway_reference and client_secret

        Raises:
            InvalidPackage, ValidationError, PurchaseLimitExceeded: Bad request
            PaymentGatewayError: Stripe could not create the PaymentIntent
        """
        logger = cls.get_logger()
        credits, package = cls.resolve_credits(credits=credits, package_id=package_id)
        cls.check_limits(user, credits)

        conf = credit_settings()
        account = ledger.get_or_create_account(user)
        order = CreditOrder.objects.create(
            account=account,
            credits=credits,
            amount=credits * conf.minor_units_per_credit,
            currency=conf.currency,
            package_id=package.id if package else None,
            package_name=package.name if package else "",
            metadata=dict(request_context or {}),
        )

        adapter = cls.get_stripe_adapter()
        try:
            intent = adapter.create_payment_intent(
                CreatePaymentIntentParams(
                    amount_cents=order.amount,
                    currency=order.currency,
                    idempotency_key=f"create_intent:{order.order_id}",
                    metadata={
                        "type": "credit_purchase",
                        "order_id": order.order_id,
                        "user_id": str(user.pk),
                        "credits": str(credits),
                    },
                    description=f"{credits} credits",
                    receipt_email=user.email,
                )
            )
        except PaymentGatewayError as e:
            order.fail(reason=e.message)
            order.save()
            logger.error(
                "Failed to create PaymentIntent for credit order",
                extra={"order_id": order.order_id, "error_code": e.error_code},
            )
            raise

        order.gateway_reference = intent.id
        order.client_secret = intent.client_secret or ""
        order.save()

        logger.info(
            "Credit purchase initiated",
            extra={
                "order_id": order.order_id,
                "user_id": user.pk,
                "credits": credits,
                "amount": order.amount,
                "payment_intent_id": intent.id,
            },
        )
        return order
