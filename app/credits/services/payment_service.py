"""
Payment completion for credit orders.

Completion is reachable from two directions, the client calling
verify-payment and the Stripe webhook. Both funnel into
complete_order, which locks the order row and only credits the account
on the initiated -> completed transition, so racing callers credit
exactly once.

Usage:
    from credits.services import PaymentCompletionService

    result = PaymentCompletionService.verify_payment(user, order_id, "pi_123")
    result.already_processed   # True when the webhook got there first
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from core.exceptions import PermissionDeniedError

from credits.adapters import PaymentIntentResult
from credits.conf import credit_settings
from credits.exceptions import (
    InvalidStateTransitionError,
    OrderNotFound,
    PaymentGatewayError,
    PaymentVerificationError,
)
from credits.ledger import TransactionParams, ledger
from credits.models import CreditOrder, CreditTransaction
from credits.services.gateway import PaymentGatewayService
from credits.states import CreditOrderStatus, ReferenceType, TransactionKind

CREDIT_PURCHASE_METADATA_TYPE = "credit_purchase"


@dataclass
class CompletionResult:
    """
    Outcome of completing an order.

    Attributes:
        order: The completed order
        transaction: Its purchase transaction
        already_processed: True when the order was completed earlier
    """

    order: CreditOrder
    transaction: CreditTransaction
    already_processed: bool = False


def purchase_idempotency_key(order_id: str) -> str:
    return f"purchase:order:{order_id}"


class PaymentCompletionService(PaymentGatewayService):
    """
    Service completing and failing credit orders.

    Methods:
        complete_order: initiated -> completed, credits added once
        fail_order: initiated -> failed, no ledger effect
        expire_order: Cancel the PaymentIntent, then fail the order
        verify_payment: Client-side confirmation checked against Stripe
        handle_webhook_event: Stripe webhook dispatch
    """

    @classmethod
    def _lock_order(cls, order_id: str) -> CreditOrder:
        try:
            return (
                CreditOrder.objects.select_for_update(of=("self",))
                .select_related("account__user")
                .get(order_id=order_id)
            )
        except CreditOrder.DoesNotExist:
            raise OrderNotFound(
                "Order not found",
                details={"order_id": order_id},
            )

    @classmethod
    def complete_order(
        cls,
        order_id: str,
        gateway_reference: str | None = None,
        user=None,
        request_context: dict[str, str] | None = None,
    ) -> CompletionResult:
        """
        Complete an order and add its credits.

        Args:
            order_id: Public order id
            gateway_reference: PaymentIntent id confirming the payment
            user: When given, the order must belong to this user

        Raises:
            OrderNotFound: Unknown order id
            PermissionDeniedError: Order belongs to another user
            InvalidStateTransitionError: Order already failed
        """
        logger = cls.get_logger()

        with cls.atomic():
            order = cls._lock_order(order_id)
            owner = order.account.user

            if user is not None and owner.pk != user.pk:
                raise PermissionDeniedError(
                    "Order does not belong to you",
                    error_code="ORDER_OWNERSHIP_MISMATCH",
                )

            if order.status == CreditOrderStatus.COMPLETED:
                txn = CreditTransaction.objects.get(
                    idempotency_key=purchase_idempotency_key(order.order_id)
                )
                logger.info(
                    "Order already completed",
                    extra={"order_id": order.order_id, "transaction_id": txn.pk},
                )
                return CompletionResult(order=order, transaction=txn, already_processed=True)

            if order.status == CreditOrderStatus.FAILED:
                raise InvalidStateTransitionError(
                    f"Cannot complete order in '{order.status}' state",
                    details={
                        "order_id": order.order_id,
                        "current_state": order.status,
                        "target_state": CreditOrderStatus.COMPLETED,
                    },
                )

            conf = credit_settings()
            current_balance = ledger.lock_account(owner).balance
            if current_balance + order.credits > conf.max_balance:
                # Payment is already captured; credit it anyway
                logger.warning(
                    "Completed order takes balance past the maximum",
                    extra={
                        "order_id": order.order_id,
                        "current_balance": current_balance,
                        "credits": order.credits,
                        "max_balance": conf.max_balance,
                    },
                )

            order.complete(gateway_reference=gateway_reference)
            order.save()

            metadata: dict[str, Any] = {
                "payment_intent_id": order.gateway_reference,
                "package_id": order.package_id,
                "package_name": order.package_name,
                "amount": order.amount,
                "currency": order.currency,
            }
            metadata.update(request_context or {})

            txn = ledger.apply_transaction(
                owner,
                TransactionParams(
                    amount=order.credits,
                    kind=TransactionKind.PURCHASE,
                    idempotency_key=purchase_idempotency_key(order.order_id),
                    reference_type=ReferenceType.ORDER,
                    reference_id=order.order_id,
                    order=order,
                    description=f"Purchased {order.credits} credits",
                    metadata=metadata,
                ),
            )

        logger.info(
            "Credit order completed",
            extra={
                "order_id": order.order_id,
                "user_id": owner.pk,
                "credits": order.credits,
                "transaction_id": txn.pk,
            },
        )
        return CompletionResult(order=order, transaction=txn, already_processed=False)

    @classmethod
    def fail_order(cls, order_id: str, reason: str = "") -> CreditOrder:
        """
        Mark an initiated order failed. Repeat calls are no-ops.

        Raises:
            OrderNotFound: Unknown order id
            InvalidStateTransitionError: Order already completed
        """
        with cls.atomic():
            order = cls._lock_order(order_id)

            if order.status == CreditOrderStatus.FAILED:
                return order

            if order.status == CreditOrderStatus.COMPLETED:
                raise InvalidStateTransitionError(
                    f"Cannot fail order in '{order.status}' state",
                    details={
                        "order_id": order.order_id,
                        "current_state": order.status,
                        "target_state": CreditOrderStatus.FAILED,
                    },
                )

            order.fail(reason=reason)
            order.save()

        cls.get_logger().info(
            "Credit order failed",
            extra={"order_id": order.order_id, "reason": reason},
        )
        return order

    @classmethod
    def expire_order(cls, order_id: str) -> str:
        """
        Expire an unpaid order and cancel its PaymentIntent.

        The intent is checked first: a payment that went through after all
        completes the order instead. When Stripe cannot be reached or will
        not cancel the intent, the order stays initiated for the webhook or
        the next run.

        Returns one of "expired", "completed" or "skipped".
        """
        logger = cls.get_logger()
        order = CreditOrder.objects.filter(order_id=order_id).first()
        if order is None or order.status != CreditOrderStatus.INITIATED:
            return "skipped"

        if order.gateway_reference:
            adapter = cls.get_stripe_adapter()
            try:
                intent = adapter.retrieve_payment_intent(order.gateway_reference)
                if intent.status == "succeeded":
                    cls._check_intent_matches(order, intent)
                    cls.complete_order(order_id, gateway_reference=intent.id)
                    logger.info(
                        "Stale order was paid, completed instead of expired",
                        extra={"order_id": order_id, "payment_intent_id": intent.id},
                    )
                    return "completed"
                if intent.status != "canceled":
                    adapter.cancel_payment_intent(order.gateway_reference)
            except (
                PaymentGatewayError,
                PaymentVerificationError,
                InvalidStateTransitionError,
            ) as e:
                logger.warning(
                    "Could not expire credit order",
                    extra={"order_id": order_id, "error_code": e.error_code},
                )
                return "skipped"

        try:
            cls.fail_order(order_id, reason="Order expired")
        except (OrderNotFound, InvalidStateTransitionError):
            # Completed by a webhook since the intent was checked
            return "skipped"
        return "expired"

    @classmethod
    def verify_payment(
        cls,
        user,
        order_id: str,
        payment_intent_id: str,
        request_context: dict[str, str] | None = None,
    ) -> CompletionResult:
        """
        Confirm a payment reported by the client, then complete the order.

        Raises:
            OrderNotFound: Unknown order id
            PermissionDeniedError: Order belongs to another user
            PaymentVerificationError: PaymentIntent does not pay this order
            PaymentGatewayError: Stripe lookup failed
        """
        order = (
            CreditOrder.objects.select_related("account")
            .filter(order_id=order_id)
            .first()
        )
        if order is None:
            raise OrderNotFound("Order not found", details={"order_id": order_id})
        if order.account.user_id != user.pk:
            raise PermissionDeniedError(
                "Order does not belong to you",
                error_code="ORDER_OWNERSHIP_MISMATCH",
            )
        if order.gateway_reference and order.gateway_reference != payment_intent_id:
            raise PaymentVerificationError(
                "Payment does not match this order",
                details={"order_id": order_id},
            )

        if order.status != CreditOrderStatus.COMPLETED:
            intent = cls.get_stripe_adapter().retrieve_payment_intent(payment_intent_id)
            cls._check_intent_matches(order, intent)

        return cls.complete_order(
            order_id,
            gateway_reference=payment_intent_id,
            user=user,
            request_context=request_context,
        )

    @staticmethod
    def _check_intent_matches(order: CreditOrder, intent) -> None:
        if intent.metadata.get("order_id") != order.order_id:
            raise PaymentVerificationError(
                "Payment does not match this order",
                details={"order_id": order.order_id},
            )
        if (
            intent.amount_cents != order.amount
            or intent.currency.lower() != order.currency.lower()
        ):
            raise PaymentVerificationError(
                "Payment amount does not match this order",
                details={"expected": order.amount, "received": intent.amount_cents},
            )
        if intent.status != "succeeded":
            raise PaymentVerificationError(
                "Payment has not succeeded",
                error_code="PAYMENT_NOT_CAPTURED",
                details={"status": intent.status},
            )

    @classmethod
    def handle_webhook_event(cls, event: dict[str, Any]) -> str:
        """
        Apply a verified Stripe event.

        Returns one of "completed", "duplicate", "failed" or "ignored".
        Unknown orders and late failures are logged and ignored so Stripe
        does not retry them forever.
        """
        logger = cls.get_logger()
        event_type = event.get("type", "")
        intent = event.get("data", {}).get("object", {})
        metadata = intent.get("metadata") or {}
        order_id = metadata.get("order_id")

        log_context = {
            "event_id": event.get("id"),
            "event_type": event_type,
            "order_id": order_id,
        }

        if metadata.get("type") != CREDIT_PURCHASE_METADATA_TYPE or not order_id:
            logger.debug("Ignoring non-credit webhook event", extra=log_context)
            return "ignored"

        try:
            if event_type == "payment_intent.succeeded":
                order = CreditOrder.objects.filter(order_id=order_id).first()
                if order is not None and order.status != CreditOrderStatus.COMPLETED:
                    cls._check_intent_matches(
                        order,
                        cls._intent_from_event(intent),
                    )
                result = cls.complete_order(order_id, gateway_reference=intent.get("id"))
                return "duplicate" if result.already_processed else "completed"

            if event_type == "payment_intent.payment_failed":
                error = intent.get("last_payment_error") or {}
                cls.fail_order(order_id, reason=error.get("message") or "Payment failed")
                return "failed"
        except (OrderNotFound, InvalidStateTransitionError, PaymentVerificationError) as e:
            logger.warning(
                "Webhook event not applied",
                extra={**log_context, "error_code": e.error_code},
            )
            return "ignored"

        logger.debug("Unhandled webhook event type", extra=log_context)
        return "ignored"

    @staticmethod
    def _intent_from_event(intent: dict[str, Any]) -> PaymentIntentResult:
        return PaymentIntentResult(
            id=intent.get("id", ""),
            status=intent.get("status", ""),
            amount_cents=intent.get("amount", 0),
            currency=intent.get("currency", ""),
            client_secret=intent.get("client_secret"),
            metadata=dict(intent.get("metadata") or {}),
        )
