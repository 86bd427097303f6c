"""
Stripe API adapter for credit purchases.

All Stripe calls made by the credits app go through StripeAdapter so
errors, logging and configuration are handled in one place. Services
hold a reference to the adapter class and tests swap in a fake.

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_WEBHOOK_SECRET: Webhook signing secret
- STRIPE_MAX_RETRIES: Network retries performed by the Stripe client

Usage:
    from credits.adapters import CreatePaymentIntentParams, StripeAdapter

    result = StripeAdapter.create_payment_intent(
        CreatePaymentIntentParams(
            amount_cents=50000,
            currency="inr",
            metadata={"type": "credit_purchase", "order_id": order.order_id},
            idempotency_key=f"create_intent:{order.order_id}",
        )
    )
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import stripe
from django.conf import settings

from credits.exceptions import PaymentGatewayError, PaymentVerificationError


@dataclass
class CreatePaymentIntentParams:
    """
    Parameters for creating a Stripe PaymentIntent.

    Attributes:
        amount_cents: Amount in smallest currency unit (paise for INR)
        currency: ISO 4217 currency code
        idempotency_key: Unique key for idempotent creation
        metadata: Key-value pairs attached to the PaymentIntent
        description: Statement description shown in the Stripe dashboard
        receipt_email: Where Stripe sends the receipt
    """

    amount_cents: int
    currency: str
    idempotency_key: str
    metadata: dict[str, str] = field(default_factory=dict)
    description: str | None = None
    receipt_email: str | None = None

    def __post_init__(self) -> None:
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if not self.currency:
            raise ValueError("currency is required")


@dataclass
class PaymentIntentResult:
    """
    Result from Stripe PaymentIntent operations.

    Attributes:
        id: PaymentIntent ID (pi_xxx)
        status: Current status (requires_payment_method, succeeded, etc.)
        amount_cents: Amount in smallest currency unit
        currency: Currency code (lowercase, as returned by Stripe)
        client_secret: Secret for client-side confirmation
        metadata: Attached metadata
    """

    id: str
    status: str
    amount_cents: int
    currency: str
    client_secret: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


class StripeAdapter:
    """
    Adapter for the Stripe operations used by credit purchases.

    All methods are class methods - no instance state is maintained.
    """

    @staticmethod
    def _configure_stripe() -> None:
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.max_network_retries = getattr(settings, "STRIPE_MAX_RETRIES", 3)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    def publishable_key(cls) -> str:
        return settings.STRIPE_PUBLISHABLE_KEY

    @classmethod
    def create_payment_intent(
        cls,
        params: CreatePaymentIntentParams,
    ) -> PaymentIntentResult:
        """
        Create a Stripe PaymentIntent.

        Raises:
            PaymentGatewayError: Stripe rejected or failed the request
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_payment_intent",
            "amount_cents": params.amount_cents,
            "currency": params.currency,
            "idempotency_key": params.idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.create(
                amount=params.amount_cents,
                currency=params.currency.lower(),
                metadata=params.metadata,
                description=params.description,
                receipt_email=params.receipt_email,
                automatic_payment_methods={"enabled": True},
                idempotency_key=params.idempotency_key,
            )
        except stripe.StripeError as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "payment_intent_id": intent.id,
                "status": intent.status,
                "duration_ms": duration_ms,
            },
        )
        return cls._to_result(intent)

    @classmethod
    def retrieve_payment_intent(cls, payment_intent_id: str) -> PaymentIntentResult:
        """
        Retrieve a PaymentIntent by ID.

        Raises:
            PaymentGatewayError: PaymentIntent not found or Stripe failure
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "retrieve_payment_intent",
            "payment_intent_id": payment_intent_id,
        }

        start_time = time.time()
        logger.debug("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id)
        except stripe.StripeError as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        logger.debug(
            "Stripe operation completed",
            extra={
                **log_context,
                "status": intent.status,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )
        return cls._to_result(intent)

    @classmethod
    def cancel_payment_intent(
        cls,
        payment_intent_id: str,
        cancellation_reason: str = "abandoned",
    ) -> PaymentIntentResult:
        """
        Cancel a PaymentIntent so its client_secret can no longer be paid.

        Stripe refuses to cancel intents that already succeeded or are
        processing; that surfaces as INVALID_GATEWAY_REQUEST.

        Raises:
            PaymentGatewayError: Stripe rejected or failed the request
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "cancel_payment_intent",
            "payment_intent_id": payment_intent_id,
            "cancellation_reason": cancellation_reason,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.cancel(
                payment_intent_id,
                cancellation_reason=cancellation_reason,
            )
        except stripe.StripeError as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "status": intent.status,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )
        return cls._to_result(intent)

    @classmethod
    def verify_webhook_signature(cls, payload: bytes, signature: str) -> dict[str, Any]:
        """
        Verify and parse a Stripe webhook event.

        Raises:
            PaymentVerificationError: Invalid payload or signature
        """
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                settings.STRIPE_WEBHOOK_SECRET,
            )
        except (stripe.SignatureVerificationError, ValueError) as e:
            raise PaymentVerificationError(
                "Invalid webhook signature",
                error_code="INVALID_WEBHOOK_SIGNATURE",
                details={"error": str(e)},
            )
        return event.to_dict()

    @staticmethod
    def _to_result(intent) -> PaymentIntentResult:
        return PaymentIntentResult(
            id=intent.id,
            status=intent.status,
            amount_cents=intent.amount,
            currency=intent.currency,
            client_secret=intent.client_secret,
            metadata=dict(intent.metadata or {}),
        )

    @classmethod
    def _handle_stripe_error(
        cls,
        error: stripe.StripeError,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to PaymentGatewayError.

        Raises:
            PaymentGatewayError: Always, flagged retryable for transient failures
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.CardError):
            logger.warning(
                "Card error from Stripe",
                extra={**log_context, "decline_code": getattr(error, "decline_code", None)},
            )
            raise PaymentGatewayError(
                str(error.user_message or error),
                error_code="CARD_DECLINED",
                stripe_code=error.code,
            )

        if isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise PaymentGatewayError(
                "Payment gateway rejected the request",
                error_code="INVALID_GATEWAY_REQUEST",
                stripe_code=error.code,
            )

        if isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise PaymentGatewayError(
                "Payment gateway is busy. Please retry.",
                error_code="GATEWAY_RATE_LIMITED",
                stripe_code="rate_limit",
                is_retryable=True,
            )

        if isinstance(error, (stripe.APIConnectionError, stripe.APIError)):
            logger.error("Stripe unavailable", extra=log_context, exc_info=True)
            raise PaymentGatewayError(
                "Payment gateway unavailable. Please retry.",
                error_code="GATEWAY_UNAVAILABLE",
                stripe_code="api_error",
                is_retryable=True,
            )

        if isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise PaymentGatewayError(
                "Payment gateway misconfigured",
                stripe_code="authentication_error",
            )

        logger.error(
            f"Unexpected error from Stripe: {type(error).__name__}",
            extra=log_context,
            exc_info=True,
        )
        raise PaymentGatewayError(
            "Payment gateway error",
            stripe_code="unknown_error",
        )
