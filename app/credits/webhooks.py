"""
Stripe webhook endpoint for credit purchases.

The view:
1. Verifies the webhook signature
2. Completes or fails the referenced CreditOrder
3. Returns 200 for every verified event, including ones it ignores

Completion is idempotent (see PaymentCompletionService.complete_order),
so Stripe's retries and races with verify-payment are harmless.

Usage:
    # In urls.py
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook")
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from credits.exceptions import PaymentVerificationError
from credits.services import PaymentCompletionService

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive a Stripe event and apply it to its credit order.

    Returns:
        HttpResponse with status:
        - 200: Event applied, duplicate or ignored
        - 400: Missing or invalid signature, or malformed event
    """
    payload = request.body
    signature = request.headers.get("Stripe-Signature", "")

    if not signature:
        logger.warning("Webhook received without Stripe-Signature header")
        return HttpResponse("Missing signature", status=400)

    adapter = PaymentCompletionService.get_stripe_adapter()
    try:
        event = adapter.verify_webhook_signature(payload, signature)
    except PaymentVerificationError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={"error": e.message},
        )
        return HttpResponse("Invalid signature", status=400)

    event_id = event.get("id")
    event_type = event.get("type")
    if not event_id or not event_type:
        logger.warning("Webhook missing required fields")
        return HttpResponse("Invalid event", status=400)

    logger.info(
        f"Received Stripe webhook: {event_type}",
        extra={"stripe_event_id": event_id, "event_type": event_type},
    )

    outcome = PaymentCompletionService.handle_webhook_event(event)

    logger.info(
        "Webhook processed",
        extra={"stripe_event_id": event_id, "outcome": outcome},
    )
    return HttpResponse(outcome, status=200)
